"""
Principal type, bearer-token authentication and role permissions for DRF views.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from rest_framework import authentication, exceptions, permissions

logger = logging.getLogger(__name__)

ROLE_SUPER_ADMIN = 'super_admin'
ROLE_OWNER = 'restaurant_owner'


@dataclass(frozen=True)
class Principal:
    """Verified caller identity with its tenant binding"""

    id: str
    role: str
    restaurant_id: Optional[str] = None

    is_authenticated = True
    is_anonymous = False

    @property
    def is_platform_operator(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @property
    def tenant_scope(self) -> Optional[str]:
        """Restaurant id to filter by, or None for an unscoped operator"""
        if self.is_platform_operator:
            return None
        return self.restaurant_id

    def can_access(self, restaurant_id) -> bool:
        if self.is_platform_operator:
            return True
        return self.restaurant_id is not None and str(self.restaurant_id) == str(restaurant_id)


class BearerTokenAuthentication(authentication.BaseAuthentication):
    """
    Authorization: Bearer <token>

    Token verification is delegated to AuthService.verify_token.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None

        if len(header) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header.')

        try:
            token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed('Invalid token header.')

        from restaurant.services.auth_service import AuthService

        principal = AuthService.verify_token(token)
        if principal is None:
            logger.info("Rejected bearer token")
            raise exceptions.AuthenticationFailed('Invalid token.')

        return principal, token

    def authenticate_header(self, request):
        return self.keyword


class IsOwnerOrOperator(permissions.BasePermission):
    """Any verified principal: tenant owners act within their restaurant"""

    def has_permission(self, request, view):
        return isinstance(request.user, Principal)


class IsPlatformOperator(permissions.BasePermission):
    """Platform operator only"""

    message = 'Unauthorized'

    def has_permission(self, request, view):
        return isinstance(request.user, Principal) and request.user.is_platform_operator


class HasWebhookSecret(permissions.BasePermission):
    """
    Integration callbacks (voice agent, telephony, payments).

    When INTAKE_WEBHOOK_SECRET is set, the X-Webhook-Secret header must match it.
    """

    def has_permission(self, request, view):
        secret = getattr(settings, 'INTAKE_WEBHOOK_SECRET', '')
        if not secret:
            return True
        supplied = request.headers.get('X-Webhook-Secret', '')
        if not hmac.compare_digest(supplied.encode(), secret.encode()):
            logger.warning(f"Rejected webhook call to {request.path}")
            return False
        return True
