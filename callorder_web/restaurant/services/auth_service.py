"""
Credential verification for dashboard staff.
"""

import logging
import secrets
from typing import Any, Dict, Optional

from django.contrib.auth.hashers import check_password, make_password
from django.db import transaction
from django.utils import timezone

from restaurant.models import AccessToken, StaffAccount
from shared.authentication import Principal
from shared.exceptions import ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    """Service for login, logout and token verification"""

    @staticmethod
    def create_account(email: str, password: str, role: str = StaffAccount.ROLE_OWNER,
                       restaurant: Optional[Any] = None) -> StaffAccount:
        email = (email or '').strip().lower()
        if not email or not password:
            raise ValidationError('Email and password are required')
        if StaffAccount.objects.filter(email=email).exists():
            raise ValidationError('Email already registered', {'email': email})
        if role == StaffAccount.ROLE_OWNER and restaurant is None:
            raise ValidationError('Restaurant owners must belong to a restaurant')

        return StaffAccount.objects.create(
            email=email,
            password=make_password(password),
            role=role,
            restaurant=restaurant,
        )

    @staticmethod
    def login(email: str, password: str) -> Dict[str, Any]:
        """
        Verify credentials and issue a bearer token.
        A restaurant owner's login marks the restaurant online.

        Returns:
            Dictionary with token and principal

        Raises:
            ValidationError: on bad credentials
        """
        email = (email or '').strip().lower()
        account = StaffAccount.objects.select_related('restaurant').filter(email=email).first()
        if account is None or not check_password(password or '', account.password):
            logger.info(f"Failed login for {email}")
            raise ValidationError('Invalid email or password')

        with transaction.atomic():
            token = AccessToken.objects.create(account=account, key=secrets.token_hex(32))
            if account.restaurant is not None:
                account.restaurant.is_online = True
                account.restaurant.last_login_at = timezone.now()
                account.restaurant.save(update_fields=['is_online', 'last_login_at', 'updated_at'])

        logger.info(f"✅ {account.email} logged in")
        return {'token': token.key, 'principal': AuthService._principal_for(account)}

    @staticmethod
    def logout(token: str) -> bool:
        """Revoke a token. The owner's restaurant goes offline."""
        access = AccessToken.objects.select_related('account__restaurant').filter(key=token).first()
        if access is None:
            return False

        restaurant = access.account.restaurant
        with transaction.atomic():
            access.delete()
            if restaurant is not None:
                restaurant.is_online = False
                restaurant.save(update_fields=['is_online', 'updated_at'])

        logger.info(f"{access.account.email} logged out")
        return True

    @staticmethod
    def verify_token(token: str) -> Optional[Principal]:
        if not token:
            return None
        access = AccessToken.objects.select_related('account').filter(key=token).first()
        if access is None:
            return None
        return AuthService._principal_for(access.account)

    @staticmethod
    def _principal_for(account: StaffAccount) -> Principal:
        return Principal(
            id=str(account.pk),
            role=account.role,
            restaurant_id=str(account.restaurant_id) if account.restaurant_id else None,
        )
