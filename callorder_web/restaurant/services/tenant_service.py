"""
Tenant directory: restaurant records and voice-line lookup.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum

from restaurant.models import (
    AccessToken, MenuCategory, MenuItem, NotificationLog, Order, OrderLine,
    PrintJob, Restaurant, StaffAccount,
)
from restaurant.validators import parse_amount, validate_busy_hours
from shared.authentication import Principal
from shared.config_settings import ConfigSettings
from shared.exceptions import NotFound, Unauthorized, ValidationError
from shared.utils import normalize_phone_number

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('name', 'email', 'phone', 'address')
OPERATOR_SETTINGS = ('voice_line_id', 'voice_phone_number', 'is_system')


def _parse_amount(field: str, value: Any, max_digits: int, decimal_places: int) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    return parse_amount(field, value, max_digits, decimal_places)


class TenantService:
    """Service for restaurant (tenant) operations"""

    @staticmethod
    def create_tenant(
        profile: Dict[str, Any],
        principal: Principal,
        owner_email: Optional[str] = None,
        owner_password: Optional[str] = None,
    ) -> Restaurant:
        """
        Create a restaurant, optionally together with its owner account.

        Args:
            profile: Restaurant fields (name required)
            principal: Caller; must be a platform operator
            owner_email: Optional owner login
            owner_password: Optional owner password

        Returns:
            Restaurant instance
        """
        if not principal.is_platform_operator:
            raise Unauthorized('Only platform operators can create restaurants')

        name = (profile.get('name') or '').strip()
        if not name:
            raise ValidationError('Restaurant name is required')
        if bool(owner_email) != bool(owner_password):
            raise ValidationError('Owner email and password must be given together')

        fields = {key: profile[key] for key in PROFILE_FIELDS if profile.get(key) is not None}
        fields['name'] = name
        fields.update(TenantService._clean_settings(profile, allow_operator_fields=True))

        from restaurant.services.auth_service import AuthService

        with transaction.atomic():
            restaurant = Restaurant.objects.create(**fields)
            if owner_email:
                AuthService.create_account(owner_email, owner_password, StaffAccount.ROLE_OWNER, restaurant)

        logger.info(f"✅ Created restaurant {restaurant.name} ({restaurant.pk})")
        return restaurant

    @staticmethod
    def get_tenant(restaurant_id: Any, principal: Principal) -> Restaurant:
        """Restaurant in the caller's scope, else NotFound"""
        if not principal.can_access(restaurant_id):
            raise NotFound('Restaurant not found')
        try:
            return Restaurant.objects.get(pk=restaurant_id)
        except (Restaurant.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound('Restaurant not found')

    @staticmethod
    def list_tenants(principal: Principal) -> List[Dict[str, Any]]:
        """
        Restaurants visible to the caller, with order stats.
        Revenue counts completed orders only.
        """
        queryset = Restaurant.objects.all()
        if not principal.is_platform_operator:
            queryset = queryset.filter(pk=principal.restaurant_id)

        queryset = queryset.annotate(
            total_orders=Count('orders', distinct=True),
            total_revenue=Sum('orders__total', filter=Q(orders__status=Order.STATUS_COMPLETED)),
        ).order_by('-created_at')

        return [
            {
                'restaurant': restaurant,
                'total_orders': restaurant.total_orders,
                'total_revenue': restaurant.total_revenue or Decimal('0'),
            }
            for restaurant in queryset
        ]

    @staticmethod
    def find_tenant_by_voice_line(line_id: Optional[str]) -> Optional[Restaurant]:
        """
        Find the restaurant bound to a voice line.

        Tries an exact voice_line_id match, then a normalized phone-number match.
        Returns None when nothing matches.
        """
        if not line_id:
            return None

        restaurant = Restaurant.objects.filter(voice_line_id=line_id).first()
        if restaurant:
            return restaurant

        normalized = normalize_phone_number(line_id)
        if not normalized:
            return None

        restaurant = Restaurant.objects.filter(voice_phone_number=normalized).first()
        if restaurant:
            return restaurant

        # Stored numbers may carry formatting or a sip: prefix
        for candidate in Restaurant.objects.exclude(voice_phone_number__isnull=True).exclude(voice_phone_number=''):
            if normalize_phone_number(candidate.voice_phone_number) == normalized:
                return candidate

        logger.info(f"No restaurant bound to voice line {line_id}")
        return None

    @staticmethod
    def update_settings(restaurant_id: Any, fields: Dict[str, Any], principal: Principal) -> Restaurant:
        """
        Partially update restaurant settings. Unspecified fields are unchanged.
        Voice-line identifiers can only be changed by a platform operator.
        """
        restaurant = TenantService.get_tenant(restaurant_id, principal)

        forbidden = [key for key in OPERATOR_SETTINGS if key in fields]
        if forbidden and not principal.is_platform_operator:
            raise Unauthorized('Only platform operators can change these settings', {'fields': forbidden})

        changes = {key: fields[key] for key in PROFILE_FIELDS if key in fields and fields[key] is not None}
        if 'name' in changes:
            changes['name'] = str(changes['name']).strip()
            if not changes['name']:
                raise ValidationError('Restaurant name is required')
        changes.update(TenantService._clean_settings(
            fields, allow_operator_fields=principal.is_platform_operator, instance=restaurant
        ))
        if not changes:
            return restaurant

        for key, value in changes.items():
            setattr(restaurant, key, value)
        restaurant.save()

        if 'config_json' in changes:
            ConfigSettings.clear_cache(restaurant)

        logger.info(f"Updated restaurant {restaurant.pk}: {', '.join(sorted(changes))}")
        return restaurant

    @staticmethod
    def set_online_status(restaurant_id: Any, is_online: bool) -> Restaurant:
        try:
            restaurant = Restaurant.objects.get(pk=restaurant_id)
        except (Restaurant.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound('Restaurant not found')

        restaurant.is_online = bool(is_online)
        restaurant.save(update_fields=['is_online', 'updated_at'])
        return restaurant

    @staticmethod
    def delete_tenant(restaurant_id: Any, principal: Principal) -> Dict[str, int]:
        """
        Delete a restaurant and everything bound to it.

        Each step runs in its own transaction; a failure part-way leaves the
        earlier steps applied and can be retried.

        Returns:
            Dictionary of deleted row counts per entity
        """
        if not principal.is_platform_operator:
            raise Unauthorized('Only platform operators can delete restaurants')

        restaurant = TenantService.get_tenant(restaurant_id, principal)
        if restaurant.is_system:
            raise ValidationError('The platform restaurant cannot be deleted')

        steps = (
            ('print_jobs', PrintJob.objects.filter(order__restaurant=restaurant)),
            ('notifications', NotificationLog.objects.filter(order__restaurant=restaurant)),
            ('order_lines', OrderLine.objects.filter(order__restaurant=restaurant)),
            ('orders', Order.objects.filter(restaurant=restaurant)),
            ('menu_items', MenuItem.objects.filter(restaurant=restaurant)),
            ('categories', MenuCategory.objects.filter(restaurant=restaurant)),
            ('tokens', AccessToken.objects.filter(account__restaurant=restaurant)),
            ('staff', StaffAccount.objects.filter(restaurant=restaurant)),
        )

        deleted = {}
        for label, queryset in steps:
            with transaction.atomic():
                deleted[label] = queryset.delete()[0]

        ConfigSettings.clear_cache(restaurant)
        with transaction.atomic():
            restaurant.delete()

        logger.info(f"🗑️ Deleted restaurant {restaurant_id}: {deleted}")
        return deleted

    @staticmethod
    def _clean_settings(fields: Dict[str, Any], allow_operator_fields: bool,
                        instance: Optional[Restaurant] = None) -> Dict[str, Any]:
        cleaned = {}
        others = Restaurant.objects.exclude(pk=instance.pk) if instance is not None else Restaurant.objects.all()

        if 'tax_rate' in fields:
            tax_rate = _parse_amount('tax_rate', fields['tax_rate'], 6, 4)
            if tax_rate is not None and tax_rate > 1:
                raise ValidationError('tax_rate is a fraction between 0 and 1', {'tax_rate': fields['tax_rate']})
            cleaned['tax_rate'] = tax_rate
        if 'delivery_fee' in fields:
            cleaned['delivery_fee'] = _parse_amount('delivery_fee', fields['delivery_fee'], 10, 2)
        if 'minimum_order' in fields:
            cleaned['minimum_order'] = _parse_amount('minimum_order', fields['minimum_order'], 10, 2)

        if 'ai_enabled' in fields:
            value = fields['ai_enabled']
            if value is not None and not isinstance(value, bool):
                raise ValidationError('ai_enabled must be true, false or null')
            cleaned['ai_enabled'] = value
        if 'busy_mode_enabled' in fields:
            cleaned['busy_mode_enabled'] = bool(fields['busy_mode_enabled'])
        if 'busy_hours' in fields:
            cleaned['busy_hours'] = validate_busy_hours(fields['busy_hours'])
        if 'staff_phone' in fields:
            cleaned['staff_phone'] = (fields['staff_phone'] or '').strip()
        if 'config_json' in fields:
            if not isinstance(fields['config_json'], dict):
                raise ValidationError('config_json must be an object')
            cleaned['config_json'] = fields['config_json']

        if allow_operator_fields:
            if 'voice_line_id' in fields:
                line_id = (fields['voice_line_id'] or '').strip() or None
                if line_id and others.filter(voice_line_id=line_id).exists():
                    raise ValidationError('Voice line is already assigned', {'voice_line_id': line_id})
                cleaned['voice_line_id'] = line_id
            if 'voice_phone_number' in fields:
                number = normalize_phone_number(fields['voice_phone_number']) or None
                if number and others.filter(voice_phone_number=number).exists():
                    raise ValidationError('Voice number is already assigned', {'voice_phone_number': number})
                cleaned['voice_phone_number'] = number
            if 'is_system' in fields:
                cleaned['is_system'] = bool(fields['is_system'])

        return cleaned
