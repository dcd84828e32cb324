"""
Menu service for managing categories and menu items.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import QuerySet

from restaurant.models import MenuCategory, MenuItem, Restaurant
from restaurant.validators import parse_amount
from shared.authentication import Principal
from shared.exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)

ITEM_FIELDS = ('name', 'description', 'price', 'available', 'customizations', 'category')


class MenuService:
    """Service for menu-related operations"""

    # Categories

    @staticmethod
    def list_categories(restaurant: Restaurant) -> QuerySet:
        return MenuCategory.objects.filter(restaurant=restaurant).order_by('display_order', 'id')

    @staticmethod
    def create_category(restaurant: Restaurant, data: Dict[str, Any]) -> MenuCategory:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError('Category name is required')

        return MenuCategory.objects.create(
            restaurant=restaurant,
            name=name,
            display_order=MenuService._clean_display_order(data.get('display_order', 0)),
        )

    @staticmethod
    def update_category(category_id: Any, data: Dict[str, Any], principal: Principal) -> MenuCategory:
        category = MenuService._get_scoped(MenuCategory, category_id, principal)

        if 'name' in data:
            name = (data.get('name') or '').strip()
            if not name:
                raise ValidationError('Category name is required')
            category.name = name
        if 'display_order' in data:
            category.display_order = MenuService._clean_display_order(data['display_order'])

        category.save()
        return category

    @staticmethod
    def delete_category(category_id: Any, principal: Principal) -> None:
        """Delete a category. Its items stay on the menu, uncategorized."""
        category = MenuService._get_scoped(MenuCategory, category_id, principal)
        logger.info(f"Deleting category {category.name} ({category.pk})")
        category.delete()

    # Items

    @staticmethod
    def list_items(restaurant: Restaurant, category: Optional[Any] = None) -> QuerySet:
        """
        Get menu items with an optional category filter.

        Args:
            restaurant: Restaurant instance
            category: Optional category id

        Returns:
            QuerySet of menu items
        """
        queryset = MenuItem.objects.filter(restaurant=restaurant).select_related('category')
        if category is not None and category != '':
            queryset = queryset.filter(category_id=category)
        return queryset.order_by('name', 'id')

    @staticmethod
    def create_item(restaurant: Restaurant, data: Dict[str, Any]) -> MenuItem:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError('Item name is required')
        if data.get('price') is None:
            raise ValidationError('Item price is required')

        return MenuItem.objects.create(
            restaurant=restaurant,
            name=name,
            description=data.get('description') or '',
            price=MenuService._clean_price(data['price']),
            available=bool(data.get('available', True)),
            customizations=MenuService._clean_customizations(data.get('customizations')),
            category=MenuService._resolve_category(restaurant, data.get('category')),
        )

    @staticmethod
    def update_item(item_id: Any, data: Dict[str, Any], principal: Principal) -> MenuItem:
        """Merge the given fields onto an item; other fields are unchanged."""
        item = MenuService._get_scoped(MenuItem, item_id, principal)

        for field in ITEM_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == 'name':
                value = (value or '').strip()
                if not value:
                    raise ValidationError('Item name is required')
            elif field == 'description':
                value = value or ''
            elif field == 'price':
                value = MenuService._clean_price(value)
            elif field == 'available':
                value = bool(value)
            elif field == 'customizations':
                value = MenuService._clean_customizations(value)
            elif field == 'category':
                value = MenuService._resolve_category(item.restaurant, value)
            setattr(item, field, value)

        item.save()
        return item

    @staticmethod
    def delete_item(item_id: Any, principal: Principal) -> None:
        item = MenuService._get_scoped(MenuItem, item_id, principal)
        logger.info(f"Deleting menu item {item.name} ({item.pk})")
        item.delete()

    @staticmethod
    def get_item(item_id: Any, principal: Principal) -> MenuItem:
        return MenuService._get_scoped(MenuItem, item_id, principal)

    @staticmethod
    def get_available_menu(restaurant: Restaurant) -> List[Dict[str, Any]]:
        """
        Available items grouped by category.

        Categories come in display order; uncategorized items are listed last
        under a null category. Empty categories are skipped.
        """
        items = MenuItem.objects.filter(restaurant=restaurant, available=True).order_by('name', 'id')

        by_category: Dict[Optional[int], List[MenuItem]] = {}
        for item in items:
            by_category.setdefault(item.category_id, []).append(item)

        menu = []
        for category in MenuService.list_categories(restaurant):
            if category.pk in by_category:
                menu.append({'category': category, 'items': by_category.pop(category.pk)})
        if None in by_category:
            menu.append({'category': None, 'items': by_category.pop(None)})
        return menu

    @staticmethod
    def _get_scoped(model, pk: Any, principal: Principal):
        queryset = model.objects.all()
        if principal.tenant_scope is not None:
            queryset = queryset.filter(restaurant_id=principal.tenant_scope)
        elif not principal.is_platform_operator:
            queryset = queryset.none()
        try:
            return queryset.get(pk=pk)
        except (model.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound(f'{model._meta.verbose_name.capitalize()} not found')

    @staticmethod
    def _resolve_category(restaurant: Restaurant, category_id: Any) -> Optional[MenuCategory]:
        if category_id in (None, ''):
            return None
        try:
            return MenuCategory.objects.get(pk=category_id, restaurant=restaurant)
        except (MenuCategory.DoesNotExist, ValueError, TypeError):
            raise ValidationError('Category not found for this restaurant', {'category': category_id})

    @staticmethod
    def _clean_price(value: Any) -> Decimal:
        return parse_amount('price', value, 10, 2, label='Price')

    @staticmethod
    def _clean_display_order(value: Any) -> int:
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            raise ValidationError('display_order must be an integer', {'display_order': value})

    @staticmethod
    def _clean_customizations(value: Any) -> List[Any]:
        if value in (None, ''):
            return []
        if not isinstance(value, list):
            raise ValidationError('customizations must be a list')
        return value
