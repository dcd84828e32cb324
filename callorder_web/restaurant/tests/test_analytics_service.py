"""
Unit tests for AnalyticsService.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from django.test import TestCase
from django.utils import timezone

from restaurant.models import Order, Restaurant
from restaurant.services.analytics_service import AnalyticsService
from restaurant.services.order_service import OrderService
from shared.authentication import Principal


class AnalyticsServiceTestCase(TestCase):
    """Test cases for AnalyticsService"""

    def setUp(self):
        self.restaurant = Restaurant.objects.create(name='Pizza Palace')
        self.other_restaurant = Restaurant.objects.create(name='Burger Barn')
        self.owner = Principal(id='1', role='restaurant_owner', restaurant_id=str(self.restaurant.pk))
        self.operator = Principal(id='2', role='super_admin')
        self.service = OrderService(notifier=MagicMock(), payments=MagicMock(), printer=MagicMock())
        self.now = timezone.now()

    def _order(self, restaurant, items, status=Order.STATUS_PENDING, age=None):
        order = self.service.create_order(restaurant, {'name': 'John Doe'}, 'pickup', items).order
        updates = {'status': status}
        if age is not None:
            updates['created_at'] = self.now - age
        Order.objects.filter(pk=order.pk).update(**updates)
        return order

    def test_empty_summary(self):
        summary = AnalyticsService.get_summary(self.owner, now=self.now)

        self.assertEqual(summary['total_orders'], 0)
        self.assertEqual(summary['completed'], {'count': 0, 'revenue': Decimal('0')})
        self.assertEqual(summary['today'], {'orders': 0, 'revenue': Decimal('0')})
        self.assertEqual(summary['top_items'], [])

    def test_summary_buckets(self):
        pizza = [{'name': 'Margherita Pizza', 'price': '10.00', 'quantity': 1}]
        completed = self._order(self.restaurant, pizza, Order.STATUS_COMPLETED)
        cancelled = self._order(self.restaurant, pizza, Order.STATUS_CANCELLED)
        self._order(self.restaurant, pizza)
        self._order(self.restaurant, pizza, Order.STATUS_CONFIRMED)

        summary = AnalyticsService.get_summary(self.owner, now=self.now)

        self.assertEqual(summary['total_orders'], 4)
        self.assertEqual(summary['completed']['count'], 1)
        self.assertEqual(summary['completed']['revenue'], completed.total)
        self.assertEqual(summary['cancelled']['count'], 1)
        self.assertEqual(summary['cancelled']['revenue'], cancelled.total)
        self.assertEqual(summary['pending']['count'], 1)
        self.assertEqual(summary['confirmed']['count'], 1)

    def test_windows_count_completed_orders_only(self):
        items = [{'name': 'Classic Burger', 'price': '10.00', 'quantity': 1}]
        self._order(self.restaurant, items, Order.STATUS_COMPLETED, age=timedelta(minutes=1))
        self._order(self.restaurant, items, Order.STATUS_COMPLETED, age=timedelta(days=3))
        self._order(self.restaurant, items, Order.STATUS_COMPLETED, age=timedelta(days=20))
        self._order(self.restaurant, items, Order.STATUS_COMPLETED, age=timedelta(days=45))
        self._order(self.restaurant, items, Order.STATUS_PENDING, age=timedelta(minutes=1))

        summary = AnalyticsService.get_summary(self.owner, now=self.now)

        self.assertEqual(summary['week']['orders'], 2)
        self.assertEqual(summary['month']['orders'], 3)
        self.assertEqual(summary['month']['revenue'], Decimal('32.40'))
        self.assertLessEqual(summary['today']['orders'], 1)

    def test_scope(self):
        items = [{'name': 'Classic Burger', 'price': '9.99', 'quantity': 1}]
        self._order(self.restaurant, items, Order.STATUS_COMPLETED)
        self._order(self.other_restaurant, items, Order.STATUS_COMPLETED)

        self.assertEqual(AnalyticsService.get_summary(self.owner, now=self.now)['total_orders'], 1)
        self.assertEqual(AnalyticsService.get_summary(self.operator, now=self.now)['total_orders'], 2)

    def test_top_items(self):
        self._order(self.restaurant, [
            {'name': 'Margherita Pizza', 'price': '12.99', 'quantity': 2},
            {'name': 'Coca Cola', 'price': '2.99', 'quantity': 1},
        ])
        self._order(self.restaurant, [{'name': 'Coca Cola', 'price': '2.99', 'quantity': 3}])
        self._order(self.other_restaurant, [{'name': 'Classic Burger', 'price': '9.99', 'quantity': 10}])

        top = AnalyticsService.top_items(self.owner)

        self.assertEqual(top, [
            {'name': 'Coca Cola', 'quantity': 4, 'orders': 2},
            {'name': 'Margherita Pizza', 'quantity': 2, 'orders': 1},
        ])
        self.assertEqual(AnalyticsService.top_items(self.operator, limit=1)[0]['name'], 'Classic Burger')
