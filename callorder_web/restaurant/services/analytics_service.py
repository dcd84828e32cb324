"""
Sales analytics computed on demand from current orders.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db.models import Count, Q, QuerySet, Sum

from restaurant.models import Order, OrderLine
from restaurant.services.order_service import OrderService
from shared.authentication import Principal
from shared.utils import get_local_now, to_local

logger = logging.getLogger(__name__)

TOP_ITEMS_LIMIT = 5


class AnalyticsService:
    """Read-only rollups over orders"""

    @staticmethod
    def get_summary(principal: Principal, now: Optional[datetime] = None,
                    top_n: int = TOP_ITEMS_LIMIT) -> Dict[str, Any]:
        """
        Order counts and revenue for the caller's scope.

        Revenue counts completed orders, except for the cancelled bucket which
        reports the value of cancelled orders. Windows: today since local
        midnight, week the trailing 7 days, month the trailing 30 days.

        Args:
            principal: Caller; platform operators see every restaurant
            now: Reference time, defaults to the current time
            top_n: Number of top items to return

        Returns:
            Dictionary of rollups
        """
        orders = OrderService.scoped_orders(principal)
        local_now = to_local(now) if now is not None else get_local_now()
        today_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)

        totals = orders.aggregate(
            total_orders=Count('id'),
            completed_count=Count('id', filter=Q(status=Order.STATUS_COMPLETED)),
            completed_revenue=Sum('total', filter=Q(status=Order.STATUS_COMPLETED)),
            cancelled_count=Count('id', filter=Q(status=Order.STATUS_CANCELLED)),
            cancelled_revenue=Sum('total', filter=Q(status=Order.STATUS_CANCELLED)),
            pending_count=Count('id', filter=Q(status=Order.STATUS_PENDING)),
            confirmed_count=Count('id', filter=Q(status=Order.STATUS_CONFIRMED)),
        )

        completed = orders.filter(status=Order.STATUS_COMPLETED)
        return {
            'total_orders': totals['total_orders'],
            'completed': {
                'count': totals['completed_count'],
                'revenue': totals['completed_revenue'] or Decimal('0'),
            },
            'cancelled': {
                'count': totals['cancelled_count'],
                'revenue': totals['cancelled_revenue'] or Decimal('0'),
            },
            'pending': {'count': totals['pending_count']},
            'confirmed': {'count': totals['confirmed_count']},
            'today': AnalyticsService._window(completed, today_start, local_now),
            'week': AnalyticsService._window(completed, local_now - timedelta(days=7), local_now),
            'month': AnalyticsService._window(completed, local_now - timedelta(days=30), local_now),
            'top_items': AnalyticsService.top_items(principal, top_n),
        }

    @staticmethod
    def top_items(principal: Principal, limit: int = TOP_ITEMS_LIMIT) -> List[Dict[str, Any]]:
        """Most ordered item names by quantity, across all orders"""
        lines = OrderLine.objects.all()
        if not principal.is_platform_operator:
            lines = lines.filter(order__restaurant_id=principal.restaurant_id)

        rows = (
            lines.values('name')
            .annotate(quantity=Sum('quantity'), orders=Count('order', distinct=True))
            .order_by('-quantity', 'name')[:limit]
        )
        return [{'name': row['name'], 'quantity': row['quantity'], 'orders': row['orders']} for row in rows]

    @staticmethod
    def _window(completed: QuerySet, start: datetime, end: datetime) -> Dict[str, Any]:
        stats = completed.filter(created_at__gte=start, created_at__lte=end).aggregate(
            orders=Count('id'), revenue=Sum('total')
        )
        return {'orders': stats['orders'], 'revenue': stats['revenue'] or Decimal('0')}

