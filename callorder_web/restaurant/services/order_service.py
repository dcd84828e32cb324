"""
Order service: order intake, pricing and the status lifecycle.
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from restaurant.adapters import (
    NotificationAdapter, PaymentLinkAdapter, PrintAdapter, load_adapter,
)
from restaurant.models import (
    MenuItem, NotificationLog, Order, OrderLine, PrintJob, Restaurant,
)
from restaurant.validators import parse_amount
from shared.authentication import Principal
from shared.exceptions import InvalidTransition, NotFound, UpstreamDegraded, ValidationError
from shared.utils import format_money, normalize_phone_number

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: (Order.STATUS_CONFIRMED, Order.STATUS_COMPLETED, Order.STATUS_CANCELLED),
    Order.STATUS_CONFIRMED: (Order.STATUS_COMPLETED, Order.STATUS_CANCELLED),
    Order.STATUS_COMPLETED: (),
    Order.STATUS_CANCELLED: (),
}

ORDER_NUMBER_PREFIXES = {
    Order.SOURCE_DASHBOARD: 'ORD',
    Order.SOURCE_PHONE: 'PHONE',
}

UPDATABLE_FIELDS = (
    'customer_name', 'customer_phone', 'delivery_address', 'notes',
    'payment_method', 'order_type', 'items',
)

DEGRADED_PAYMENT_LINK = 'payment_link'
DEGRADED_NOTIFICATION = 'notification'
DEGRADED_PRINT = 'print'

# Order money columns are DecimalField(16, 6)
AMOUNT_DIGITS = 16
AMOUNT_PLACES = 6
MAX_ORDER_AMOUNT = Decimal(10) ** (AMOUNT_DIGITS - AMOUNT_PLACES)
MAX_LINE_QUANTITY = 2147483647


@dataclass
class OrderResult:
    """Order plus the side effects that failed while handling it"""

    order: Order
    degraded: List[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)


@dataclass
class LineInput:
    name: str
    unit_price: Decimal
    quantity: int
    menu_item: Optional[MenuItem] = None
    notes: str = ''


class OrderService:
    """
    Service for order-related operations.

    Side-effect adapters are passed in, or loaded from the INTAKE_*_ADAPTER settings.
    """

    def __init__(
        self,
        notifier: Optional[NotificationAdapter] = None,
        payments: Optional[PaymentLinkAdapter] = None,
        printer: Optional[PrintAdapter] = None,
    ):
        self.notifier = notifier or load_adapter('INTAKE_NOTIFICATION_ADAPTER')
        self.payments = payments or load_adapter('INTAKE_PAYMENT_ADAPTER')
        self.printer = printer or load_adapter('INTAKE_PRINT_ADAPTER')

    # Creation

    def create_order(
        self,
        restaurant: Restaurant,
        customer: Dict[str, Any],
        order_type: str,
        line_items: List[Dict[str, Any]],
        payment_method: str = Order.PAYMENT_CASH,
        source: str = Order.SOURCE_DASHBOARD,
        notes: str = '',
    ) -> OrderResult:
        """
        Validate, price and persist an order, then fire payment side effects.

        Args:
            restaurant: Restaurant the order belongs to
            customer: {"name", "phone", "address"}
            order_type: "delivery" or "pickup"
            line_items: [{"name", "price", "quantity", "menu_item_id"?, "notes"?}]
            payment_method: "card" or "cash"
            source: "dashboard" or "phone"
            notes: Free-text order notes

        Returns:
            OrderResult; the order is persisted even when side effects fail

        Raises:
            ValidationError: before anything is written
        """
        customer = customer or {}
        customer_name = (customer.get('name') or '').strip()
        customer_phone = normalize_phone_number(customer.get('phone'))
        address = (customer.get('address') or '').strip()

        if not customer_name:
            raise ValidationError('Customer name is required')
        if source not in ORDER_NUMBER_PREFIXES:
            raise ValidationError('Unknown order source', {'source': source})
        OrderService._validate_order_type(order_type)
        OrderService._validate_payment_method(payment_method)
        if order_type == Order.TYPE_DELIVERY and source == Order.SOURCE_DASHBOARD and not address:
            raise ValidationError('Delivery address is required for delivery orders')

        lines = OrderService._validate_line_items(restaurant, line_items)
        pricing = OrderService.calculate_pricing(restaurant, order_type, lines)

        if pricing['total'] >= MAX_ORDER_AMOUNT:
            raise ValidationError('Order total is too large', {'total': str(pricing['total'])})
        if restaurant.minimum_order is not None and pricing['subtotal'] < restaurant.minimum_order:
            raise ValidationError(
                f'Minimum order is {format_money(restaurant.minimum_order)}',
                {'subtotal': str(pricing['subtotal']), 'minimum_order': str(restaurant.minimum_order)},
            )

        with transaction.atomic():
            order = Order.objects.create(
                restaurant=restaurant,
                order_number=OrderService.generate_order_number(source),
                customer_name=customer_name,
                customer_phone=customer_phone,
                delivery_address=address,
                order_type=order_type,
                payment_method=payment_method,
                status=Order.STATUS_PENDING,
                source=source,
                notes=notes or '',
                **pricing,
            )
            OrderService._save_lines(order, lines)

        logger.info(
            f"✅ Order {order.order_number} created for {restaurant.name} "
            f"({source}, {order_type}, total {format_money(order.total)})"
        )

        result = OrderResult(order=order)
        if payment_method == Order.PAYMENT_CARD:
            self._request_payment(result)
        return result

    @staticmethod
    def calculate_pricing(restaurant: Restaurant, order_type: str, lines: List[LineInput]) -> Dict[str, Decimal]:
        """
        Totals kept at the six decimal places the order columns store.
        Only tax needs rounding to get there (half-up). Display rounding is
        left to format_money.

        Example: 12.99 x 1 + 14.99 x 2 at 0.08 tax with delivery
        gives subtotal 42.97, tax 3.4376, delivery 5.00, total 51.4076.
        """
        subtotal = sum((line.unit_price * line.quantity for line in lines), Decimal('0'))
        tax = (subtotal * restaurant.effective_tax_rate).quantize(Decimal(1).scaleb(-AMOUNT_PLACES), ROUND_HALF_UP)
        delivery_fee = restaurant.effective_delivery_fee if order_type == Order.TYPE_DELIVERY else Decimal('0')
        return {
            'subtotal': subtotal,
            'tax': tax,
            'delivery_fee': delivery_fee,
            'total': subtotal + tax + delivery_fee,
        }

    @staticmethod
    def generate_order_number(source: str) -> str:
        """
        Timestamp order number with a conflict check.

        Best-effort only: two writers can still pick the same number between
        the check and the insert.
        """
        base = f"{ORDER_NUMBER_PREFIXES[source]}-{int(time.time() * 1000)}"
        candidate = base
        suffix = 1
        while Order.objects.filter(order_number=candidate).exists():
            suffix += 1
            candidate = f"{base}-{suffix}"
        return candidate

    # Lifecycle

    def transition_status(self, order_id: Any, new_status: str, principal: Principal) -> OrderResult:
        """
        Move an order to a new status.

        Moving to the current non-terminal status is a no-op. Completing an
        order records a print job and dispatches it after the commit.

        Raises:
            NotFound: order absent or outside the caller's restaurant
            ValidationError: unknown status
            InvalidTransition: order is terminal or the target is not reachable
        """
        if new_status not in ALLOWED_TRANSITIONS:
            raise ValidationError('Invalid status', {'status': new_status})

        print_job = None
        with transaction.atomic():
            order = OrderService.scoped_orders(principal).select_for_update().filter(
                pk=OrderService._clean_uuid(order_id)
            ).first()
            if order is None:
                raise NotFound('Order not found')

            old_status = order.status
            if old_status == new_status and not order.is_terminal:
                return OrderResult(order=order)
            if new_status not in ALLOWED_TRANSITIONS[old_status]:
                raise InvalidTransition(
                    f'Cannot change order from {old_status} to {new_status}',
                    {'from': old_status, 'to': new_status},
                )

            order.status = new_status
            order.save(update_fields=['status', 'updated_at'])

            if new_status == Order.STATUS_COMPLETED:
                try:
                    with transaction.atomic():
                        print_job = PrintJob.objects.create(order=order, trigger=PrintJob.TRIGGER_COMPLETED)
                except IntegrityError:
                    logger.warning(f"Print job already recorded for order {order.order_number}")

        logger.info(f"Order {order.order_number}: {old_status} -> {new_status}")

        result = OrderResult(order=order)
        self._notify(result, OrderService._status_message(order))
        if print_job is not None:
            self._dispatch_print(result, print_job)
        return result

    def update_order(self, order_id: Any, fields: Dict[str, Any], principal: Principal) -> Order:
        """
        Merge fields onto an order without re-pricing it.

        Replacing line items keeps the stored totals; callers that need new
        totals must create a new order.
        """
        if 'status' in fields:
            raise ValidationError('Use the status endpoint to change order status')
        unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError('Unknown order fields', {'fields': unknown})

        order = self.get_order(order_id, principal)
        changes = {}

        if 'customer_name' in fields:
            changes['customer_name'] = (fields['customer_name'] or '').strip()
            if not changes['customer_name']:
                raise ValidationError('Customer name is required')
        if 'customer_phone' in fields:
            changes['customer_phone'] = normalize_phone_number(fields['customer_phone'])
        if 'delivery_address' in fields:
            changes['delivery_address'] = (fields['delivery_address'] or '').strip()
        if 'notes' in fields:
            changes['notes'] = fields['notes'] or ''
        if 'payment_method' in fields:
            OrderService._validate_payment_method(fields['payment_method'])
            changes['payment_method'] = fields['payment_method']
        if 'order_type' in fields:
            OrderService._validate_order_type(fields['order_type'])
            changes['order_type'] = fields['order_type']

        lines = None
        if 'items' in fields:
            lines = OrderService._validate_line_items(order.restaurant, fields['items'])

        with transaction.atomic():
            for key, value in changes.items():
                setattr(order, key, value)
            order.save()
            if lines is not None:
                order.lines.all().delete()
                OrderService._save_lines(order, lines)

        logger.info(f"Order {order.order_number} updated: {', '.join(sorted(fields))}")
        return order

    def confirm_payment(self, link_id: str) -> OrderResult:
        """
        Record an external payment confirmation.
        The order is marked paid and a pending order becomes confirmed.
        """
        if not link_id:
            raise ValidationError('Payment link id is required')

        with transaction.atomic():
            order = Order.objects.select_for_update().filter(payment_link_id=link_id).first()
            if order is None:
                raise NotFound('Payment link not found')

            order.payment_status = Order.PAYMENT_PAID
            if order.status == Order.STATUS_PENDING:
                order.status = Order.STATUS_CONFIRMED
            order.save(update_fields=['payment_status', 'status', 'updated_at'])

        logger.info(f"💳 Payment confirmed for order {order.order_number}")
        result = OrderResult(order=order)
        self._notify(result, OrderService._status_message(order))
        return result

    # Reads

    def get_order(self, order_id: Any, principal: Principal) -> Order:
        order = OrderService.scoped_orders(principal).filter(pk=OrderService._clean_uuid(order_id)).first()
        if order is None:
            raise NotFound('Order not found')
        return order

    def list_orders(self, principal: Principal, status: Optional[str] = None) -> QuerySet:
        """Orders in the caller's scope, newest first"""
        queryset = OrderService.scoped_orders(principal)
        if status:
            if status not in ALLOWED_TRANSITIONS:
                raise ValidationError('Invalid status', {'status': status})
            queryset = queryset.filter(status=status)
        return queryset.select_related('restaurant').prefetch_related('lines').order_by('-created_at')

    def orders_for_phone(self, restaurant: Restaurant, phone: str) -> QuerySet:
        normalized = normalize_phone_number(phone)
        if not normalized:
            return Order.objects.none()
        return Order.objects.filter(
            restaurant=restaurant, customer_phone=normalized
        ).prefetch_related('lines').order_by('-created_at')

    # Side effects

    def _request_payment(self, result: OrderResult):
        order = result.order
        try:
            link = self.payments.create_link(str(order.pk), order.total, order.restaurant)
        except UpstreamDegraded as e:
            logger.error(f"❌ Payment link failed for order {order.order_number}: {e}")
            result.degraded.append(DEGRADED_PAYMENT_LINK)
            return

        order.payment_link_id = link.link_id
        order.payment_url = link.url
        order.save(update_fields=['payment_link_id', 'payment_url', 'updated_at'])

        message = (
            f"Thanks for your order {order.order_number} from {order.restaurant.name}. "
            f"Total {format_money(order.total)}. Pay here: {link.url}"
        )
        self._notify(result, message)

    def _notify(self, result: OrderResult, message: str):
        order = result.order
        if not order.customer_phone:
            logger.debug(f"Order {order.order_number} has no customer phone, skipping notification")
            return

        try:
            receipt = self.notifier.send(order.customer_phone, message, order.restaurant)
        except UpstreamDegraded as e:
            logger.error(f"❌ Notification failed for order {order.order_number}: {e}")
            NotificationLog.objects.create(
                order=order,
                destination=order.customer_phone,
                message=message,
                status=NotificationLog.STATUS_FAILED,
            )
            result.degraded.append(DEGRADED_NOTIFICATION)
            return

        NotificationLog.objects.create(
            order=order,
            destination=order.customer_phone,
            message=message,
            receipt_id=receipt.receipt_id,
            status=NotificationLog.STATUS_SENT,
        )
        logger.info(f"📱 Notification {receipt.receipt_id} sent for order {order.order_number}")

    def _dispatch_print(self, result: OrderResult, print_job: PrintJob):
        try:
            print_job.external_id = self.printer.dispatch(str(result.order.pk), result.order.restaurant)
            print_job.status = PrintJob.STATUS_SENT
        except UpstreamDegraded as e:
            logger.error(f"❌ Print dispatch failed for order {result.order.order_number}: {e}")
            print_job.status = PrintJob.STATUS_FAILED
            print_job.error = str(e)
            result.degraded.append(DEGRADED_PRINT)
        print_job.save(update_fields=['external_id', 'status', 'error'])

    # Helpers

    @staticmethod
    def _status_message(order: Order) -> str:
        return (
            f"Your order {order.order_number} from {order.restaurant.name} "
            f"is now {order.get_status_display().lower()}."
        )

    @staticmethod
    def scoped_orders(principal: Principal) -> QuerySet:
        if principal.is_platform_operator:
            return Order.objects.all()
        if principal.restaurant_id is None:
            return Order.objects.none()
        return Order.objects.filter(restaurant_id=principal.restaurant_id)

    @staticmethod
    def _clean_uuid(order_id: Any) -> Any:
        try:
            Order._meta.pk.to_python(order_id)
        except DjangoValidationError:
            raise NotFound('Order not found')
        return order_id

    @staticmethod
    def _validate_order_type(order_type: Any):
        if order_type not in dict(Order.TYPE_CHOICES):
            raise ValidationError('Order type must be delivery or pickup', {'order_type': order_type})

    @staticmethod
    def _validate_payment_method(payment_method: Any):
        if payment_method not in dict(Order.PAYMENT_METHOD_CHOICES):
            raise ValidationError('Payment method must be card or cash', {'payment_method': payment_method})

    @staticmethod
    def _validate_line_items(restaurant: Restaurant, line_items: Any) -> List[LineInput]:
        if not isinstance(line_items, list) or not line_items:
            raise ValidationError('Order must have at least one item')

        menu_ids = [item.get('menu_item_id') for item in line_items if isinstance(item, dict) and item.get('menu_item_id')]
        menu_items = {}
        if menu_ids:
            try:
                menu_items = {
                    item.pk: item
                    for item in MenuItem.objects.filter(restaurant=restaurant, pk__in=menu_ids)
                }
            except (ValueError, TypeError):
                raise ValidationError('Invalid menu item reference', {'menu_item_ids': menu_ids})

        lines = []
        for idx, item in enumerate(line_items):
            position = idx + 1
            if not isinstance(item, dict):
                raise ValidationError(f'Item {position} is invalid')

            menu_item = None
            if item.get('menu_item_id'):
                try:
                    menu_item = menu_items.get(int(item['menu_item_id']))
                except (TypeError, ValueError):
                    menu_item = None
                if menu_item is None:
                    raise ValidationError(f'Item {position}: menu item not found', {'menu_item_id': item['menu_item_id']})

            name = (item.get('name') or (menu_item.name if menu_item else '')).strip()
            if not name:
                raise ValidationError(f'Item {position}: name is required')

            price = item.get('price', item.get('unit_price'))
            if price is None and menu_item is not None:
                price = menu_item.price
            unit_price = parse_amount('price', price, AMOUNT_DIGITS, AMOUNT_PLACES, label=f'Item {position}: price')

            quantity = OrderService._clean_quantity(item.get('quantity', 1))
            if quantity is None or quantity > MAX_LINE_QUANTITY:
                raise ValidationError(
                    f'Item {position}: quantity must be a positive integer', {'quantity': item.get('quantity')}
                )

            notes = item.get('notes') or item.get('customizations') or ''
            if isinstance(notes, list):
                notes = ', '.join(str(n) for n in notes)

            lines.append(LineInput(
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                menu_item=menu_item,
                notes=str(notes)[:500],
            ))
        return lines

    @staticmethod
    def _clean_quantity(value: Any) -> Optional[int]:
        """Positive integer quantity, or None. Integral floats such as 2.0 are accepted."""
        if isinstance(value, bool):
            return None
        if isinstance(value, float):
            if not value.is_integer():
                return None
            value = int(value)
        try:
            quantity = int(value)
        except (TypeError, ValueError):
            return None
        return quantity if quantity > 0 else None

    @staticmethod
    def _save_lines(order: Order, lines: List[LineInput]):
        OrderLine.objects.bulk_create([
            OrderLine(
                order=order,
                menu_item=line.menu_item,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                notes=line.notes,
            )
            for line in lines
        ])
