"""
Voice-agent tool calls: menu lookup, order creation and order tracking.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from django.core.exceptions import ValidationError as DjangoValidationError

from restaurant.models import Order, Restaurant
from restaurant.services.menu_service import MenuService
from restaurant.services.order_service import OrderService
from restaurant.services.tenant_service import TenantService
from shared.config_settings import ConfigSettings
from shared.exceptions import IntakeError, ValidationError
from shared.utils import format_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StructuredArguments:
    """Arguments delivered as a JSON object"""

    values: Dict[str, Any]

    def parse(self) -> Dict[str, Any]:
        return dict(self.values)


@dataclass(frozen=True)
class RawArguments:
    """Arguments delivered as a serialized JSON string"""

    payload: str

    def parse(self) -> Dict[str, Any]:
        if not self.payload.strip():
            return {}
        try:
            values = json.loads(self.payload)
        except json.JSONDecodeError as e:
            raise ValidationError('Tool arguments are not valid JSON', {'error': str(e)})
        if not isinstance(values, dict):
            raise ValidationError('Tool arguments must be a JSON object')
        return values


ToolArguments = Union[StructuredArguments, RawArguments]


def tool_arguments(value: Any) -> ToolArguments:
    if value is None:
        return StructuredArguments({})
    if isinstance(value, dict):
        return StructuredArguments(value)
    if isinstance(value, str):
        return RawArguments(value)
    raise ValidationError('Tool arguments must be an object or a JSON string')


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: ToolArguments
    # Set when the call itself is malformed; reported back instead of running a handler
    error: Optional[ValidationError] = None


class ToolError(IntakeError):
    """Structured tool failure reported back to the voice agent"""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = code


def _arg(args: Dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if args.get(name) not in (None, ''):
            return args[name]
    return default


def _caller_field(call_meta: Dict[str, Any], key: str, name: str) -> Any:
    value = call_meta.get(key)
    return value.get(name) if isinstance(value, dict) else None


class VoiceToolService:
    """Handles tool calls sent by the voice agent"""

    def __init__(self, order_service: Optional[OrderService] = None):
        self.order_service = order_service or OrderService()
        self.handlers: Dict[str, Callable[[Dict[str, Any], Dict[str, Any]], Dict[str, Any]]] = {
            'get_menu': self._handle_get_menu,
            'create_order': self._handle_create_order,
            'track_order': self._handle_track_order,
        }

    @staticmethod
    def parse_tool_calls(payload: Dict[str, Any]) -> List[ToolCall]:
        """
        Extract tool calls from a webhook payload.

        Accepts message.toolCalls (list) or message.toolCall (single).
        A malformed entry becomes a ToolCall carrying its error, so the
        other calls in the same request still run.

        Raises:
            ValidationError: the envelope is malformed or holds no tool call
        """
        if not isinstance(payload, dict):
            raise ValidationError('Tool payload must be a JSON object')
        message = payload.get('message') or {}
        if not isinstance(message, dict):
            raise ValidationError('message must be an object')

        raw_calls = message.get('toolCalls') or message.get('toolCallList')
        if not raw_calls and message.get('toolCall'):
            raw_calls = [message['toolCall']]
        if not raw_calls or not isinstance(raw_calls, list):
            raise ValidationError('No tool call')

        return [VoiceToolService._parse_tool_call(raw) for raw in raw_calls]

    @staticmethod
    def _parse_tool_call(raw: Any) -> ToolCall:
        no_arguments = StructuredArguments({})
        if not isinstance(raw, dict):
            return ToolCall('', '', no_arguments, ValidationError('Malformed tool call: expected an object'))

        call_id = str(raw.get('id') or '')
        function = raw.get('function')
        if function is None:
            function = {}
        if not isinstance(function, dict):
            return ToolCall(call_id, '', no_arguments, ValidationError('Malformed tool call: function must be an object'))

        name = str(function.get('name') or raw.get('name') or '')
        try:
            arguments = tool_arguments(function.get('arguments', raw.get('arguments')))
        except ValidationError as e:
            return ToolCall(call_id, name, no_arguments, e)
        return ToolCall(call_id, name, arguments)

    def handle_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process every tool call in a webhook payload.

        Returns:
            {"results": [{"toolCallId", "result"} or {"toolCallId", "error"}]}
        """
        tool_calls = self.parse_tool_calls(payload)
        call_meta = payload.get('call')
        if not isinstance(call_meta, dict):
            call_meta = {}
        return {'results': [self.handle_tool_call(tool_call, call_meta) for tool_call in tool_calls]}

    def handle_tool_call(self, tool_call: ToolCall, call_meta: Dict[str, Any]) -> Dict[str, Any]:
        if tool_call.error is not None:
            logger.warning(f"Malformed tool call {tool_call.id or '(no id)'}: {tool_call.error.message}")
            return {'toolCallId': tool_call.id, 'error': tool_call.error.to_dict()}

        logger.info(f"🔧 Tool call {tool_call.id}: {tool_call.name}")

        handler = self.handlers.get(tool_call.name)
        if handler is None:
            logger.warning(f"Unsupported tool requested: {tool_call.name}")
            error = ToolError('unsupported_operation', f'Unsupported tool: {tool_call.name}')
            return {'toolCallId': tool_call.id, 'error': error.to_dict()}

        try:
            args = tool_call.arguments.parse()
            result = handler(args, call_meta)
        except IntakeError as e:
            logger.info(f"Tool call {tool_call.id} failed: {e.code} {e.message}")
            return {'toolCallId': tool_call.id, 'error': e.to_dict()}
        except Exception as e:
            logger.error(f"❌ Unexpected error in tool {tool_call.name}: {e}", exc_info=True)
            error = ToolError('internal_error', 'The tool failed unexpectedly')
            return {'toolCallId': tool_call.id, 'error': error.to_dict()}

        return {'toolCallId': tool_call.id, 'result': result}

    def resolve_restaurant(self, args: Dict[str, Any], call_meta: Dict[str, Any]) -> Restaurant:
        """
        Find the restaurant for a tool call.

        Order: restaurantId argument, the call's voice line, then the
        VOICE_FALLBACK_RESTAURANT_ID setting.
        """
        restaurant_id = _arg(args, 'restaurantId', 'restaurant_id')
        if restaurant_id:
            restaurant = VoiceToolService._restaurant_by_id(restaurant_id)
            if restaurant is not None:
                return restaurant
            logger.warning(f"Tool call named unknown restaurant {restaurant_id}, trying the call line")

        line_id = call_meta.get('phoneNumberId') or _caller_field(call_meta, 'phoneNumber', 'number')
        restaurant = TenantService.find_tenant_by_voice_line(line_id)
        if restaurant is not None:
            return restaurant

        fallback_id = ConfigSettings.get_voice_config()['fallback_restaurant_id']
        if fallback_id:
            restaurant = VoiceToolService._restaurant_by_id(fallback_id)
            if restaurant is not None:
                logger.warning(f"⚠️ No restaurant for voice line {line_id}, using fallback {restaurant.name}")
                return restaurant

        logger.error(f"❌ No restaurant for voice line {line_id} and no usable fallback")
        raise ToolError('not_configured', 'This line is not configured to take orders')

    # Handlers

    def _handle_get_menu(self, args: Dict[str, Any], call_meta: Dict[str, Any]) -> Dict[str, Any]:
        restaurant = self.resolve_restaurant(args, call_meta)
        menu = []
        for group in MenuService.get_available_menu(restaurant):
            category = group['category']
            menu.append({
                'category': category.name if category else None,
                'items': [
                    {
                        'id': item.pk,
                        'name': item.name,
                        'description': item.description,
                        'price': str(item.price),
                        'customizations': item.customizations,
                    }
                    for item in group['items']
                ],
            })
        return {'success': True, 'restaurant': restaurant.name, 'menu': menu}

    def _handle_create_order(self, args: Dict[str, Any], call_meta: Dict[str, Any]) -> Dict[str, Any]:
        customer_name = _arg(args, 'customerName', 'customer_name')
        items = args.get('items')
        missing = []
        if not customer_name or not str(customer_name).strip():
            missing.append('customerName')
        if not isinstance(items, list) or not items:
            missing.append('items')
        if missing:
            raise ValidationError('Missing order details', {'missing': missing})

        restaurant = self.resolve_restaurant(args, call_meta)
        customer = {
            'name': str(customer_name),
            'phone': _arg(args, 'customerPhone', 'customer_phone', 'phone_number')
                     or _caller_field(call_meta, 'customer', 'number'),
            'address': _arg(args, 'address', 'deliveryAddress', default=''),
        }

        result = self.order_service.create_order(
            restaurant=restaurant,
            customer=customer,
            order_type=_arg(args, 'orderType', 'order_type', default=Order.TYPE_PICKUP),
            line_items=[VoiceToolService._line_item(item) for item in items],
            payment_method=_arg(args, 'paymentMethod', 'payment_method', default=Order.PAYMENT_CARD),
            source=Order.SOURCE_PHONE,
            notes=_arg(args, 'notes', default=''),
        )
        order = result.order
        total = format_money(order.total)

        response = {
            'success': True,
            'orderId': str(order.pk),
            'orderNumber': order.order_number,
            'total': total,
            'message': f"Order {order.order_number} placed. Your total is {total}.",
        }
        if order.payment_url:
            response['paymentUrl'] = order.payment_url
        if result.degraded:
            response['degraded'] = result.degraded
        return response

    def _handle_track_order(self, args: Dict[str, Any], call_meta: Dict[str, Any]) -> Dict[str, Any]:
        phone = _arg(args, 'customerPhone', 'customer_phone', 'phone_number') \
            or _caller_field(call_meta, 'customer', 'number')
        if not phone:
            raise ValidationError('Phone number not available')

        restaurant = self.resolve_restaurant(args, call_meta)
        latest = self.order_service.orders_for_phone(restaurant, phone).first()
        if latest is None:
            return {'success': True, 'message': 'No orders found for this phone number.', 'orders': []}

        return {
            'success': True,
            'message': f"Your order {latest.order_number} is {latest.get_status_display().lower()}.",
            'order': {
                'orderNumber': latest.order_number,
                'status': latest.status,
                'total': format_money(latest.total),
                'createdAt': latest.created_at.isoformat(),
            },
        }

    @staticmethod
    def _line_item(item: Any) -> Any:
        """Map agent item keys onto order line keys"""
        if not isinstance(item, dict):
            return item
        return {
            'name': _arg(item, 'name', 'item_name', default=''),
            'price': _arg(item, 'price', 'unitPrice', 'unit_price'),
            'quantity': item.get('quantity', 1),
            'menu_item_id': _arg(item, 'menuItemId', 'menu_item_id', 'id'),
            'notes': _arg(item, 'notes', 'customizations', default=''),
        }

    @staticmethod
    def _restaurant_by_id(restaurant_id: Any) -> Optional[Restaurant]:
        try:
            return Restaurant.objects.filter(pk=restaurant_id).first()
        except (DjangoValidationError, ValueError):
            return None
