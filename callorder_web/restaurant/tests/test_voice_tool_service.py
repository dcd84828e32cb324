"""
Unit tests for VoiceToolService.
"""

from decimal import Decimal
from unittest.mock import MagicMock

from django.test import TestCase, override_settings

from restaurant.adapters import DeliveryReceipt, PaymentLink
from restaurant.models import MenuCategory, MenuItem, Order, Restaurant
from restaurant.services.order_service import OrderService
from restaurant.services.voice_tool_service import (
    RawArguments, StructuredArguments, VoiceToolService, tool_arguments,
)
from shared.exceptions import UpstreamDegraded, ValidationError


def tool_payload(name, arguments, call=None, call_id='call_1'):
    return {
        'message': {
            'toolCalls': [
                {'id': call_id, 'type': 'function', 'function': {'name': name, 'arguments': arguments}},
            ],
        },
        'call': call or {},
    }


class ToolArgumentsTestCase(TestCase):

    def test_tool_arguments_variants(self):
        self.assertIsInstance(tool_arguments({'a': 1}), StructuredArguments)
        self.assertIsInstance(tool_arguments('{"a": 1}'), RawArguments)
        self.assertEqual(tool_arguments(None).parse(), {})
        with self.assertRaises(ValidationError):
            tool_arguments(42)

    def test_raw_arguments_parse(self):
        self.assertEqual(RawArguments('{"customerName": "Ann"}').parse(), {'customerName': 'Ann'})
        self.assertEqual(RawArguments('  ').parse(), {})
        with self.assertRaises(ValidationError):
            RawArguments('{not json').parse()
        with self.assertRaises(ValidationError):
            RawArguments('[1, 2]').parse()


class VoiceToolServiceTestCase(TestCase):
    """Test cases for VoiceToolService"""

    def setUp(self):
        self.restaurant = Restaurant.objects.create(
            name='Pizza Palace', voice_line_id='line-pizza', voice_phone_number='+12075075278',
        )
        pizza = MenuCategory.objects.create(restaurant=self.restaurant, name='Pizza')
        self.margherita = MenuItem.objects.create(
            restaurant=self.restaurant, category=pizza, name='Margherita Pizza', price=Decimal('12.99')
        )
        MenuItem.objects.create(
            restaurant=self.restaurant, category=pizza, name='Seasonal Pizza', price=Decimal('15.99'), available=False
        )

        self.notifier = MagicMock()
        self.notifier.send.return_value = DeliveryReceipt(receipt_id='sms-1', status='sent')
        self.payments = MagicMock()
        self.payments.create_link.return_value = PaymentLink(url='https://pay.test/plink_1', link_id='plink_1')
        order_service = OrderService(notifier=self.notifier, payments=self.payments, printer=MagicMock())
        self.service = VoiceToolService(order_service=order_service)
        self.call = {'phoneNumberId': 'line-pizza', 'customer': {'number': '+447700900123'}}

    def _single_result(self, payload):
        response = self.service.handle_request(payload)
        self.assertEqual(len(response['results']), 1)
        return response['results'][0]

    def test_parse_tool_call_shapes(self):
        single = {'message': {'toolCall': {'id': 'c1', 'name': 'get_menu', 'arguments': '{}'}}}
        calls = VoiceToolService.parse_tool_calls(single)

        self.assertEqual(calls[0].id, 'c1')
        self.assertEqual(calls[0].name, 'get_menu')

        with self.assertRaises(ValidationError):
            VoiceToolService.parse_tool_calls({'message': {}})

    def test_malformed_envelope_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.handle_request([1, 2])
        with self.assertRaises(ValidationError):
            self.service.handle_request({'message': 'hello'})
        with self.assertRaises(ValidationError):
            self.service.handle_request({'message': {'toolCalls': 'get_menu'}})

    def test_malformed_call_reports_validation_error(self):
        payload = {'message': {'toolCalls': [{'id': 'c1', 'function': 'get_menu'}]}}

        result = self._single_result(payload)

        self.assertEqual(result['toolCallId'], 'c1')
        self.assertEqual(result['error']['code'], 'validation_error')
        self.assertNotIn('result', result)

    def test_malformed_call_does_not_block_others(self):
        payload = {
            'message': {'toolCalls': [
                'get_menu',
                {'id': 'b', 'function': {'name': 'get_menu', 'arguments': 42}},
                {'id': 'c', 'function': {'name': 'get_menu', 'arguments': {}}},
            ]},
            'call': self.call,
        }

        results = self.service.handle_request(payload)['results']

        self.assertEqual([r['toolCallId'] for r in results], ['', 'b', 'c'])
        self.assertEqual(results[0]['error']['code'], 'validation_error')
        self.assertEqual(results[1]['error']['code'], 'validation_error')
        self.assertEqual(results[2]['result']['restaurant'], 'Pizza Palace')

    def test_non_object_call_metadata_is_ignored(self):
        payload = tool_payload('get_menu', {'restaurantId': str(self.restaurant.pk)})
        payload['call'] = 'not-an-object'

        result = self._single_result(payload)

        self.assertEqual(result['result']['restaurant'], 'Pizza Palace')

    def test_get_menu(self):
        result = self._single_result(tool_payload('get_menu', {}, call=self.call))

        self.assertEqual(result['toolCallId'], 'call_1')
        menu = result['result']['menu']
        self.assertEqual(menu[0]['category'], 'Pizza')
        self.assertEqual([item['name'] for item in menu[0]['items']], ['Margherita Pizza'])
        self.assertEqual(menu[0]['items'][0]['price'], '12.99')

    def test_create_order_from_raw_arguments(self):
        arguments = (
            '{"customerName": "Ann", "items": [{"name": "Margherita Pizza", "price": 12.99, "quantity": 2}],'
            ' "orderType": "pickup"}'
        )

        result = self._single_result(tool_payload('create_order', arguments, call=self.call))['result']

        order = Order.objects.get(pk=result['orderId'])
        self.assertEqual(order.source, Order.SOURCE_PHONE)
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.payment_method, Order.PAYMENT_CARD)
        self.assertEqual(order.customer_phone, '+447700900123')
        self.assertTrue(result['orderNumber'].startswith('PHONE-'))
        self.assertEqual(result['total'], '£28.06')
        self.assertEqual(result['paymentUrl'], 'https://pay.test/plink_1')
        self.assertNotIn('degraded', result)

    def test_create_order_with_menu_item_id(self):
        arguments = {'customerName': 'Ann', 'items': [{'menuItemId': self.margherita.pk, 'quantity': 1}],
                     'paymentMethod': 'cash'}

        result = self._single_result(tool_payload('create_order', arguments, call=self.call))['result']

        line = Order.objects.get(pk=result['orderId']).lines.get()
        self.assertEqual(line.name, 'Margherita Pizza')
        self.assertEqual(line.unit_price, Decimal('12.99'))
        self.payments.create_link.assert_not_called()

    def test_create_order_missing_details(self):
        result = self._single_result(tool_payload('create_order', {'items': []}, call=self.call))

        self.assertEqual(result['error']['code'], 'validation_error')
        self.assertEqual(result['error']['details'], {'missing': ['customerName', 'items']})
        self.assertFalse(Order.objects.exists())

    def test_create_order_reports_degraded_payment(self):
        self.payments.create_link.side_effect = UpstreamDegraded('provider down')
        arguments = {'customerName': 'Ann', 'items': [{'name': 'Margherita Pizza', 'price': '12.99'}]}

        result = self._single_result(tool_payload('create_order', arguments, call=self.call))['result']

        self.assertTrue(result['success'])
        self.assertEqual(result['degraded'], ['payment_link'])
        self.assertNotIn('paymentUrl', result)

    def test_unsupported_tool(self):
        result = self._single_result(tool_payload('book_table', {}, call=self.call))

        self.assertEqual(result['toolCallId'], 'call_1')
        self.assertEqual(result['error']['code'], 'unsupported_operation')

    def test_invalid_json_arguments(self):
        result = self._single_result(tool_payload('create_order', '{broken', call=self.call))

        self.assertEqual(result['error']['code'], 'validation_error')

    @override_settings(VOICE_FALLBACK_RESTAURANT_ID=None)
    def test_unknown_line_without_fallback(self):
        result = self._single_result(tool_payload('get_menu', {}, call={'phoneNumberId': 'line-unknown'}))

        self.assertEqual(result['error']['code'], 'not_configured')

    def test_fallback_restaurant(self):
        with override_settings(VOICE_FALLBACK_RESTAURANT_ID=str(self.restaurant.pk)):
            result = self._single_result(tool_payload('get_menu', {}, call={'phoneNumberId': 'line-unknown'}))

        self.assertEqual(result['result']['restaurant'], 'Pizza Palace')

    def test_restaurant_id_argument_wins(self):
        other = Restaurant.objects.create(name='Burger Barn')

        result = self._single_result(tool_payload('get_menu', {'restaurantId': str(other.pk)}, call=self.call))

        self.assertEqual(result['result']['restaurant'], 'Burger Barn')
        self.assertEqual(result['result']['menu'], [])

    def test_track_order(self):
        self.service.order_service.create_order(
            self.restaurant, {'name': 'Ann', 'phone': '+447700900123'}, 'pickup',
            [{'name': 'Margherita Pizza', 'price': '12.99', 'quantity': 1}], source='phone',
        )

        result = self._single_result(tool_payload('track_order', {}, call=self.call))['result']

        self.assertEqual(result['order']['status'], Order.STATUS_PENDING)
        self.assertTrue(result['order']['orderNumber'].startswith('PHONE-'))

    def test_track_order_without_orders(self):
        result = self._single_result(tool_payload('track_order', {'customerPhone': '+15550000000'}, call=self.call))

        self.assertEqual(result['result']['orders'], [])

    def test_multiple_calls_each_get_a_result(self):
        payload = {
            'message': {'toolCalls': [
                {'id': 'a', 'function': {'name': 'get_menu', 'arguments': {}}},
                {'id': 'b', 'function': {'name': 'nope', 'arguments': {}}},
            ]},
            'call': self.call,
        }

        results = self.service.handle_request(payload)['results']

        self.assertEqual([r['toolCallId'] for r in results], ['a', 'b'])
        self.assertIn('result', results[0])
        self.assertIn('error', results[1])
