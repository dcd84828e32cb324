"""
API tests for the intake endpoints.
"""

from datetime import datetime
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from restaurant.models import MenuItem, Order, PrintJob, Restaurant, StaffAccount
from restaurant.services.auth_service import AuthService


class IntakeAPITestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.restaurant = Restaurant.objects.create(
            name='Pizza Palace', voice_line_id='line-pizza', staff_phone='+12075550000',
            busy_hours=[{'day': 'monday', 'start': '10:00', 'end': '17:00', 'enabled': True}],
        )
        self.other_restaurant = Restaurant.objects.create(name='Burger Barn')
        AuthService.create_account('owner@pizza.example.com', 'admin123', StaffAccount.ROLE_OWNER, self.restaurant)
        AuthService.create_account('owner@burger.example.com', 'admin123', StaffAccount.ROLE_OWNER, self.other_restaurant)
        AuthService.create_account('admin@example.com', 'superadmin123', StaffAccount.ROLE_SUPER_ADMIN)

    def login(self, email, password='admin123'):
        response = self.client.post(reverse('intake:api_login'), {'email': email, 'password': password}, format='json')
        self.assertEqual(response.status_code, 200)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        return response.data['token']

    def create_order(self, **overrides):
        data = {
            'customer_name': 'John Doe',
            'customer_phone': '+1234567890',
            'order_type': 'pickup',
            'items': [{'name': 'Margherita Pizza', 'price': '12.99', 'quantity': 1}],
        }
        data.update(overrides)
        return self.client.post(reverse('intake:api_orders'), data, format='json')


class AuthAPITestCase(IntakeAPITestCase):

    def test_requires_token(self):
        response = self.client.get(reverse('intake:api_orders'))

        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.data['success'])

    def test_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')

        self.assertEqual(self.client.get(reverse('intake:api_orders')).status_code, 401)

    def test_bad_login(self):
        response = self.client.post(
            reverse('intake:api_login'), {'email': 'owner@pizza.example.com', 'password': 'nope'}, format='json'
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['code'], 'validation_error')

    def test_login_logout_toggles_online(self):
        self.login('owner@pizza.example.com')
        self.restaurant.refresh_from_db()
        self.assertTrue(self.restaurant.is_online)

        me = self.client.get(reverse('intake:api_current_user'))
        self.assertEqual(me.data['restaurant']['name'], 'Pizza Palace')

        response = self.client.post(reverse('intake:api_logout'), format='json')
        self.assertEqual(response.status_code, 200)
        self.restaurant.refresh_from_db()
        self.assertFalse(self.restaurant.is_online)
        self.assertEqual(self.client.get(reverse('intake:api_current_user')).status_code, 401)


class RestaurantAPITestCase(IntakeAPITestCase):

    def test_owner_cannot_create_restaurant(self):
        self.login('owner@pizza.example.com')

        response = self.client.post(reverse('intake:api_restaurants'), {'name': 'Taco Town'}, format='json')

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Restaurant.objects.filter(name='Taco Town').exists())

    def test_operator_creates_restaurant_with_owner(self):
        self.login('admin@example.com', 'superadmin123')

        response = self.client.post(reverse('intake:api_restaurants'), {
            'name': 'Taco Town',
            'owner': {'email': 'owner@taco.example.com', 'password': 'taco123'},
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertNotIn('config_json', response.data)
        self.assertTrue(StaffAccount.objects.filter(email='owner@taco.example.com').exists())

    def test_owner_lists_only_own_restaurant(self):
        self.login('owner@pizza.example.com')

        response = self.client.get(reverse('intake:api_restaurants'))

        self.assertEqual([r['name'] for r in response.data], ['Pizza Palace'])
        self.assertEqual(response.data[0]['total_revenue'], '0')

    def test_owner_cannot_see_other_restaurant(self):
        self.login('owner@pizza.example.com')

        url = reverse('intake:api_restaurant_detail', args=[self.other_restaurant.pk])
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_owner_updates_settings(self):
        self.login('owner@pizza.example.com')
        url = reverse('intake:api_restaurant_detail', args=[self.restaurant.pk])

        response = self.client.patch(url, {'busy_mode_enabled': True}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['busy_mode_enabled'])

        response = self.client.patch(url, {'voice_line_id': 'line-stolen'}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['code'], 'unauthorized')

    def test_set_online_status(self):
        self.login('owner@pizza.example.com')

        url = reverse('intake:api_restaurant_online', args=[self.restaurant.pk])
        response = self.client.patch(url, {'is_online': False}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['is_online'])

    def test_only_operator_deletes(self):
        url = reverse('intake:api_restaurant_detail', args=[self.other_restaurant.pk])

        self.login('owner@burger.example.com')
        self.assertEqual(self.client.delete(url).status_code, 403)

        self.login('admin@example.com', 'superadmin123')
        response = self.client.delete(url)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Restaurant.objects.filter(pk=self.other_restaurant.pk).exists())


class MenuAPITestCase(IntakeAPITestCase):

    def test_menu_crud(self):
        self.login('owner@pizza.example.com')

        category = self.client.post(reverse('intake:api_categories'), {'name': 'Pizza'}, format='json')
        self.assertEqual(category.status_code, 201)

        item = self.client.post(reverse('intake:api_menu_items'), {
            'name': 'Margherita Pizza', 'price': '12.99', 'category': category.data['id'],
        }, format='json')
        self.assertEqual(item.status_code, 201)
        self.assertEqual(item.data['category_name'], 'Pizza')

        url = reverse('intake:api_menu_item_detail', args=[item.data['id']])
        response = self.client.patch(url, {'available': False}, format='json')
        self.assertFalse(response.data['available'])
        self.assertEqual(response.data['name'], 'Margherita Pizza')

        self.assertEqual(self.client.delete(url).status_code, 204)
        self.assertFalse(MenuItem.objects.exists())

    def test_operator_must_name_restaurant(self):
        self.login('admin@example.com', 'superadmin123')

        self.assertEqual(self.client.get(reverse('intake:api_menu_items')).status_code, 400)
        response = self.client.get(reverse('intake:api_menu_items'), {'restaurant_id': str(self.restaurant.pk)})
        self.assertEqual(response.status_code, 200)

    def test_cannot_touch_other_tenant_item(self):
        item = MenuItem.objects.create(restaurant=self.other_restaurant, name='Classic Burger', price='9.99')
        self.login('owner@pizza.example.com')

        url = reverse('intake:api_menu_item_detail', args=[item.pk])
        self.assertEqual(self.client.patch(url, {'price': '0.01'}, format='json').status_code, 404)


class OrderAPITestCase(IntakeAPITestCase):

    def test_create_order(self):
        self.login('owner@pizza.example.com')

        response = self.create_order()

        self.assertEqual(response.status_code, 201)
        order = response.data['order']
        self.assertEqual(order['status'], 'pending')
        self.assertEqual(order['source'], 'dashboard')
        self.assertEqual(order['total_display'], '£14.03')
        self.assertEqual(response.data['degraded'], [])

    def test_create_order_validation(self):
        self.login('owner@pizza.example.com')

        response = self.create_order(order_type='delivery')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertFalse(Order.objects.exists())

    def test_order_scoping(self):
        self.login('owner@burger.example.com')
        order_id = self.create_order().data['order']['id']

        self.login('owner@pizza.example.com')
        self.assertEqual(self.client.get(reverse('intake:api_order_detail', args=[order_id])).status_code, 404)
        self.assertEqual(self.client.get(reverse('intake:api_orders')).data, [])

        response = self.client.patch(
            reverse('intake:api_update_status', args=[order_id]), {'status': 'completed'}, format='json'
        )
        self.assertEqual(response.status_code, 404)

    def test_status_endpoint(self):
        self.login('owner@pizza.example.com')
        order_id = self.create_order().data['order']['id']
        url = reverse('intake:api_update_status', args=[order_id])

        response = self.client.patch(url, {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['order']['status'], 'completed')
        self.assertEqual(PrintJob.objects.filter(order_id=order_id).count(), 1)

        response = self.client.patch(url, {'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['code'], 'invalid_transition')

        self.assertEqual(self.client.patch(url, {'status': 'shipped'}, format='json').status_code, 400)

    def test_update_order_rejects_status(self):
        self.login('owner@pizza.example.com')
        order_id = self.create_order().data['order']['id']

        response = self.client.patch(
            reverse('intake:api_order_detail', args=[order_id]), {'status': 'completed'}, format='json'
        )

        self.assertEqual(response.status_code, 400)

    def test_payment_confirmation(self):
        self.login('owner@pizza.example.com')
        order = Order.objects.get(pk=self.create_order(payment_method='card').data['order']['id'])
        self.assertTrue(order.payment_link_id)
        self.client.credentials()

        response = self.client.post(reverse('intake:api_confirm_payment'), {'link_id': order.payment_link_id}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['order']['status'], 'confirmed')
        self.assertEqual(response.data['order']['payment_status'], 'paid')

    def test_analytics(self):
        self.login('owner@pizza.example.com')
        order_id = self.create_order().data['order']['id']
        self.client.patch(reverse('intake:api_update_status', args=[order_id]), {'status': 'completed'}, format='json')

        response = self.client.get(reverse('intake:api_analytics'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['completed']['count'], 1)
        self.assertEqual(response.data['top_items'][0]['name'], 'Margherita Pizza')


class WebhookAPITestCase(IntakeAPITestCase):

    def test_voice_tools_return_structured_errors(self):
        payload = {
            'message': {'toolCalls': [{'id': 'tc1', 'function': {'name': 'create_order', 'arguments': '{}'}}]},
            'call': {'phoneNumberId': 'line-pizza'},
        }

        response = self.client.post(reverse('intake:api_voice_tools'), payload, format='json')

        self.assertEqual(response.status_code, 200)
        result = response.data['results'][0]
        self.assertEqual(result['toolCallId'], 'tc1')
        self.assertEqual(result['error']['code'], 'validation_error')

    def test_voice_tools_without_tool_call(self):
        response = self.client.post(reverse('intake:api_voice_tools'), {'message': {}}, format='json')

        self.assertEqual(response.status_code, 400)

    def test_voice_tools_malformed_envelope(self):
        url = reverse('intake:api_voice_tools')

        for payload in ([1, 2], {'message': 'hello'}):
            response = self.client.post(url, payload, format='json')
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.data['code'], 'validation_error')

    def test_voice_tools_malformed_call(self):
        payload = {'message': {'toolCalls': [{'id': 'c1', 'function': 'get_menu'}]}}

        response = self.client.post(reverse('intake:api_voice_tools'), payload, format='json')

        self.assertEqual(response.status_code, 200)
        result = response.data['results'][0]
        self.assertEqual(result['toolCallId'], 'c1')
        self.assertEqual(result['error']['code'], 'validation_error')

    def test_voice_tools_create_order(self):
        payload = {
            'message': {'toolCalls': [{'id': 'tc1', 'function': {
                'name': 'create_order',
                'arguments': {'customerName': 'Ann', 'items': [{'name': 'Margherita Pizza', 'price': 12.99}]},
            }}]},
            'call': {'phoneNumberId': 'line-pizza', 'customer': {'number': '+447700900123'}},
        }

        response = self.client.post(reverse('intake:api_voice_tools'), payload, format='json')

        result = response.data['results'][0]['result']
        self.assertTrue(result['orderNumber'].startswith('PHONE-'))
        self.assertIn('paymentUrl', result)
        self.assertEqual(Order.objects.get().source, Order.SOURCE_PHONE)

    @override_settings(INTAKE_WEBHOOK_SECRET='s3cret')
    def test_webhook_secret(self):
        url = reverse('intake:api_inbound_call')

        self.assertEqual(self.client.post(url, {'destinationLine': 'line-pizza'}, format='json').status_code, 403)
        response = self.client.post(
            url, {'destinationLine': 'line-pizza'}, format='json', HTTP_X_WEBHOOK_SECRET='s3cret'
        )
        self.assertEqual(response.status_code, 200)

    @patch('restaurant.services.call_router.get_local_now', return_value=datetime(2024, 1, 1, 12, 0))
    def test_inbound_call_busy(self, mock_now):
        response = self.client.post(
            reverse('intake:api_inbound_call'),
            {'destinationLine': 'line-pizza', 'originLine': '+447700900123', 'callId': 'c1'},
            format='json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['action'], 'say_and_route_to_ai')
        self.assertEqual(response.data['restaurant_id'], str(self.restaurant.pk))

    @patch('restaurant.services.call_router.get_local_now', return_value=datetime(2024, 1, 1, 8, 0))
    def test_inbound_call_quiet(self, mock_now):
        response = self.client.post(reverse('intake:api_inbound_call'), {'destinationLine': 'line-pizza'}, format='json')

        self.assertEqual(response.data['action'], 'dial_staff_with_fallback')
        self.assertEqual(response.data['staff_number'], '+12075550000')
        self.assertEqual(response.data['fallback'], 'AI')

    def test_inbound_call_unknown_line(self):
        response = self.client.post(reverse('intake:api_inbound_call'), {'destinationLine': 'nope'}, format='json')

        self.assertEqual(response.data['action'], 'say_not_configured')
        self.assertNotIn('restaurant_id', response.data)

    def test_inbound_call_requires_line(self):
        self.assertEqual(self.client.post(reverse('intake:api_inbound_call'), {}, format='json').status_code, 400)

    def test_no_answer(self):
        response = self.client.post(
            reverse('intake:api_staff_no_answer'), {'destinationLine': 'line-pizza'}, format='json'
        )

        self.assertEqual(response.data['action'], 'say_and_route_to_ai')

    def test_healthz(self):
        response = self.client.get(reverse('intake:health_check'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['database'], 'connected')
