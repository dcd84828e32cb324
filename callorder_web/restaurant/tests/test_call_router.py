"""
Unit tests for CallRouter.
"""

from datetime import datetime, timezone as dt_timezone

from django.test import TestCase, override_settings

from restaurant.models import Restaurant
from restaurant.services.call_router import (
    ACTION_DIAL_STAFF, ACTION_NOT_CONFIGURED, ACTION_ROUTE_TO_AI, ROUTE_AI, ROUTE_STAFF, CallRouter,
)

# 2024-01-01 is a Monday
MONDAY_MORNING = datetime(2024, 1, 1, 8, 0)
MONDAY_LUNCH = datetime(2024, 1, 1, 10, 0)
MONDAY_EVENING = datetime(2024, 1, 1, 17, 0)


@override_settings(STAFF_RING_TIMEOUT_SECONDS=15, VOICE_AI_ASSISTANT_ID='asst-123')
class CallRouterTestCase(TestCase):
    """Test cases for CallRouter"""

    def setUp(self):
        self.restaurant = Restaurant.objects.create(
            name='Pizza Palace',
            voice_line_id='line-pizza',
            voice_phone_number='+12075075278',
            staff_phone='+12075550000',
            busy_hours=[
                {'day': 'monday', 'start': '10:00', 'end': '17:00', 'enabled': True},
                {'day': 'tuesday', 'start': '08:00', 'end': '09:00', 'enabled': False},
            ],
        )

    def test_is_busy_window_is_inclusive(self):
        self.assertFalse(CallRouter.is_busy(self.restaurant, MONDAY_MORNING))
        self.assertTrue(CallRouter.is_busy(self.restaurant, MONDAY_LUNCH))
        self.assertTrue(CallRouter.is_busy(self.restaurant, MONDAY_EVENING))
        self.assertFalse(CallRouter.is_busy(self.restaurant, datetime(2024, 1, 1, 17, 1)))

    def test_disabled_entry_is_not_busy(self):
        self.assertFalse(CallRouter.is_busy(self.restaurant, datetime(2024, 1, 2, 8, 30)))

    def test_manual_override_wins(self):
        self.restaurant.busy_mode_enabled = True

        self.assertTrue(CallRouter.is_busy(self.restaurant, MONDAY_MORNING))

    def test_empty_schedule(self):
        self.restaurant.busy_hours = []

        self.assertFalse(CallRouter.is_busy(self.restaurant, MONDAY_LUNCH))

    def test_missing_times_are_not_busy(self):
        self.restaurant.busy_hours = [{'day': 'monday', 'start': None, 'end': '17:00', 'enabled': True}]

        self.assertFalse(CallRouter.is_busy(self.restaurant, MONDAY_LUNCH))

        self.restaurant.busy_hours = [{'day': 'monday', 'start': '10:00', 'end': 1700, 'enabled': True}]

        self.assertFalse(CallRouter.is_busy(self.restaurant, MONDAY_LUNCH))

    def test_non_object_entries_are_skipped(self):
        self.restaurant.busy_hours = [
            'monday 10:00-17:00',
            None,
            {'day': 'monday', 'start': '10:00', 'end': '17:00', 'enabled': True},
        ]

        self.assertTrue(CallRouter.is_busy(self.restaurant, MONDAY_LUNCH))

        self.restaurant.busy_hours = {'monday': '10:00-17:00'}

        self.assertFalse(CallRouter.is_busy(self.restaurant, MONDAY_LUNCH))

    @override_settings(TIME_ZONE='Asia/Tokyo')
    def test_is_busy_uses_local_time(self):
        # Monday 23:30 UTC is Tuesday 08:30 in Tokyo
        self.restaurant.busy_hours = [{'day': 'tuesday', 'start': '08:00', 'end': '09:00', 'enabled': True}]

        self.assertTrue(CallRouter.is_busy(self.restaurant, datetime(2024, 1, 1, 23, 30, tzinfo=dt_timezone.utc)))

    def test_decide(self):
        self.assertEqual(CallRouter.decide(self.restaurant, MONDAY_LUNCH), ROUTE_AI)
        self.assertEqual(CallRouter.decide(self.restaurant, MONDAY_MORNING), ROUTE_STAFF)

        self.restaurant.ai_enabled = False
        self.assertEqual(CallRouter.decide(self.restaurant, MONDAY_LUNCH), ROUTE_STAFF)

        self.restaurant.ai_enabled = True
        self.assertEqual(CallRouter.decide(self.restaurant, MONDAY_LUNCH), ROUTE_AI)

    def test_route_busy_call_to_ai(self):
        directive = CallRouter.route_inbound_call(
            {'destinationLine': 'line-pizza', 'originLine': '+447700900123', 'callId': 'call-1'},
            now=MONDAY_LUNCH,
        )

        self.assertEqual(directive.action, ACTION_ROUTE_TO_AI)
        self.assertEqual(directive.assistant_id, 'asst-123')
        self.assertEqual(directive.restaurant_id, str(self.restaurant.pk))
        self.assertIn('Pizza Palace', directive.message)

    def test_route_quiet_call_to_staff(self):
        directive = CallRouter.route_inbound_call({'destinationLine': 'line-pizza'}, now=MONDAY_MORNING)

        self.assertEqual(directive.to_dict(), {
            'action': ACTION_DIAL_STAFF,
            'restaurant_id': str(self.restaurant.pk),
            'staff_number': '+12075550000',
            'ring_timeout': 15,
            'fallback': ROUTE_AI,
        })

    def test_no_staff_phone_routes_to_ai(self):
        self.restaurant.staff_phone = ''
        self.restaurant.save()

        directive = CallRouter.route_inbound_call({'destinationLine': 'line-pizza'}, now=MONDAY_MORNING)

        self.assertEqual(directive.action, ACTION_ROUTE_TO_AI)

    def test_lookup_by_sip_number(self):
        directive = CallRouter.route_inbound_call(
            {'destinationLine': 'sip:+12075075278@pbx.example.com'}, now=MONDAY_LUNCH
        )

        self.assertEqual(directive.restaurant_id, str(self.restaurant.pk))

    def test_unknown_line(self):
        directive = CallRouter.route_inbound_call({'destinationLine': 'line-unknown'}, now=MONDAY_LUNCH)

        self.assertEqual(directive.action, ACTION_NOT_CONFIGURED)
        self.assertIsNone(directive.restaurant_id)
        self.assertNotIn('restaurant_id', directive.to_dict())

    def test_no_answer_fallback(self):
        directive = CallRouter.no_answer_fallback({'destinationLine': 'line-pizza', 'callId': 'call-1'})

        self.assertEqual(directive.action, ACTION_ROUTE_TO_AI)
        self.assertEqual(
            CallRouter.no_answer_fallback({'destinationLine': 'nope'}).action, ACTION_NOT_CONFIGURED
        )
