"""
Inbound call routing: AI agent vs staff phone.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from restaurant.models import Restaurant
from restaurant.services.tenant_service import TenantService
from restaurant.validators import WEEKDAYS
from shared.config_settings import ConfigSettings
from shared.utils import get_local_now, to_local

logger = logging.getLogger(__name__)

ROUTE_AI = 'AI'
ROUTE_STAFF = 'STAFF'

ACTION_ROUTE_TO_AI = 'say_and_route_to_ai'
ACTION_DIAL_STAFF = 'dial_staff_with_fallback'
ACTION_NOT_CONFIGURED = 'say_not_configured'


@dataclass
class CallDirective:
    """Call-control instruction returned to the telephony layer"""

    action: str
    message: str = ''
    restaurant_id: Optional[str] = None
    assistant_id: str = ''
    staff_number: str = ''
    ring_timeout: Optional[int] = None
    fallback: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value not in (None, '')}


class CallRouter:
    """Decides how an inbound call is handled"""

    @staticmethod
    def is_busy(restaurant: Restaurant, now: Optional[datetime] = None) -> bool:
        """
        Whether the restaurant is in busy mode at the given time.

        The manual override wins. Otherwise the entry for the local weekday
        is checked, inclusive on both ends. Windows crossing midnight are not
        supported.
        """
        if restaurant.busy_mode_enabled:
            return True

        schedule = restaurant.busy_hours or []
        if not isinstance(schedule, list) or not schedule:
            return False

        local_now = to_local(now) if now is not None else get_local_now()
        day = WEEKDAYS[local_now.weekday()]
        current_time = local_now.strftime('%H:%M')

        entry = next(
            (e for e in schedule if isinstance(e, dict) and str(e.get('day', '')).lower() == day),
            None,
        )
        if entry is None or not entry.get('enabled', False):
            return False

        start, end = entry.get('start'), entry.get('end')
        if not isinstance(start, str) or not isinstance(end, str):
            logger.warning(f"Ignoring malformed busy_hours entry for {restaurant.pk}: {entry}")
            return False
        return start <= current_time <= end

    @staticmethod
    def decide(restaurant: Restaurant, now: Optional[datetime] = None) -> str:
        """AI when AI is not explicitly disabled and the restaurant is busy, else STAFF"""
        if restaurant.ai_enabled is not False and CallRouter.is_busy(restaurant, now):
            return ROUTE_AI
        return ROUTE_STAFF

    @staticmethod
    def route_inbound_call(event: Dict[str, Any], now: Optional[datetime] = None) -> CallDirective:
        """
        Build the directive for an inbound call.

        Args:
            event: {"destinationLine", "originLine", "callId"}
            now: Time of the call, defaults to the current time

        Returns:
            CallDirective
        """
        voice_config = ConfigSettings.get_voice_config()
        call_id = event.get('callId')
        restaurant = TenantService.find_tenant_by_voice_line(event.get('destinationLine'))

        if restaurant is None:
            logger.warning(f"📞 Call {call_id} to unconfigured line {event.get('destinationLine')}")
            return CallDirective(action=ACTION_NOT_CONFIGURED, message=voice_config['not_configured_message'])

        route = CallRouter.decide(restaurant, now)
        if route == ROUTE_STAFF and not restaurant.staff_phone:
            logger.warning(f"📞 Restaurant {restaurant.pk} has no staff phone, routing call {call_id} to AI")
            route = ROUTE_AI

        logger.info(f"📞 Call {call_id} from {event.get('originLine')} for {restaurant.name}: {route}")

        if route == ROUTE_AI:
            return CallRouter._ai_directive(restaurant, voice_config)

        return CallDirective(
            action=ACTION_DIAL_STAFF,
            restaurant_id=str(restaurant.pk),
            staff_number=restaurant.staff_phone,
            ring_timeout=voice_config['staff_ring_timeout'],
            fallback=ROUTE_AI,
        )

    @staticmethod
    def no_answer_fallback(event: Dict[str, Any]) -> CallDirective:
        """Staff did not pick up: hand the call to the AI agent"""
        voice_config = ConfigSettings.get_voice_config()
        restaurant = TenantService.find_tenant_by_voice_line(event.get('destinationLine'))
        if restaurant is None:
            return CallDirective(action=ACTION_NOT_CONFIGURED, message=voice_config['not_configured_message'])

        logger.info(f"📞 No answer from staff on call {event.get('callId')}, routing to AI")
        return CallRouter._ai_directive(restaurant, voice_config)

    @staticmethod
    def _ai_directive(restaurant: Restaurant, voice_config: Dict[str, Any]) -> CallDirective:
        return CallDirective(
            action=ACTION_ROUTE_TO_AI,
            message=f"Thank you for calling {restaurant.name}. Connecting you to our ordering assistant.",
            restaurant_id=str(restaurant.pk),
            assistant_id=voice_config['ai_assistant_id'],
        )
