"""
Customer notification adapters.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import requests

from shared.config_settings import ConfigSettings
from shared.exceptions import UpstreamDegraded
from shared.utils import normalize_phone_number

logger = logging.getLogger(__name__)


@dataclass
class DeliveryReceipt:
    receipt_id: str
    status: str


class NotificationAdapter(ABC):
    """Abstract base class for notification adapters"""

    @abstractmethod
    def send(self, destination: str, message: str, restaurant: Optional[Any] = None) -> DeliveryReceipt:
        """
        Send a message to a customer phone.

        Args:
            destination: Phone number
            message: Message text
            restaurant: Optional Restaurant for tenant-specific config

        Returns:
            DeliveryReceipt

        Raises:
            UpstreamDegraded: if the provider rejected or could not be reached
        """
        pass


class MockNotificationAdapter(NotificationAdapter):
    """Logs messages instead of sending them"""

    def send(self, destination: str, message: str, restaurant: Optional[Any] = None) -> DeliveryReceipt:
        receipt = DeliveryReceipt(receipt_id=f"mock-sms-{uuid.uuid4().hex[:12]}", status='sent')
        logger.info("📱 [mock] SMS to %s (%s): %s", destination, receipt.receipt_id, message)
        return receipt


class SMSNotificationAdapter(NotificationAdapter):
    """LimoSMS-style HTTP API adapter"""

    def send(self, destination: str, message: str, restaurant: Optional[Any] = None) -> DeliveryReceipt:
        if not destination or not message:
            raise UpstreamDegraded('SMS: missing receiver or message')

        normalized_receiver = normalize_phone_number(destination)
        if not normalized_receiver:
            raise UpstreamDegraded(f'SMS: invalid phone number format: {destination}')

        sms_config = ConfigSettings.get_sms_config(restaurant)
        if not sms_config.get('api_key'):
            raise UpstreamDegraded('SMS: API key not configured')

        payload = {
            'Message': message,
            'SenderNumber': sms_config.get('sender_number'),
            'MobileNumber': [normalized_receiver],
        }
        headers = {"ApiKey": sms_config.get('api_key')}

        try:
            logger.info(f"📱 Sending SMS to {normalized_receiver}")
            response = requests.post(
                sms_config.get('api_url'),
                json=payload,
                headers=headers,
                timeout=sms_config.get('timeout', 10),
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Failed to send SMS to {normalized_receiver}: {e}")
            raise UpstreamDegraded(f'SMS delivery failed: {e}') from e

        receipt_id = ''
        try:
            body = response.json()
            if isinstance(body, dict):
                receipt_id = str(body.get('MessageId') or body.get('id') or '')
        except ValueError:
            logger.debug("SMS API returned a non-JSON body")

        logger.info(f"✅ SMS sent successfully to {normalized_receiver}")
        return DeliveryReceipt(receipt_id=receipt_id or f"sms-{uuid.uuid4().hex[:12]}", status='sent')
