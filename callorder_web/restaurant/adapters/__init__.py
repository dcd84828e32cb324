"""
Adapter interfaces for side-effect integrations.
Provides abstraction layer for testing and swapping implementations.
"""

from django.conf import settings
from django.utils.module_loading import import_string

from .notification_adapter import (
    NotificationAdapter, MockNotificationAdapter, SMSNotificationAdapter, DeliveryReceipt,
)
from .payment_adapter import PaymentLinkAdapter, MockPaymentLinkAdapter, PaymentLink
from .print_adapter import PrintAdapter, MockPrintAdapter

__all__ = [
    'NotificationAdapter', 'MockNotificationAdapter', 'SMSNotificationAdapter', 'DeliveryReceipt',
    'PaymentLinkAdapter', 'MockPaymentLinkAdapter', 'PaymentLink',
    'PrintAdapter', 'MockPrintAdapter',
    'load_adapter',
]


def load_adapter(setting_name: str):
    """Instantiate the adapter class named by a dotted-path setting"""
    return import_string(getattr(settings, setting_name))()
