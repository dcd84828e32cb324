"""
Payment-link adapters. Links are advisory; confirmation arrives separately.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from shared.config_settings import ConfigSettings
from shared.utils import round_money

logger = logging.getLogger(__name__)


@dataclass
class PaymentLink:
    url: str
    link_id: str


class PaymentLinkAdapter(ABC):
    """Abstract base class for payment-link providers"""

    @abstractmethod
    def create_link(self, order_id: str, amount: Decimal, restaurant: Optional[Any] = None) -> PaymentLink:
        """
        Create a checkout link for an order.

        Raises:
            UpstreamDegraded: if the provider call failed
        """
        pass


class MockPaymentLinkAdapter(PaymentLinkAdapter):
    """Builds a checkout URL locally without calling a provider"""

    def create_link(self, order_id: str, amount: Decimal, restaurant: Optional[Any] = None) -> PaymentLink:
        config = ConfigSettings.get_payment_config(restaurant)
        link_id = f"plink_{uuid.uuid4().hex[:16]}"
        url = (
            f"{config['checkout_base_url'].rstrip('/')}/{link_id}"
            f"?amount={round_money(amount)}&currency={config['currency']}&order={order_id}"
        )
        logger.info("💳 [mock] Payment link %s for order %s", link_id, order_id)
        return PaymentLink(url=url, link_id=link_id)
