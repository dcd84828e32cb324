"""
Kitchen print dispatch adapters.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

from shared.config_settings import ConfigSettings

logger = logging.getLogger(__name__)


class PrintAdapter(ABC):
    """Abstract base class for print dispatch"""

    @abstractmethod
    def dispatch(self, order_id: str, restaurant: Optional[Any] = None) -> str:
        """
        Send an order ticket to the printer.

        Returns:
            Provider print-job id

        Raises:
            UpstreamDegraded: if dispatch failed
        """
        pass


class MockPrintAdapter(PrintAdapter):
    """Logs print requests"""

    def dispatch(self, order_id: str, restaurant: Optional[Any] = None) -> str:
        config = ConfigSettings.get_print_config(restaurant)
        job_id = f"print-{uuid.uuid4().hex[:12]}"
        logger.info("🖨️ [mock] Print job %s for order %s on %s", job_id, order_id, config['printer_id'])
        return job_id
