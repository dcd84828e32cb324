"""
Configuration settings loader.
Loads integration settings from tenant config_json, environment variables or defaults.
"""

import os
import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


class ConfigSettings:
    """
    Centralized configuration settings loader.
    Prioritizes tenant config, then environment variables, then defaults.
    """

    CACHE_TIMEOUT = 300
    SECTIONS = ('sms', 'payments', 'printing')

    @staticmethod
    def _cache_key(section: str, restaurant: Optional[Any]) -> str:
        return f"{section}_config:{restaurant.pk if restaurant is not None else 'default'}"

    @staticmethod
    def _merge_tenant_section(config: Dict[str, Any], restaurant: Optional[Any], section: str) -> Dict[str, Any]:
        if restaurant is None:
            return config
        overrides = restaurant.get_config_value(section, {}) or {}
        if not isinstance(overrides, dict):
            logger.warning("Ignoring non-dict %s config for restaurant %s", section, restaurant.pk)
            return config
        for key in config:
            if overrides.get(key) is not None:
                config[key] = overrides[key]
        return config

    @staticmethod
    def get_sms_config(restaurant: Optional[Any] = None) -> Dict[str, Any]:
        """
        Get SMS configuration for a restaurant.

        Args:
            restaurant: Optional Restaurant for tenant-specific config

        Returns:
            Dictionary with SMS settings
        """
        cache_key = ConfigSettings._cache_key('sms', restaurant)
        cached = cache.get(cache_key)
        if cached:
            return cached

        config = {
            'api_url': os.getenv('SMS_API_URL', 'https://api.limosms.com/api/sendsms'),
            'api_key': os.getenv('SMS_API_KEY'),
            'sender_number': os.getenv('SMS_SENDER_NUMBER'),
            'timeout': int(os.getenv('SMS_TIMEOUT', '10')),
        }
        config = ConfigSettings._merge_tenant_section(config, restaurant, 'sms')

        if not config['api_key']:
            logger.warning("SMS API key not configured (neither in tenant config nor environment)")

        cache.set(cache_key, config, ConfigSettings.CACHE_TIMEOUT)
        return config

    @staticmethod
    def get_payment_config(restaurant: Optional[Any] = None) -> Dict[str, Any]:
        """Payment-link provider settings for a restaurant"""
        cache_key = ConfigSettings._cache_key('payments', restaurant)
        cached = cache.get(cache_key)
        if cached:
            return cached

        config = {
            'checkout_base_url': os.getenv('PAYMENT_CHECKOUT_BASE_URL', 'https://pay.example.com/checkout'),
            'currency': os.getenv('PAYMENT_CURRENCY', 'GBP'),
        }
        config = ConfigSettings._merge_tenant_section(config, restaurant, 'payments')

        cache.set(cache_key, config, ConfigSettings.CACHE_TIMEOUT)
        return config

    @staticmethod
    def get_print_config(restaurant: Optional[Any] = None) -> Dict[str, Any]:
        """Kitchen printer settings for a restaurant"""
        cache_key = ConfigSettings._cache_key('printing', restaurant)
        cached = cache.get(cache_key)
        if cached:
            return cached

        config = {
            'printer_id': os.getenv('PRINTER_ID', 'kitchen'),
            'copies': int(os.getenv('PRINT_COPIES', '1')),
        }
        config = ConfigSettings._merge_tenant_section(config, restaurant, 'printing')

        cache.set(cache_key, config, ConfigSettings.CACHE_TIMEOUT)
        return config

    @staticmethod
    def get_voice_config() -> Dict[str, Any]:
        """
        Call routing and voice-agent settings.
        Read from Django settings, which load them from the environment.
        """
        return {
            'fallback_restaurant_id': getattr(settings, 'VOICE_FALLBACK_RESTAURANT_ID', None),
            'staff_ring_timeout': getattr(settings, 'STAFF_RING_TIMEOUT_SECONDS', 20),
            'ai_assistant_id': getattr(settings, 'VOICE_AI_ASSISTANT_ID', ''),
            'not_configured_message': getattr(
                settings, 'VOICE_NOT_CONFIGURED_MESSAGE',
                'Sorry, this number is not configured to take orders.'
            ),
        }

    @staticmethod
    def clear_cache(restaurant: Optional[Any] = None):
        """Clear configuration cache for one restaurant, or everything."""
        if restaurant is not None:
            cache.delete_many([ConfigSettings._cache_key(section, restaurant) for section in ConfigSettings.SECTIONS])
        else:
            cache.clear()
