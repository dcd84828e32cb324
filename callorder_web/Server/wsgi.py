"""
WSGI config for the call-order backend.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'Server.settings')

application = get_wsgi_application()
