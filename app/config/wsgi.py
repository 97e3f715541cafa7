"""
WSGI entry point for the school billing backend.

Exposes the WSGI callable as ``application`` for gunicorn or any other
WSGI server. The Asaas webhook endpoint is served through this callable.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
