"""
WSGI config for trimcast.

Exposes the WSGI callable as a module-level variable named ``application``.

For more information:
- https://docs.djangoproject.com/en/stable/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

# Set the Django settings module
# This must be done before importing Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'trimcast.settings')

application = get_wsgi_application()

# Needs the app registry loaded by get_wsgi_application()
from clips.service.cache import reconcile_serving_cache  # noqa: E402

reconcile_serving_cache()
