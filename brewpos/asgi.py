"""
ASGI config for brewpos.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'brewpos.settings')

application = get_asgi_application()
