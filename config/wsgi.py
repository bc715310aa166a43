"""
WSGI config for taskboard project.

This module contains the WSGI application used by Django's development server
and any production WSGI deployments. It should expose a module-level variable
named ``application``. Django's ``runserver`` discovers this application via
the ``WSGI_APPLICATION`` setting.

Socket.IO rooms need the ASGI entry point (``config.asgi``). Under WSGI the
hub carries no rooms and board events only go out on Pusher channels, when
Pusher is configured.

"""

import os

from django.core.wsgi import get_wsgi_application

# If DJANGO_SETTINGS_MODULE is unset, select a sensible default based on BUILD_ENV
if "DJANGO_SETTINGS_MODULE" not in os.environ:
    build_env = os.environ.get("BUILD_ENV", "production").lower()
    default_settings = (
        "config.settings.local"
        if build_env == "local"
        else "config.settings.production"
    )
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", default_settings)

application = get_wsgi_application()

from taskboard.realtime.hub import start_hub  # noqa: E402

start_hub()
