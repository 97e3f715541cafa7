"""
Celery application for background billing work.

Tasks are auto-discovered from every installed app's ``tasks.py``. The
billing app uses it to send enrollment confirmation emails once the first
tuition payment is reconciled, so the webhook response never waits on SMTP.

Usage:
    from billing.tasks import send_enrollment_confirmation

    send_enrollment_confirmation.delay(str(enrollment.id))
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
