"""
Celery tasks for billing.

This module provides async tasks for:
- Sending the enrollment confirmation email after the first tuition
  payment is reconciled

Usage:
    from billing.tasks import send_enrollment_confirmation

    # Queued by the PAYMENT_RECEIVED handler once the transaction commits
    send_enrollment_confirmation.delay(str(enrollment.id), str(payment.id))
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from school.models import Enrollment
from toolkit.helpers import mask_email

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_EMAIL_RETRIES = 3


# =============================================================================
# Notification Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_EMAIL_RETRIES},
)
def send_enrollment_confirmation(self, enrollment_id: str, payment_id: str | None = None) -> dict:
    """
    Email the student that their enrollment is active.

    Plain text only. SMTP failures are retried with backoff; a missing
    enrollment or student email is logged and skipped.

    Args:
        enrollment_id: UUID of the activated Enrollment
        payment_id: UUID of the Payment that activated it, for the log

    Returns:
        Dict with the send status
    """
    enrollment = (
        Enrollment.objects.select_related("student__user", "school_class")
        .filter(pk=enrollment_id)
        .first()
    )
    if enrollment is None:
        logger.warning(
            "Enrollment not found for confirmation email",
            extra={"enrollment_id": enrollment_id, "payment_id": payment_id},
        )
        return {"status": "skipped", "reason": "enrollment_not_found"}

    student = enrollment.student
    recipient = student.email or student.user.email
    if not recipient:
        logger.warning(
            "Student has no email, confirmation not sent",
            extra={"enrollment_id": enrollment_id},
        )
        return {"status": "skipped", "reason": "no_email"}

    name = student.full_name or recipient
    class_name = enrollment.school_class.name
    body = (
        f"Olá, {name}!\n\n"
        f"Recebemos o seu pagamento e a sua matrícula em {class_name} está ativa.\n\n"
        f"Acompanhe suas aulas e mensalidades em {settings.SITE_URL}\n"
    )

    send_mail(
        subject=f"Matrícula confirmada - {class_name}",
        message=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[recipient],
    )

    logger.info(
        "Enrollment confirmation sent",
        extra={
            "enrollment_id": enrollment_id,
            "payment_id": payment_id,
            "email": mask_email(recipient),
        },
    )
    return {"status": "sent", "enrollment_id": enrollment_id}
