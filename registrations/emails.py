import logging

from django.conf import settings

from portal.mail import admin_recipients, send_all

logger = logging.getLogger(__name__)


def _dashboard_url() -> str:
    return f"{settings.PUBLIC_BASE_URL}/django-admin/registrations/registration/"


def send_registration_notifications(registration) -> None:
    """Notify the council and the applicant about a new registration.

    Each message is attempted independently; failures are only logged.
    """
    ctx = {"registration": registration, "dashboard_url": _dashboard_url()}
    results = send_all([
        (admin_recipients(), f"NEW REGISTRATION: {registration.name}", "registration_admin", ctx),
        (registration.email, "Registration Received - Rothschild & Co", "registration_received", ctx),
    ])
    for r in results:
        if not r.success:
            logger.warning("Registration %s notification not delivered: %s", registration.unique_code, r.error)
