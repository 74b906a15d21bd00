import logging
from dataclasses import dataclass
from typing import Iterable, List

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailResult:
    success: bool
    error: str = ""


def _fail_silently() -> bool:
    return getattr(settings, "EMAIL_FAIL_SILENTLY", False)


def admin_recipients() -> List[str]:
    raw = getattr(settings, "ADMIN_EMAIL", "") or ""
    seen = set()
    emails: List[str] = []
    for e in raw.split(","):
        e = e.strip()
        if e and e.lower() not in seen:
            seen.add(e.lower())
            emails.append(e)
    return emails


def send_email(to, subject: str, html: str, text: str | None = None) -> MailResult:
    """Send a multi-part (text + HTML) email.

    Never raises: delivery problems are logged and reported back in the
    result, since notification is best-effort next to the write that
    triggered it.
    """
    recipients = [to] if isinstance(to, str) else list(to or [])
    recipients = [r for r in recipients if r]
    if not recipients:
        logger.warning("Email %r has no recipients; skipped", subject)
        return MailResult(False, "no recipients")

    try:
        body = text if text is not None else strip_tags(html).strip()
        msg = EmailMultiAlternatives(subject, body, settings.DEFAULT_FROM_EMAIL, recipients)
        msg.attach_alternative(html, "text/html")
        sent = msg.send(fail_silently=_fail_silently())
    except Exception as e:
        logger.exception("Failed to send email %r to %s", subject, recipients)
        return MailResult(False, str(e))
    if not sent:
        return MailResult(False, "not sent")
    return MailResult(True)


def send_templated(to, subject: str, template: str, context: dict) -> MailResult:
    """Render ``emails/<template>.html`` and send it."""
    try:
        html = render_to_string(f"emails/{template}.html", context)
    except Exception as e:
        logger.exception("Failed to render email template %s", template)
        return MailResult(False, str(e))
    return send_email(to, subject, html)


def send_to_admins(subject: str, template: str, context: dict) -> MailResult:
    return send_templated(admin_recipients(), subject, template, context)


def send_all(messages: Iterable[tuple]) -> List[MailResult]:
    """Send several ``(to, subject, template, context)`` messages independently."""
    return [send_templated(*m) for m in messages]
