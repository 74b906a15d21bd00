import logging

from django.http import JsonResponse
from django.shortcuts import render
from django.views import csrf

from .errors import ValidationFailure
from .http import json_body, json_view
from .mail import send_to_admins

logger = logging.getLogger(__name__)


@json_view("POST", csrf=False)
def contact_view(request):
    body = json_body(request)
    fields = {k: str(body.get(k) or "").strip() for k in ("name", "email", "subject", "message")}
    if not all(fields.values()):
        raise ValidationFailure("All fields are required")

    result = send_to_admins(f"Portal Contact: {fields['subject']}", "contact_message", fields)
    if not result.success:
        logger.warning("Contact message from %s not delivered: %s", fields["email"], result.error)
    return {"success": True}


def error_404_view(request, exception):
    if request.path.startswith("/api/"):
        return JsonResponse({"success": False, "error": "Not found", "code": "not_found"}, status=404)
    return render(request, '404.html', status=404)


def csrf_failure_view(request, reason=""):
    logger.warning("CSRF check failed for %s %s: %s", request.method, request.path, reason)
    if request.path.startswith("/api/"):
        return JsonResponse(
            {"success": False, "error": "CSRF verification failed", "code": "csrf_failed"}, status=403
        )
    return csrf.csrf_failure(request, reason)
