import functools
import json
import logging

from django.core.exceptions import RequestDataTooBig
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .errors import PortalError, ValidationFailure

logger = logging.getLogger(__name__)


def json_body(request) -> dict:
    try:
        raw = request.body
    except RequestDataTooBig:
        raise ValidationFailure("Uploaded document is too large")
    if not raw:
        return {}
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise ValidationFailure("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationFailure("JSON body must be an object")
    return data


def error_response(exc: PortalError) -> JsonResponse:
    payload = {"success": False, "error": exc.message, "code": exc.code}
    fields = getattr(exc, "fields", None)
    if fields:
        payload["fields"] = fields
    return JsonResponse(payload, status=exc.status)


def json_view(*methods, csrf=True):
    """Wrap a JSON endpoint.

    Rejects methods outside ``methods`` with 405, turns ``PortalError`` into
    its status + code, and logs anything else as a generic 500. The wrapped
    view may return a dict/list (serialized with status 200) or a response.

    CSRF is enforced unless ``csrf=False``; only anonymous public endpoints
    that never read the session opt out.
    """

    allowed = {m.upper() for m in methods}

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            if allowed and request.method not in allowed:
                resp = JsonResponse({"success": False, "error": "Method not allowed"}, status=405)
                resp["Allow"] = ", ".join(sorted(allowed))
                return resp
            try:
                result = view(request, *args, **kwargs)
            except PortalError as e:
                if e.status >= 500:
                    logger.warning("%s %s failed: %s", request.method, request.path, e)
                return error_response(e)
            except Exception:
                logger.exception("Unhandled error in %s %s", request.method, request.path)
                return JsonResponse(
                    {"success": False, "error": PortalError.default_message, "code": PortalError.code},
                    status=500,
                )
            if isinstance(result, (dict, list)):
                return JsonResponse(result, safe=False)
            return result

        return wrapper if csrf else csrf_exempt(wrapper)

    return decorator
