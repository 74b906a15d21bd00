import logging

from django.middleware.csrf import get_token

from portal.errors import Unauthorized, ValidationFailure
from portal.http import json_body, json_view
from portal.mail import send_templated
from registrations.repositories import RegistrationRepository
from shop.forms import ItemForm, PaymentMethodForm
from shop.repositories import ItemRepository, OrderRepository, PaymentMethodRepository

from .auth import admin_required, get_policy

logger = logging.getLogger(__name__)


def _form_errors(form) -> dict:
    return {field: [str(e) for e in errs] for field, errs in form.errors.items()}


def _require(body: dict, *keys) -> None:
    missing = [k for k in keys if body.get(k) in (None, "")]
    if missing:
        raise ValidationFailure(f"Missing fields: {', '.join(missing)}", fields={k: ["This field is required."] for k in missing})


def _query_id(request):
    pk = request.GET.get("id")
    if not pk:
        raise ValidationFailure("id is required")
    return pk


# --- session ---

@json_view("POST")
def login_view(request):
    body = json_body(request)
    policy = get_policy()
    username = str(body.get("username") or "")
    if not policy.authenticate(username, str(body.get("password") or "")):
        logger.warning("Failed console login for %r", username)
        raise Unauthorized("Invalid credentials")
    policy.login(request, username)
    return {"success": True}


@json_view("POST")
def logout_view(request):
    get_policy().logout(request)
    return {"success": True}


@json_view("GET")
def session_view(request):
    return {"authenticated": get_policy().is_authenticated(request), "csrfToken": get_token(request)}


# --- registrations ---

@json_view("GET", "PUT")
@admin_required
def registrations_view(request):
    repo = RegistrationRepository()
    if request.method == "GET":
        return [r.to_dict() for r in repo.list_recent()]
    body = json_body(request)
    _require(body, "id", "status")
    registration = repo.update_status(body["id"], str(body["status"]))
    logger.info("Registration %s marked %s", registration.unique_code, registration.status)
    return registration.to_dict()


# --- payment methods ---

def _payment_method_fields(form) -> dict:
    cd = form.cleaned_data
    return {
        "name": cd["name"],
        "description": cd.get("description") or "",
        "details": cd.get("details") or "",
        "is_active": cd.get("isActive", True),
    }


@json_view("GET", "POST", "PUT", "DELETE")
@admin_required
def payment_methods_view(request):
    repo = PaymentMethodRepository()
    if request.method == "GET":
        return [m.to_dict() for m in repo.list_all()]
    if request.method == "DELETE":
        repo.delete(_query_id(request))
        return {"success": True}

    body = json_body(request)
    if request.method == "POST":
        body.setdefault("isActive", True)
        form = PaymentMethodForm(body)
        if not form.is_valid():
            raise ValidationFailure(fields=_form_errors(form))
        return repo.create(**_payment_method_fields(form)).to_dict()

    _require(body, "id")
    current = repo.get(body["id"])
    merged = {**current.to_dict(), **{k: v for k, v in body.items() if k != "id"}}
    form = PaymentMethodForm(merged)
    if not form.is_valid():
        raise ValidationFailure(fields=_form_errors(form))
    return repo.update(current.pk, **_payment_method_fields(form)).to_dict()


# --- items ---

@json_view("GET", "POST", "DELETE")
@admin_required
def items_view(request):
    repo = ItemRepository()
    if request.method == "GET":
        return [i.to_dict() for i in repo.list()]
    if request.method == "DELETE":
        repo.delete(_query_id(request))
        return {"success": True}

    form = ItemForm(json_body(request))
    if not form.is_valid():
        raise ValidationFailure(fields=_form_errors(form))
    cd = form.cleaned_data
    item = repo.create(
        name=cd["name"],
        price=cd["price"],
        description=cd["description"],
        mystical_properties=cd.get("mysticalProperties") or "",
        image_url=cd.get("image") or "",
    )
    logger.info("Item %s added: %s", item.pk, item.name)
    return item.to_dict()


# --- orders ---

@json_view("GET", "PUT")
@admin_required
def orders_view(request):
    repo = OrderRepository()
    if request.method == "GET":
        return [o.to_dict() for o in repo.list_hydrated()]
    body = json_body(request)
    _require(body, "id", "status")
    record = repo.update_status(body["id"], str(body["status"]))
    logger.info("Order %s marked %s", record.order_number, record.status)
    return record.to_dict()


# --- direct message ---

@json_view("POST")
@admin_required
def message_view(request):
    body = json_body(request)
    _require(body, "to", "subject", "message")
    result = send_templated(
        body["to"],
        body["subject"],
        "council_message",
        {"applicant_name": body.get("applicantName") or "Seeker", "message": body["message"]},
    )
    return {"success": result.success, "error": result.error or None}
