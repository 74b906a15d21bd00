import logging

from django.db import transaction

from portal.errors import ValidationFailure

from .emails import send_registration_notifications
from .forms import RegistrationForm
from .identifiers import issue_registration_code
from .repositories import RegistrationRepository
from .storage import DocumentBatch

logger = logging.getLogger(__name__)


def _form_errors(form) -> dict:
    return {field: [str(e) for e in errs] for field, errs in form.errors.items()}


def submit_registration(data: dict, registrations=None, storage=None):
    """Validate, upload documents, issue a code and persist a registration.

    Documents already stored are removed again if a later upload or the
    record write fails.

    Notification emails go out after the transaction commits and never
    affect the outcome.
    """
    form = RegistrationForm(data)
    if not form.is_valid():
        raise ValidationFailure(fields=_form_errors(form))
    cd = form.cleaned_data

    registrations = registrations or RegistrationRepository()
    documents = DocumentBatch(storage)

    try:
        registration = _store(registrations, documents, cd)
    except Exception:
        documents.discard()
        raise
    logger.info("Registration %s created for %s", registration.unique_code, registration.email)

    transaction.on_commit(lambda: send_registration_notifications(registration))
    return registration


def _store(registrations, documents, cd: dict):
    photo_url = documents.upload(cd["personalPhoto"], "members")
    front_url = documents.upload(cd["idCardFront"], "ids")
    back_url = documents.upload(cd["idCardBack"], "ids") if cd.get("idCardBack") else ""

    return registrations.create(
        name=cd["name"],
        country=cd["country"],
        city=cd["city"],
        date_of_birth=cd["dateOfBirth"],
        marital_status=cd["maritalStatus"],
        occupation=cd["occupation"],
        salary=cd["salary"],
        email=cd["email"],
        phone=cd["phone"],
        payment_method=cd["paymentMethod"],
        personal_photo_url=photo_url,
        id_card_front_url=front_url,
        id_card_back_url=back_url,
        unique_code=issue_registration_code(),
    )
