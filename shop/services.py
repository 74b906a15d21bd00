import logging

from django.db import transaction

from portal.errors import ValidationFailure
from registrations.identifiers import issue_order_number, resolve_order, resolve_registration

from .emails import send_order_notifications
from .forms import OrderForm, TrackForm
from .repositories import ItemRepository, OrderRepository

logger = logging.getLogger(__name__)


def _form_errors(form) -> dict:
    return {field: [str(e) for e in errs] for field, errs in form.errors.items()}


def place_order(data: dict, items=None, orders=None, registrations=None):
    """Create a pending order for the registrant holding ``uniqueCode``.

    The order number is not retried on collision; ``DuplicateIdentifier``
    reaches the caller and nothing is written.
    """
    form = OrderForm(data)
    if not form.is_valid():
        raise ValidationFailure(fields=_form_errors(form))
    cd = form.cleaned_data
    items = items or ItemRepository()
    orders = orders or OrderRepository()

    registration = resolve_registration(cd["uniqueCode"], registrations)
    item = items.get(cd["itemId"])

    order = orders.create(
        registration=registration,
        item=item,
        order_number=issue_order_number(),
        payment_method=cd["paymentMethod"],
        total_price=item.price,
        status="pending",
    )
    logger.info("Order %s placed by %s for item %s", order.order_number, registration.unique_code, item.pk)

    transaction.on_commit(lambda: send_order_notifications(order, registration, item))
    return order


def track_order(data: dict, orders=None, registrations=None):
    form = TrackForm(data)
    if not form.is_valid():
        raise ValidationFailure("Missing sacred identifiers.", fields=_form_errors(form))
    registration = resolve_registration(form.cleaned_data["registrationCode"], registrations)
    return resolve_order(registration.pk, form.cleaned_data["orderNumber"], orders or OrderRepository())
