"""Issue and resolve the human-typeable identifiers members carry around.

Registration codes look like ``RC-AB12-CD34`` and order numbers like
``ORD-X7Q2ZP``. Neither is checked against the store before use: order
numbers rely on the unique constraint at write time, registration codes
only on the size of the code space.
"""
import re
import string

from django.utils.crypto import get_random_string

from portal.errors import NotFound

from .repositories import RegistrationRepository

ALNUM = string.ascii_uppercase + string.digits

REGISTRATION_CODE_RE = re.compile(r"^RC-[A-Z0-9]{4}-[A-Z0-9]{4}$")
ORDER_NUMBER_RE = re.compile(r"^ORD-[A-Z0-9]{6}$")


def _block(n: int) -> str:
    return get_random_string(n, allowed_chars=ALNUM)


def normalize_code(value: str | None) -> str:
    return (value or "").strip().upper()


def issue_registration_code() -> str:
    return f"RC-{_block(4)}-{_block(4)}"


def issue_order_number() -> str:
    return f"ORD-{_block(6)}"


def resolve_registration(code: str | None, registrations=None):
    """Return the registration holding ``code``, ignoring case and padding."""
    registrations = registrations or RegistrationRepository()
    normalized = normalize_code(code)
    registration = registrations.find_by_code(normalized) if normalized else None
    if registration is None:
        raise NotFound("Sacred Code not found in records.")
    return registration


def resolve_order(registration_id, order_number: str | None, orders):
    """Return the hydrated order ``order_number`` owned by ``registration_id``.

    ``orders`` is the caller's order store (``shop.repositories.OrderRepository``).
    The order number alone is not enough; an order that belongs to another
    registrant is reported exactly like a missing one.
    """
    normalized = normalize_code(order_number)
    record = orders.find_for_registrant(registration_id, normalized) if normalized else None
    if record is None:
        raise NotFound("Order not found or not associated with this code.")
    return record
