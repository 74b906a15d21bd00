import logging

from django.conf import settings

from portal.mail import admin_recipients, send_all

logger = logging.getLogger(__name__)


def send_order_notifications(order, registration, item) -> None:
    """Tell the council about a new order and confirm it to the member."""
    ctx = {
        "order": order,
        "registration": registration,
        "item": item,
        "dashboard_url": f"{settings.PUBLIC_BASE_URL}/django-admin/shop/order/",
    }
    results = send_all([
        (admin_recipients(), f"NEW ORDER: {order.order_number}", "order_admin", ctx),
        (registration.email, f"Order Confirmation - {order.order_number}", "order_confirmation", ctx),
    ])
    for r in results:
        if not r.success:
            logger.warning("Order %s notification not delivered: %s", order.order_number, r.error)
