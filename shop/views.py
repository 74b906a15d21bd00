from portal.http import json_body, json_view

from .repositories import ItemRepository, PaymentMethodRepository
from .services import place_order, track_order


@json_view("GET")
def item_list(request):
    return [i.to_dict() for i in ItemRepository().list()]


@json_view("GET")
def payment_method_list(request):
    """Active payment methods, shown on the induction form and in the shop."""
    return [m.to_dict() for m in PaymentMethodRepository().list_active()]


@json_view("POST", csrf=False)
def order_create(request):
    order = place_order(json_body(request))
    return {"success": True, "orderNumber": order.order_number}


@json_view("POST", csrf=False)
def order_track(request):
    return track_order(json_body(request)).to_dict()
