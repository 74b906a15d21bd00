from django.urls import path

from . import views

app_name = "shop"
urlpatterns = [
    path("shop/items", views.item_list, name="items"),
    path("shop/order", views.order_create, name="order"),
    path("shop/track", views.order_track, name="track"),
    path("payment-methods", views.payment_method_list, name="payment_methods"),
]
