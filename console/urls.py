from django.urls import path

from . import views

app_name = "console"
urlpatterns = [
    path("login", views.login_view, name="login"),
    path("logout", views.logout_view, name="logout"),
    path("session", views.session_view, name="session"),
    path("registrations", views.registrations_view, name="registrations"),
    path("payment-methods", views.payment_methods_view, name="payment_methods"),
    path("items", views.items_view, name="items"),
    path("orders", views.orders_view, name="orders"),
    path("message", views.message_view, name="message"),
]
