from django.urls import path

from . import views

app_name = "registrations"
urlpatterns = [
    path("register", views.register, name="register"),
]
