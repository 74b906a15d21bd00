from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

from . import views

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("api/", include("registrations.urls")),
    path("api/", include("shop.urls")),
    path("api/console/", include("console.urls")),
    path("api/contact", views.contact_view, name="contact"),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

handler404 = "portal.views.error_404_view"
