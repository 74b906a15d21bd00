from django.contrib import admin
from .models import Registration


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ("unique_code", "name", "email", "country", "status", "created_at")
    search_fields = ("unique_code", "name", "email", "phone")
    list_filter = ("status", "country", "created_at")
    readonly_fields = ("unique_code", "created_at")
