from django.contrib import admin
from .models import Item, Order, PaymentMethod


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "status", "total_price", "payment_method", "registration", "item", "created_at")
    search_fields = ("order_number", "registration__unique_code", "registration__email", "item__name")
    list_filter = ("status", "created_at")
    list_select_related = ("registration", "item")
    raw_id_fields = ("registration", "item")
    readonly_fields = ("order_number", "total_price", "created_at")


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "created_at")
    search_fields = ("name",)


admin.site.register(PaymentMethod)
