from django.db import models

from registrations.models import Registration


class Item(models.Model):
    name = models.CharField(max_length=128)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.TextField()
    mystical_properties = models.TextField(blank=True, default="")
    image_url = models.URLField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.name} (${self.price})"

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "name": self.name,
            "price": str(self.price),
            "description": self.description,
            "mysticalProperties": self.mystical_properties,
            "image": self.image_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class PaymentMethod(models.Model):
    name = models.CharField(max_length=64)
    description = models.TextField(blank=True, default="")
    details = models.TextField(blank=True, default="")  # wallet address, bank account, ...
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "name": self.name,
            "description": self.description,
            "details": self.details,
            "isActive": self.is_active,
        }


class Order(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("shipped", "Shipped"),
        ("delivered", "Delivered"),
        ("cancelled", "Cancelled"),
    ]

    registration = models.ForeignKey(Registration, on_delete=models.PROTECT, related_name="orders")
    item = models.ForeignKey(Item, on_delete=models.PROTECT, related_name="orders")
    order_number = models.CharField(max_length=16, unique=True)
    payment_method = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default="pending", db_index=True)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self):
        return f"{self.order_number} {self.status} ${self.total_price}"
