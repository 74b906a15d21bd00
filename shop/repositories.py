"""Explicit data access for the shop.

Joined reads come back as frozen records carrying the registrant and item
they reference, so callers never depend on lazy relation loading.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction

from portal.errors import DuplicateIdentifier, NotFound, ValidationFailure

from .models import Item, Order, PaymentMethod


@dataclass(frozen=True)
class RegistrantSummary:
    id: int
    name: str
    email: str
    unique_code: str


@dataclass(frozen=True)
class ItemSummary:
    id: int
    name: str
    price: Decimal
    image_url: str
    description: str


@dataclass(frozen=True)
class OrderRecord:
    id: int
    order_number: str
    status: str
    payment_method: str
    total_price: Decimal
    created_at: datetime
    registration: RegistrantSummary
    item: ItemSummary

    @classmethod
    def from_model(cls, order: Order) -> "OrderRecord":
        reg, item = order.registration, order.item
        return cls(
            id=order.pk,
            order_number=order.order_number,
            status=order.status,
            payment_method=order.payment_method,
            total_price=order.total_price,
            created_at=order.created_at,
            registration=RegistrantSummary(reg.pk, reg.name, reg.email, reg.unique_code),
            item=ItemSummary(item.pk, item.name, item.price, item.image_url, item.description),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "status": self.status,
            "paymentMethod": self.payment_method,
            "totalPrice": str(self.total_price),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "registration": {
                "id": self.registration.id,
                "name": self.registration.name,
                "email": self.registration.email,
                "uniqueCode": self.registration.unique_code,
            },
            "item": {
                "id": self.item.id,
                "name": self.item.name,
                "price": str(self.item.price),
                "image": self.item.image_url,
                "description": self.item.description,
            },
        }


def _get(model, pk, label):
    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label} not found in records.")


class ItemRepository:
    def list(self):
        return list(Item.objects.order_by("-created_at", "-pk"))

    def get(self, item_id) -> Item:
        return _get(Item, item_id, "Artifact")

    def create(self, **fields) -> Item:
        return Item.objects.create(**fields)

    def delete(self, item_id) -> None:
        item = self.get(item_id)
        try:
            item.delete()
        except IntegrityError:
            raise ValidationFailure("Artifact has orders and cannot be removed.")


class PaymentMethodRepository:
    def list_active(self):
        return list(PaymentMethod.objects.filter(is_active=True))

    def list_all(self):
        return list(PaymentMethod.objects.all())

    def get(self, method_id) -> PaymentMethod:
        return _get(PaymentMethod, method_id, "Payment method")

    def create(self, **fields) -> PaymentMethod:
        return PaymentMethod.objects.create(**fields)

    def update(self, method_id, **fields) -> PaymentMethod:
        method = self.get(method_id)
        for k, v in fields.items():
            setattr(method, k, v)
        method.save()
        return method

    def delete(self, method_id) -> None:
        self.get(method_id).delete()


class OrderRepository:
    def _hydrated(self):
        return Order.objects.select_related("registration", "item")

    def create(self, **fields) -> Order:
        """Insert an order; a taken ``order_number`` raises ``DuplicateIdentifier``."""
        try:
            with transaction.atomic():
                return Order.objects.create(**fields)
        except IntegrityError as e:
            if Order.objects.filter(order_number=fields.get("order_number")).exists():
                raise DuplicateIdentifier() from e
            raise

    def list_hydrated(self):
        return [OrderRecord.from_model(o) for o in self._hydrated().order_by("-created_at", "-pk")]

    def find_for_registrant(self, registration_id, order_number: str) -> OrderRecord | None:
        order = self._hydrated().filter(order_number=order_number, registration_id=registration_id).first()
        return OrderRecord.from_model(order) if order else None

    def update_status(self, order_id, status: str) -> OrderRecord:
        if status not in dict(Order.STATUS_CHOICES):
            raise ValidationFailure("Unknown order status", fields={"status": [f"Invalid status: {status}"]})
        order = _get(Order, order_id, "Order")
        order.status = status
        order.save(update_fields=["status"])
        return OrderRecord.from_model(self._hydrated().get(pk=order.pk))
