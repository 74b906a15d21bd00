import json
from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse

from portal.errors import DuplicateIdentifier, NotFound
from registrations.identifiers import ORDER_NUMBER_RE, REGISTRATION_CODE_RE, resolve_order
from registrations.models import Registration
from .models import Item, Order, PaymentMethod
from .repositories import OrderRecord, OrderRepository

PNG = "data:image/png;base64,iVBORw0KGgo="


def make_registration(code, email="member@example.com"):
    return Registration.objects.create(
        name="Member " + code,
        country="FR",
        city="Paris",
        date_of_birth="1990-01-01",
        marital_status="Single",
        occupation="Alchemist",
        salary="5000",
        email=email,
        phone="+3312345",
        payment_method="Bank transfer",
        personal_photo_url="https://cdn.example.com/m.png",
        id_card_front_url="https://cdn.example.com/i.png",
        unique_code=code,
    )


def make_item(name="Obsidian Amulet", price="333.00"):
    return Item.objects.create(
        name=name,
        price=Decimal(price),
        description="Forged under a new moon.",
        mystical_properties="Wards off envy.",
        image_url="https://cdn.example.com/amulet.png",
    )


@override_settings(
    ADMIN_EMAIL="council@example.com",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class ShopApiTestCase(TestCase):
    def post_json(self, name, payload):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json")


class CatalogTests(ShopApiTestCase):
    def test_items_newest_first(self):
        make_item("First")
        make_item("Second")
        resp = self.client.get(reverse("shop:items"))
        self.assertEqual(resp.status_code, 200)
        names = [i["name"] for i in resp.json()]
        self.assertEqual(names, ["Second", "First"])
        self.assertEqual(resp.json()[0]["price"], "333.00")

    def test_only_active_payment_methods_are_public(self):
        PaymentMethod.objects.create(name="Bitcoin", details="bc1q...")
        PaymentMethod.objects.create(name="Cheque", is_active=False)
        resp = self.client.get(reverse("shop:payment_methods"))
        self.assertEqual([m["name"] for m in resp.json()], ["Bitcoin"])


class PlaceOrderTests(ShopApiTestCase):
    def setUp(self):
        self.registration = make_registration("RC-AB12-CD34")
        self.item = make_item()

    def _order(self, **overrides):
        payload = {"uniqueCode": " rc-ab12-cd34 ", "itemId": self.item.pk, "paymentMethod": "Bitcoin"}
        payload.update(overrides)
        return self.post_json("shop:order", payload)

    def test_order_created_pending_with_price_snapshot(self):
        resp = self._order()
        self.assertEqual(resp.status_code, 200)
        number = resp.json()["orderNumber"]
        self.assertRegex(number, ORDER_NUMBER_RE)

        order = Order.objects.get(order_number=number)
        self.assertEqual(order.registration, self.registration)
        self.assertEqual(order.item, self.item)
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.total_price, Decimal("333.00"))

        self.item.price = Decimal("999.00")
        self.item.save()
        order.refresh_from_db()
        self.assertEqual(order.total_price, Decimal("333.00"))

    def test_notifications_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            resp = self._order()
        number = resp.json()["orderNumber"]
        self.assertEqual([m.to for m in mail.outbox], [["council@example.com"], ["member@example.com"]])
        self.assertEqual(mail.outbox[0].subject, f"NEW ORDER: {number}")
        self.assertEqual(mail.outbox[1].subject, f"Order Confirmation - {number}")

    def test_unknown_registration_code(self):
        resp = self._order(uniqueCode="RC-NONE-0000")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "not_found")
        self.assertFalse(Order.objects.exists())

    def test_unknown_item(self):
        resp = self._order(itemId=self.item.pk + 100)
        self.assertEqual(resp.status_code, 404)
        self.assertFalse(Order.objects.exists())

    def test_missing_fields(self):
        resp = self.post_json("shop:order", {"uniqueCode": "RC-AB12-CD34"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("itemId", resp.json()["fields"])
        self.assertIn("paymentMethod", resp.json()["fields"])

    def test_colliding_order_number_is_not_retried(self):
        with patch("shop.services.issue_order_number", return_value="ORD-SAME01"):
            first = self._order()
            second = self._order(paymentMethod="Gold")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["code"], "duplicate_identifier")

        order = Order.objects.get(order_number="ORD-SAME01")
        self.assertEqual(order.payment_method, "Bitcoin")
        self.assertEqual(Order.objects.count(), 1)

    def test_repository_raises_duplicate_identifier(self):
        repo = OrderRepository()
        fields = dict(registration=self.registration, item=self.item, order_number="ORD-DUPE01",
                      payment_method="Bitcoin", total_price=self.item.price)
        first = repo.create(**fields)
        with self.assertRaises(DuplicateIdentifier):
            repo.create(**fields)
        self.assertTrue(Order.objects.filter(pk=first.pk).exists())


class TrackOrderTests(ShopApiTestCase):
    def setUp(self):
        self.owner = make_registration("RC-OWNR-0001", email="owner@example.com")
        self.other = make_registration("RC-OTHR-0002", email="other@example.com")
        self.item = make_item()
        self.order = Order.objects.create(
            registration=self.owner, item=self.item, order_number="ORD-TRACK1",
            payment_method="Bitcoin", total_price=self.item.price,
        )

    def test_track_returns_hydrated_order(self):
        resp = self.post_json("shop:track", {"registrationCode": "rc-ownr-0001", "orderNumber": " ord-track1 "})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["orderNumber"], "ORD-TRACK1")
        self.assertEqual(body["status"], "pending")
        self.assertEqual(body["item"]["name"], "Obsidian Amulet")
        self.assertEqual(body["item"]["image"], "https://cdn.example.com/amulet.png")

    def test_order_of_another_registrant_is_not_found(self):
        resp = self.post_json("shop:track", {"registrationCode": "RC-OTHR-0002", "orderNumber": "ORD-TRACK1"})
        self.assertEqual(resp.status_code, 404)

    def test_resolve_order_requires_matching_registrant(self):
        record = resolve_order(self.owner.pk, "ORD-TRACK1", OrderRepository())
        self.assertIsInstance(record, OrderRecord)
        self.assertEqual(record.registration.unique_code, "RC-OWNR-0001")
        with self.assertRaises(NotFound):
            resolve_order(self.other.pk, "ORD-TRACK1", OrderRepository())

    def test_unknown_registration_code(self):
        resp = self.post_json("shop:track", {"registrationCode": "RC-GONE-0000", "orderNumber": "ORD-TRACK1"})
        self.assertEqual(resp.status_code, 404)

    def test_missing_identifiers(self):
        resp = self.post_json("shop:track", {"registrationCode": "RC-OWNR-0001"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Missing sacred identifiers.")


@override_settings(
    STORAGES={
        "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
        "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
    },
    UPLOAD_STORAGE_BACKEND="registrations.storage.DjangoMediaStorage",
)
class EndToEndTests(ShopApiTestCase):
    def test_register_order_track(self):
        item = make_item("Silver Chalice", "120.50")

        reg = self.post_json("registrations:register", {
            "name": "Hermes Trismegistus",
            "country": "EG",
            "city": "Alexandria",
            "dateOfBirth": "0001-01-01",
            "maritalStatus": "Single",
            "occupation": "Sage",
            "salary": "n/a",
            "email": "hermes@example.com",
            "phone": "+2012345",
            "paymentMethod": "Gold",
            "personalPhoto": PNG,
            "idCardFront": PNG,
            "idCardBack": PNG,
        })
        self.assertEqual(reg.status_code, 200)
        code = reg.json()["uniqueCode"]
        self.assertRegex(code, REGISTRATION_CODE_RE)

        order = self.post_json("shop:order", {"uniqueCode": code, "itemId": item.pk, "paymentMethod": "Gold"})
        self.assertEqual(order.status_code, 200)
        number = order.json()["orderNumber"]
        self.assertRegex(number, ORDER_NUMBER_RE)

        track = self.post_json("shop:track", {"registrationCode": code, "orderNumber": number})
        self.assertEqual(track.status_code, 200)
        self.assertEqual(track.json()["status"], "pending")
        self.assertEqual(track.json()["totalPrice"], "120.50")
        self.assertEqual(track.json()["registration"]["uniqueCode"], code)
