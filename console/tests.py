import json
from decimal import Decimal

from django.core import mail
from django.test import Client, SimpleTestCase, TestCase, override_settings
from django.test.client import RequestFactory
from django.urls import reverse

from registrations.models import Registration
from shop.models import Item, Order, PaymentMethod
from .auth import EnvCredentialPolicy, AdminAuthPolicy


class AllowAllPolicy(AdminAuthPolicy):
    """Test double: every request is an admin."""

    def authenticate(self, username, password):
        return True

    def is_authenticated(self, request):
        return True


def make_registration(code="RC-AB12-CD34"):
    return Registration.objects.create(
        name="Ada", country="UK", city="London", date_of_birth="1815-12-10",
        marital_status="Married", occupation="Mathematician", salary="1",
        email="ada@example.com", phone="+44123456", payment_method="Bitcoin",
        personal_photo_url="https://cdn.example.com/a.png",
        id_card_front_url="https://cdn.example.com/b.png",
        unique_code=code,
    )


class ConsoleTestCase(TestCase):
    def send(self, method, name, payload=None, query=""):
        url = reverse(name) + query
        data = json.dumps(payload) if payload is not None else ""
        return getattr(self.client, method)(url, data=data, content_type="application/json")


class EnvCredentialPolicyTests(SimpleTestCase):
    def test_matching_credentials(self):
        policy = EnvCredentialPolicy("keeper", "open-sesame")
        self.assertTrue(policy.authenticate("keeper", "open-sesame"))
        self.assertFalse(policy.authenticate("keeper", "wrong"))
        self.assertFalse(policy.authenticate("intruder", "open-sesame"))

    def test_unconfigured_policy_rejects_everything(self):
        with self.assertLogs("console.auth", level="WARNING"):
            self.assertFalse(EnvCredentialPolicy("", "").authenticate("", ""))

    @override_settings(ADMIN_USERNAME="root", ADMIN_PASSWORD="pw")
    def test_reads_settings_by_default(self):
        self.assertTrue(EnvCredentialPolicy().authenticate("root", "pw"))

    def test_session_flag(self):
        request = RequestFactory().get("/")
        request.session = {}
        self.assertFalse(EnvCredentialPolicy("a", "b").is_authenticated(request))


@override_settings(
    ADMIN_USERNAME="keeper",
    ADMIN_PASSWORD="open-sesame",
    CONSOLE_AUTH_POLICY="console.auth.EnvCredentialPolicy",
)
class SessionTests(ConsoleTestCase):
    def test_protected_endpoints_require_login(self):
        for name in ("registrations", "payment_methods", "items", "orders"):
            resp = self.client.get(reverse(f"console:{name}"))
            self.assertEqual(resp.status_code, 401, name)
            self.assertEqual(resp.json()["code"], "unauthorized")
        resp = self.send("post", "console:message", {"to": "a@example.com", "subject": "s", "message": "m"})
        self.assertEqual(resp.status_code, 401)

    def test_wrong_password(self):
        resp = self.send("post", "console:login", {"username": "keeper", "password": "nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(self.client.get(reverse("console:session")).json()["authenticated"])

    def test_login_then_logout(self):
        resp = self.send("post", "console:login", {"username": "keeper", "password": "open-sesame"})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(self.client.get(reverse("console:session")).json()["authenticated"])
        self.assertEqual(self.client.get(reverse("console:registrations")).status_code, 200)

        self.send("post", "console:logout")
        self.assertFalse(self.client.get(reverse("console:session")).json()["authenticated"])
        self.assertEqual(self.client.get(reverse("console:registrations")).status_code, 401)


@override_settings(
    ADMIN_USERNAME="keeper",
    ADMIN_PASSWORD="open-sesame",
    CONSOLE_AUTH_POLICY="console.auth.EnvCredentialPolicy",
)
class CsrfTests(TestCase):
    credentials = {"username": "keeper", "password": "open-sesame"}

    def setUp(self):
        self.client = Client(enforce_csrf_checks=True)

    def _token(self):
        return self.client.get(reverse("console:session")).json()["csrfToken"]

    def _send(self, method, name, payload, token=None):
        extra = {"HTTP_X_CSRFTOKEN": token} if token else {}
        return getattr(self.client, method)(
            reverse(name), data=json.dumps(payload), content_type="application/json", **extra
        )

    def test_login_requires_token(self):
        resp = self._send("post", "console:login", self.credentials)
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["code"], "csrf_failed")

        resp = self._send("post", "console:login", self.credentials, token=self._token())
        self.assertEqual(resp.status_code, 200)

    def test_console_writes_require_token(self):
        reg = make_registration()
        self._send("post", "console:login", self.credentials, token=self._token())

        resp = self._send("put", "console:registrations", {"id": reg.pk, "status": "approved"})
        self.assertEqual(resp.status_code, 403)
        reg.refresh_from_db()
        self.assertEqual(reg.status, "pending")

        resp = self._send("put", "console:registrations", {"id": reg.pk, "status": "approved"}, token=self._token())
        self.assertEqual(resp.status_code, 200)
        reg.refresh_from_db()
        self.assertEqual(reg.status, "approved")

    def test_login_rotates_csrf_secret(self):
        token = self._token()
        before = self.client.cookies["csrftoken"].value
        resp = self._send("post", "console:login", self.credentials, token=token)
        self.assertEqual(resp.status_code, 200)
        self.assertNotEqual(self.client.cookies["csrftoken"].value, before)

    def test_public_endpoints_need_no_token(self):
        resp = self._send("post", "shop:track", {"registrationCode": "RC-NONE-0000", "orderNumber": "ORD-NONE00"})
        self.assertEqual(resp.status_code, 404)


@override_settings(
    CONSOLE_AUTH_POLICY="console.tests.AllowAllPolicy",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class RegistrationAdminTests(ConsoleTestCase):
    def test_list_newest_first(self):
        make_registration("RC-OLD1-0001")
        make_registration("RC-NEW1-0002")
        codes = [r["uniqueCode"] for r in self.client.get(reverse("console:registrations")).json()]
        self.assertEqual(codes, ["RC-NEW1-0002", "RC-OLD1-0001"])

    def test_status_change(self):
        reg = make_registration()
        resp = self.send("put", "console:registrations", {"id": reg.pk, "status": "approved"})
        self.assertEqual(resp.status_code, 200)
        reg.refresh_from_db()
        self.assertEqual(reg.status, "approved")

    def test_invalid_status(self):
        reg = make_registration()
        resp = self.send("put", "console:registrations", {"id": reg.pk, "status": "exalted"})
        self.assertEqual(resp.status_code, 400)
        reg.refresh_from_db()
        self.assertEqual(reg.status, "pending")

    def test_unknown_registration(self):
        resp = self.send("put", "console:registrations", {"id": 9999, "status": "approved"})
        self.assertEqual(resp.status_code, 404)


@override_settings(CONSOLE_AUTH_POLICY="console.tests.AllowAllPolicy")
class PaymentMethodAdminTests(ConsoleTestCase):
    def test_crud(self):
        resp = self.send("post", "console:payment_methods", {"name": "Bitcoin", "details": "bc1q-secret"})
        self.assertEqual(resp.status_code, 200)
        method_id = resp.json()["id"]
        self.assertTrue(resp.json()["isActive"])

        resp = self.send("put", "console:payment_methods", {"id": method_id, "isActive": False})
        self.assertEqual(resp.status_code, 200)
        method = PaymentMethod.objects.get(pk=method_id)
        self.assertFalse(method.is_active)
        self.assertEqual(method.details, "bc1q-secret")

        # inactive methods remain visible in the console but not publicly
        self.assertEqual(len(self.client.get(reverse("console:payment_methods")).json()), 1)
        self.assertEqual(self.client.get(reverse("shop:payment_methods")).json(), [])

        resp = self.send("delete", "console:payment_methods", query=f"?id={method_id}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(PaymentMethod.objects.exists())

    def test_create_requires_name(self):
        resp = self.send("post", "console:payment_methods", {"details": "x"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("name", resp.json()["fields"])

    def test_delete_requires_id(self):
        self.assertEqual(self.send("delete", "console:payment_methods").status_code, 400)


@override_settings(CONSOLE_AUTH_POLICY="console.tests.AllowAllPolicy")
class ItemAdminTests(ConsoleTestCase):
    def test_create_and_delete(self):
        resp = self.send("post", "console:items", {
            "name": "Crystal Orb", "price": "77.70", "description": "Sees far.",
            "mysticalProperties": "Clairvoyance", "image": "https://cdn.example.com/orb.png",
        })
        self.assertEqual(resp.status_code, 200)
        item = Item.objects.get(pk=resp.json()["id"])
        self.assertEqual(item.price, Decimal("77.70"))
        self.assertEqual(item.mystical_properties, "Clairvoyance")

        resp = self.send("delete", "console:items", query=f"?id={item.pk}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Item.objects.exists())

    def test_invalid_price(self):
        resp = self.send("post", "console:items", {"name": "Orb", "price": "lots", "description": "d"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("price", resp.json()["fields"])

    def test_item_with_orders_cannot_be_deleted(self):
        item = Item.objects.create(name="Ring", price=Decimal("10.00"), description="d")
        Order.objects.create(registration=make_registration(), item=item, order_number="ORD-RING01",
                             payment_method="Gold", total_price=item.price)
        resp = self.send("delete", "console:items", query=f"?id={item.pk}")
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(Item.objects.filter(pk=item.pk).exists())

    def test_delete_unknown(self):
        self.assertEqual(self.send("delete", "console:items", query="?id=424242").status_code, 404)


@override_settings(CONSOLE_AUTH_POLICY="console.tests.AllowAllPolicy")
class OrderAdminTests(ConsoleTestCase):
    def setUp(self):
        self.registration = make_registration()
        self.item = Item.objects.create(name="Ring", price=Decimal("10.00"), description="d")
        self.order = Order.objects.create(registration=self.registration, item=self.item,
                                          order_number="ORD-RING01", payment_method="Gold",
                                          total_price=self.item.price)

    def test_list_is_hydrated(self):
        orders = self.client.get(reverse("console:orders")).json()
        self.assertEqual(len(orders), 1)
        self.assertEqual(orders[0]["registration"]["uniqueCode"], "RC-AB12-CD34")
        self.assertEqual(orders[0]["registration"]["email"], "ada@example.com")
        self.assertEqual(orders[0]["item"]["name"], "Ring")
        self.assertEqual(orders[0]["totalPrice"], "10.00")

    def test_status_change(self):
        resp = self.send("put", "console:orders", {"id": self.order.pk, "status": "shipped"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "shipped")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "shipped")

    def test_invalid_status(self):
        resp = self.send("put", "console:orders", {"id": self.order.pk, "status": "teleported"})
        self.assertEqual(resp.status_code, 400)

    def test_missing_fields(self):
        resp = self.send("put", "console:orders", {"status": "shipped"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("id", resp.json()["fields"])


@override_settings(
    CONSOLE_AUTH_POLICY="console.tests.AllowAllPolicy",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class MessageTests(ConsoleTestCase):
    def test_themed_message_sent(self):
        resp = self.send("post", "console:message", {
            "to": "ada@example.com", "subject": "Your initiation",
            "message": "The circle awaits.", "applicantName": "Ada",
        })
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["success"])
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Your initiation")
        html = mail.outbox[0].alternatives[0][0]
        self.assertIn("Dear Ada", html)
        self.assertIn("The circle awaits.", html)

    def test_missing_recipient(self):
        resp = self.send("post", "console:message", {"subject": "s", "message": "m"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(len(mail.outbox), 0)
