import json
from unittest.mock import patch

from django.core import mail
from django.test import SimpleTestCase, override_settings
from django.urls import reverse

from portal.mail import admin_recipients, send_email, send_templated


@override_settings(
    ADMIN_EMAIL="council@example.com, Council@example.com,keeper@example.com",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class MailTests(SimpleTestCase):
    def test_admin_recipients_deduplicated(self):
        self.assertEqual(admin_recipients(), ["council@example.com", "keeper@example.com"])

    def test_html_and_text_parts(self):
        result = send_email("a@example.com", "Hello", "<p>Greetings, <b>seeker</b></p>")
        self.assertTrue(result.success)
        self.assertEqual(mail.outbox[0].body, "Greetings, seeker")
        self.assertEqual(mail.outbox[0].alternatives[0][1], "text/html")

    def test_no_recipients(self):
        with self.assertLogs("portal.mail", level="WARNING"):
            result = send_email([], "Hello", "<p>x</p>")
        self.assertFalse(result.success)
        self.assertEqual(len(mail.outbox), 0)

    def test_transport_failure_is_reported_not_raised(self):
        with patch("portal.mail.EmailMultiAlternatives.send", side_effect=ConnectionRefusedError("down")):
            with self.assertLogs("portal.mail", level="ERROR"):
                result = send_email("a@example.com", "Hello", "<p>x</p>")
        self.assertFalse(result.success)
        self.assertIn("down", result.error)

    def test_missing_template_is_reported(self):
        with self.assertLogs("portal.mail", level="ERROR"):
            result = send_templated("a@example.com", "Hello", "does_not_exist", {})
        self.assertFalse(result.success)


@override_settings(
    ADMIN_EMAIL="council@example.com",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class ContactTests(SimpleTestCase):
    def _post(self, payload):
        return self.client.post(reverse("contact"), data=json.dumps(payload), content_type="application/json")

    def test_message_forwarded_to_council(self):
        resp = self._post({"name": "Ada", "email": "ada@example.com", "subject": "Entry", "message": "May I join?"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["council@example.com"])
        self.assertEqual(mail.outbox[0].subject, "Portal Contact: Entry")
        self.assertIn("May I join?", mail.outbox[0].alternatives[0][0])

    def test_all_fields_required(self):
        resp = self._post({"name": "Ada", "email": "ada@example.com", "subject": "  "})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(len(mail.outbox), 0)
