import base64
import json
from io import StringIO
from unittest.mock import patch

import cloudinary.exceptions
from django.conf import settings
from django.core import mail
from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from portal.errors import NotFound, ValidationFailure
from .identifiers import (
    ORDER_NUMBER_RE,
    REGISTRATION_CODE_RE,
    issue_order_number,
    issue_registration_code,
    resolve_registration,
)
from .models import Registration
from .services import submit_registration
from .storage import CloudinaryStorage, StorageError, decode_data_uri

PNG = "data:image/png;base64,iVBORw0KGgo="

TEST_STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}


def make_registration(code="RC-AB12-CD34", **overrides):
    fields = dict(
        name="Ada Lovelace",
        country="UK",
        city="London",
        date_of_birth="1815-12-10",
        marital_status="Married",
        occupation="Mathematician",
        salary="10000",
        email="ada@example.com",
        phone="+44123456",
        payment_method="Bitcoin",
        personal_photo_url="https://cdn.example.com/members/ada.png",
        id_card_front_url="https://cdn.example.com/ids/ada-front.png",
        unique_code=code,
    )
    fields.update(overrides)
    return Registration.objects.create(**fields)


def registration_payload(**overrides):
    body = {
        "name": "Ada Lovelace",
        "country": "UK",
        "city": "London",
        "dateOfBirth": "1815-12-10",
        "maritalStatus": "Married",
        "occupation": "Mathematician",
        "salary": "10000",
        "email": "Ada@Example.com",
        "phone": "+44123456",
        "paymentMethod": "Bitcoin",
        "personalPhoto": PNG,
        "idCardFront": PNG,
    }
    body.update(overrides)
    return body


class IdentifierFormatTests(SimpleTestCase):
    def test_registration_codes_match_format(self):
        for _ in range(200):
            self.assertRegex(issue_registration_code(), REGISTRATION_CODE_RE)

    def test_order_numbers_match_format(self):
        for _ in range(200):
            self.assertRegex(issue_order_number(), ORDER_NUMBER_RE)


class ResolveRegistrationTests(TestCase):
    def setUp(self):
        self.registration = make_registration()

    def test_exact_code(self):
        self.assertEqual(resolve_registration("RC-AB12-CD34"), self.registration)

    def test_case_and_whitespace_are_ignored(self):
        self.assertEqual(resolve_registration("  rc-ab12-cd34 "), self.registration)

    def test_unknown_code_is_not_found(self):
        with self.assertRaises(NotFound):
            resolve_registration("RC-0000-0000")

    def test_blank_code_is_not_found(self):
        with self.assertRaises(NotFound):
            resolve_registration("   ")

    def test_no_fuzzy_matching(self):
        with self.assertRaises(NotFound):
            resolve_registration("RC-AB12-CD3")

    def test_injected_repository(self):
        class FakeRepo:
            def __init__(self):
                self.seen = []

            def find_by_code(self, code):
                self.seen.append(code)
                return "sentinel" if code == "RC-ZZZZ-0001" else None

        repo = FakeRepo()
        self.assertEqual(resolve_registration(" rc-zzzz-0001", repo), "sentinel")
        self.assertEqual(repo.seen, ["RC-ZZZZ-0001"])


class DecodeDataUriTests(SimpleTestCase):
    def test_png(self):
        data, ext = decode_data_uri(PNG)
        self.assertTrue(data.startswith(b"\x89PNG"))
        self.assertEqual(ext, ".png")

    def test_rejects_plain_urls(self):
        with self.assertRaises(ValidationFailure):
            decode_data_uri("https://example.com/a.png")

    def test_rejects_unsupported_type(self):
        with self.assertRaises(ValidationFailure):
            decode_data_uri("data:text/html;base64,PGI+aGk8L2I+")

    def test_rejects_bad_base64(self):
        with self.assertRaises(ValidationFailure):
            decode_data_uri("data:image/png;base64,@@@")


@override_settings(
    STORAGES=TEST_STORAGES,
    UPLOAD_STORAGE_BACKEND="registrations.storage.DjangoMediaStorage",
    PUBLIC_BASE_URL="https://portal.example.com",
    ADMIN_EMAIL="council@example.com",
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
)
class RegisterEndpointTests(TestCase):
    def _post(self, payload):
        return self.client.post(reverse("registrations:register"), data=json.dumps(payload), content_type="application/json")

    def test_registration_is_created_with_code(self):
        with self.captureOnCommitCallbacks(execute=True):
            resp = self._post(registration_payload())
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertRegex(body["uniqueCode"], REGISTRATION_CODE_RE)

        reg = Registration.objects.get(pk=body["id"])
        self.assertEqual(reg.unique_code, body["uniqueCode"])
        self.assertEqual(reg.status, "pending")
        self.assertEqual(reg.email, "ada@example.com")
        self.assertTrue(reg.personal_photo_url.startswith("https://portal.example.com/media/members/"))
        self.assertTrue(reg.id_card_front_url.startswith("https://portal.example.com/media/ids/"))
        self.assertEqual(reg.id_card_back_url, "")

    def test_notifications_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True):
            resp = self._post(registration_payload())
        code = resp.json()["uniqueCode"]
        self.assertEqual(len(mail.outbox), 2)
        admin_msg, applicant_msg = mail.outbox
        self.assertEqual(admin_msg.to, ["council@example.com"])
        self.assertIn("NEW REGISTRATION", admin_msg.subject)
        self.assertEqual(applicant_msg.to, ["ada@example.com"])
        self.assertIn(code, applicant_msg.alternatives[0][0])

    def test_legacy_id_card_field_accepted(self):
        payload = registration_payload(idCardPhoto=PNG)
        del payload["idCardFront"]
        resp = self._post(payload)
        self.assertEqual(resp.status_code, 200)

    def test_validation_failure_lists_fields(self):
        resp = self._post(registration_payload(name="A", email="not-an-email", personalPhoto=""))
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["code"], "validation_failure")
        self.assertIn("name", body["fields"])
        self.assertIn("email", body["fields"])
        self.assertIn("personalPhoto", body["fields"])
        self.assertFalse(Registration.objects.exists())

    def test_malformed_json(self):
        resp = self.client.post(reverse("registrations:register"), data="{nope", content_type="application/json")
        self.assertEqual(resp.status_code, 400)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(reverse("registrations:register")).status_code, 405)

    def test_storage_failure_surfaces_and_writes_nothing(self):
        with patch("registrations.storage.DjangoMediaStorage.upload", side_effect=StorageError()):
            resp = self._post(registration_payload())
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["code"], "upstream_failure")
        self.assertFalse(Registration.objects.exists())

    def test_email_failure_does_not_fail_submission(self):
        with patch("portal.mail.EmailMultiAlternatives.send", side_effect=OSError("smtp down")):
            with self.assertLogs("portal.mail", level="ERROR"):
                with self.captureOnCommitCallbacks(execute=True):
                    resp = self._post(registration_payload())
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(Registration.objects.filter(pk=resp.json()["id"]).exists())


class CloudinaryStorageTests(SimpleTestCase):
    def setUp(self):
        self.storage = CloudinaryStorage(cloud_name="demo", api_key="key", api_secret="secret", folder="rothschild")

    def test_upload_goes_through_sdk(self):
        result = {"secure_url": "https://res.cloudinary.com/demo/members/abc.png", "public_id": "rothschild/members/abc"}
        with patch("cloudinary.uploader.upload", return_value=result) as upload:
            url = self.storage.upload(b"bytes", "members/abc.png")

        self.assertEqual(url, "https://res.cloudinary.com/demo/members/abc.png")
        args, kwargs = upload.call_args
        self.assertEqual(args[0].read(), b"bytes")
        self.assertEqual(kwargs["folder"], "rothschild/members")
        self.assertEqual(kwargs["public_id"], "abc")
        self.assertEqual(kwargs["resource_type"], "auto")
        self.assertEqual(kwargs["cloud_name"], "demo")
        self.assertEqual(kwargs["api_key"], "key")
        self.assertEqual(kwargs["api_secret"], "secret")

    def test_sdk_error_raises_storage_error(self):
        with patch("cloudinary.uploader.upload", side_effect=cloudinary.exceptions.Error("Invalid Signature")):
            with self.assertRaises(StorageError):
                self.storage.upload(b"bytes", "ids/x.png")

    def test_missing_secure_url_raises_storage_error(self):
        with patch("cloudinary.uploader.upload", return_value={"error": "nope"}):
            with self.assertRaises(StorageError):
                self.storage.upload(b"bytes", "ids/x.png")

    def test_delete_destroys_public_id(self):
        with patch("cloudinary.uploader.destroy", return_value={"result": "ok"}) as destroy:
            self.storage.delete("ids/x.png")
        self.assertEqual(destroy.call_args[0][0], "rothschild/ids/x")

    def test_unconfigured(self):
        with self.assertRaises(StorageError):
            CloudinaryStorage(cloud_name="", api_key="", api_secret="").upload(b"x", "ids/x.png")


class RecordingStorage:
    def __init__(self, fail_at=None):
        self.fail_at = fail_at
        self.saved = []
        self.deleted = []

    def upload(self, data, path):
        if len(self.saved) == self.fail_at:
            raise StorageError()
        self.saved.append(path)
        return f"https://cdn.example.com/{path}"

    def delete(self, path):
        self.deleted.append(path)


class BrokenRepository:
    def create(self, **fields):
        raise DatabaseError("disk full")


@override_settings(ADMIN_EMAIL="council@example.com")
class OrphanedUploadTests(TestCase):
    def test_failed_second_upload_removes_first(self):
        storage = RecordingStorage(fail_at=1)
        with self.assertRaises(StorageError):
            submit_registration(registration_payload(), storage=storage)
        self.assertEqual(len(storage.saved), 1)
        self.assertEqual(storage.deleted, storage.saved)
        self.assertFalse(Registration.objects.exists())

    def test_failed_write_removes_all_uploads(self):
        storage = RecordingStorage()
        with self.assertRaises(DatabaseError):
            submit_registration(registration_payload(idCardBack=PNG), registrations=BrokenRepository(), storage=storage)
        self.assertEqual(len(storage.saved), 3)
        self.assertEqual(sorted(storage.deleted), sorted(storage.saved))

    def test_invalid_later_document_removes_earlier_uploads(self):
        storage = RecordingStorage()
        with self.assertRaises(ValidationFailure):
            submit_registration(registration_payload(idCardFront="data:text/html;base64,PGI+"), storage=storage)
        self.assertEqual(len(storage.saved), 1)
        self.assertEqual(storage.deleted, storage.saved)

    def test_successful_submission_keeps_uploads(self):
        storage = RecordingStorage()
        registration = submit_registration(registration_payload(), storage=storage)
        self.assertEqual(storage.deleted, [])
        self.assertEqual(registration.personal_photo_url, f"https://cdn.example.com/{storage.saved[0]}")


def jpeg_data_uri(size):
    return "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff" + b"\0" * size).decode()


@override_settings(
    STORAGES=TEST_STORAGES,
    UPLOAD_STORAGE_BACKEND="registrations.storage.DjangoMediaStorage",
    ADMIN_EMAIL="council@example.com",
)
class RequestSizeTests(TestCase):
    def _post(self, payload):
        return self.client.post(reverse("registrations:register"), data=json.dumps(payload), content_type="application/json")

    def test_body_limit_fits_three_documents(self):
        self.assertGreaterEqual(settings.DATA_UPLOAD_MAX_MEMORY_SIZE, 3 * settings.UPLOAD_MAX_BYTES * 4 // 3)

    def test_phone_photos_are_accepted(self):
        photo = jpeg_data_uri(3 * 1024 * 1024 // 2)
        resp = self._post(registration_payload(personalPhoto=photo, idCardFront=photo))
        self.assertEqual(resp.status_code, 200)
        reg = Registration.objects.get(pk=resp.json()["id"])
        self.assertTrue(reg.personal_photo_url.endswith(".jpg"))

    @override_settings(DATA_UPLOAD_MAX_MEMORY_SIZE=1024)
    def test_oversized_body_is_a_validation_failure(self):
        resp = self._post(registration_payload(personalPhoto=jpeg_data_uri(4096)))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "validation_failure")
        self.assertEqual(resp.json()["error"], "Uploaded document is too large")
        self.assertFalse(Registration.objects.exists())


class AuditRegistrationCodesCommandTests(TestCase):
    def test_reports_shared_codes(self):
        make_registration(code="RC-SAME-0001")
        make_registration(code="RC-SAME-0001", email="twin@example.com")
        make_registration(code="RC-SOLO-0002")
        out = StringIO()
        call_command("audit_registration_codes", stdout=out)
        self.assertIn("RC-SAME-0001", out.getvalue())
        self.assertNotIn("RC-SOLO-0002", out.getvalue())
        self.assertIn("Found 1 shared codes.", out.getvalue())

    def test_backfill_issues_missing_codes(self):
        reg = make_registration(code="")
        call_command("audit_registration_codes", "--backfill", stdout=StringIO())
        reg.refresh_from_db()
        self.assertRegex(reg.unique_code, REGISTRATION_CODE_RE)
