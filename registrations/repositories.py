from django.db import transaction

from portal.errors import NotFound, ValidationFailure

from .models import Registration


class RegistrationRepository:
    """ORM-backed store for registrations."""

    def create(self, **fields) -> Registration:
        with transaction.atomic():
            return Registration.objects.create(**fields)

    def find_by_code(self, code: str) -> Registration | None:
        # Codes are not unique by constraint; the oldest holder wins.
        return Registration.objects.filter(unique_code=code).order_by("created_at", "pk").first()

    def get(self, registration_id) -> Registration:
        try:
            return Registration.objects.get(pk=registration_id)
        except (Registration.DoesNotExist, ValueError, TypeError):
            raise NotFound("Registration not found in records.")

    def list_recent(self):
        return list(Registration.objects.order_by("-created_at", "-pk"))

    def update_status(self, registration_id, status: str) -> Registration:
        if status not in dict(Registration.STATUS_CHOICES):
            raise ValidationFailure("Unknown registration status", fields={"status": [f"Invalid status: {status}"]})
        registration = self.get(registration_id)
        registration.status = status
        registration.save(update_fields=["status"])
        return registration

    def missing_codes(self):
        return Registration.objects.filter(unique_code="").order_by("created_at")

    def assign_code(self, registration: Registration, code: str) -> None:
        registration.unique_code = code
        registration.save(update_fields=["unique_code"])
