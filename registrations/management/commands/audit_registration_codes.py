from django.core.management.base import BaseCommand
from django.db.models import Count

from registrations.identifiers import issue_registration_code
from registrations.models import Registration
from registrations.repositories import RegistrationRepository


class Command(BaseCommand):
    help = "Report registration codes held by more than one record; optionally issue missing codes"

    def add_arguments(self, parser):
        parser.add_argument("--backfill", action="store_true", help="Issue codes to registrations that have none")

    def handle(self, *args, **opts):
        repo = RegistrationRepository()

        dupes = (
            Registration.objects.exclude(unique_code="")
            .values("unique_code")
            .annotate(n=Count("id"))
            .filter(n__gt=1)
            .order_by("unique_code")
        )
        for row in dupes:
            ids = list(Registration.objects.filter(unique_code=row["unique_code"]).values_list("id", flat=True))
            self.stdout.write(self.style.WARNING(f"{row['unique_code']}: shared by registrations {ids}"))

        missing = list(repo.missing_codes())
        if opts["backfill"]:
            for reg in missing:
                repo.assign_code(reg, issue_registration_code())
                self.stdout.write(f"Registration {reg.pk} -> {reg.unique_code}")
            self.stdout.write(self.style.SUCCESS(f"Issued {len(missing)} codes."))
        elif missing:
            self.stdout.write(f"{len(missing)} registrations have no code (use --backfill).")

        self.stdout.write(self.style.SUCCESS(f"Found {len(dupes)} shared codes."))
