from django.core.management.base import BaseCommand

from delivery.services import build_engine


class Command(BaseCommand):
    help = "Delete terminal delivery attempts and analytics past retention"

    def handle(self, *args, **options):
        result = build_engine().router.purge_expired_records()
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {result.attempts_deleted} attempts and "
                f"{result.samples_deleted} analytics samples"
            )
        )
