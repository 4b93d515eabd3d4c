"""Register the periodic delivery jobs with rq-scheduler."""

from django.core.management.base import BaseCommand

from delivery.jobs.delivery_jobs import schedule_periodic_jobs


class Command(BaseCommand):
    help = "Schedule the retry queue tick and the retention purge"

    def handle(self, *args, **options):
        for job_id in schedule_periodic_jobs():
            self.stdout.write(self.style.SUCCESS(f"Scheduled {job_id}"))
