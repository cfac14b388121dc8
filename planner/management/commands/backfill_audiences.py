from django.core.management.base import BaseCommand
from django.db import transaction

from assignments.models import Task
from events.models import Event
from planner.audience import normalize_audience


class Command(BaseCommand):
    help = "Fold legacy assigned_user_id values into assigned_to for tasks and events"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without saving",
        )

    def handle(self, *_args, **options):
        dry_run = options["dry_run"]

        for model in (Task, Event):
            rows = model.objects.filter(assigned_user_id__isnull=False)
            updated = 0
            with transaction.atomic():
                for row in rows:
                    if row.assigned_user_id in ("", [], {}):
                        continue
                    audience = normalize_audience(row)
                    # is_for_all rows keep their list as stored
                    if not audience.for_all:
                        row.assigned_to = sorted(audience.explicit_ids)
                    row.assigned_user_id = None
                    updated += 1
                    if not dry_run:
                        row.save(update_fields=["assigned_to", "assigned_user_id"])

            label = model._meta.verbose_name_plural
            if dry_run:
                self.stdout.write(self.style.WARNING(f"[dry run] {updated} {label} would be updated"))
            else:
                self.stdout.write(self.style.SUCCESS(f"Updated {updated} {label}"))
