import logging
from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger.models import RecurringExecution
from ledger.services.recurring_service import RecurringItemProcessor

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Materialize recurring invoices, expenses and income that are due"

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=str,
            help='Run date (YYYY-MM-DD). Defaults to today.',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the rows that are due without generating anything.',
        )

    def handle(self, *args, **options):
        run_date = timezone.localdate()
        if options['date']:
            try:
                run_date = date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError(f"Invalid date format: {options['date']}")

        self.stdout.write(f"Processing recurring items for {run_date}")

        if options['dry_run']:
            for kind in RecurringExecution.Kind.values:
                due_items = RecurringItemProcessor.get_due_items(kind, run_date)
                self.stdout.write(f"[DRY RUN] {len(due_items)} recurring {kind} rows due:")
                for item in due_items:
                    self.stdout.write(
                        f"  - {kind} #{item.pk} (company {item.company_id}): "
                        f"{item.recurring}, due {item.next_due_date}"
                    )
            return

        report = RecurringItemProcessor.run_recurring_batch(run_date)
        counts = report.counts()

        self.stdout.write(self.style.SUCCESS(
            f"Processing complete: "
            f"{counts['invoices']} invoices, "
            f"{counts['expenses']} expenses, "
            f"{counts['income']} income "
            f"({counts['total']} total, {len(report.skipped)} skipped)"
        ))

        if report.failures:
            self.stdout.write(self.style.WARNING(
                f"{len(report.failures)} rows failed and keep their due date; check logs for details."
            ))
            for failure in report.failures:
                self.stdout.write(f"  - {failure.kind} #{failure.source_id}: {failure.error}")
