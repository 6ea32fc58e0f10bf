from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Type

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from ledger.models import (
    Expense,
    Frequency,
    Income,
    Invoice,
    InvoiceItem,
    RecurringExecution,
)

from .numbering import create_invoice_with_number

logger = logging.getLogger(__name__)

Kind = RecurringExecution.Kind

FREQUENCY_STEPS = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(weeks=1),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.YEARLY: relativedelta(years=1),
}

RECURRING_SUFFIX = " (Recurring)"


def calculate_next_due_date(current: date, frequency: str) -> date:
    """Add one calendar unit; month and year steps clamp to the last valid day."""
    try:
        step = FREQUENCY_STEPS[frequency]
    except KeyError:
        raise ValueError(f"Unsupported recurring frequency: {frequency!r}")
    return current + step


def _recurring_text(text: str, fallback: str) -> str:
    return f"{text}{RECURRING_SUFFIX}" if text else fallback


@dataclass
class RowResult:
    kind: str
    source_id: int
    ok: bool
    generated_id: Optional[int] = None
    next_due_date: Optional[date] = None
    skipped: bool = False
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "source_id": self.source_id,
            "ok": self.ok,
            "generated_id": self.generated_id,
            "next_due_date": self.next_due_date.isoformat() if self.next_due_date else None,
            "skipped": self.skipped,
            "error": self.error,
        }


@dataclass
class RecurringBatchReport:
    run_date: date
    results: List[RowResult] = field(default_factory=list)

    def processed(self, kind: str) -> int:
        return sum(1 for result in self.results if result.kind == kind and result.ok)

    @property
    def failures(self) -> List[RowResult]:
        return [result for result in self.results if not result.ok and not result.skipped]

    @property
    def skipped(self) -> List[RowResult]:
        return [result for result in self.results if result.skipped]

    def counts(self) -> Dict[str, int]:
        invoices = self.processed(Kind.INVOICE)
        expenses = self.processed(Kind.EXPENSE)
        income = self.processed(Kind.INCOME)
        return {
            "invoices": invoices,
            "expenses": expenses,
            "income": income,
            "total": invoices + expenses + income,
        }

    def as_dict(self) -> Dict[str, Any]:
        return {
            "run_date": self.run_date.isoformat(),
            **self.counts(),
            "failed": len(self.failures),
            "skipped": len(self.skipped),
            "failures": [result.to_dict() for result in self.failures],
        }


def _materialize_invoice(source: Invoice, today: date) -> Invoice:
    invoice = create_invoice_with_number(
        company=source.company,
        issue_date=today,
        client_id=source.client_id,
        status=Invoice.Status.DRAFT,
        due_date=today + timedelta(days=settings.LEDGER_INVOICE_DUE_DAYS),
        currency=source.currency,
        subtotal=source.subtotal,
        tax=source.tax,
        tax_rate=source.tax_rate,
        total=source.total,
        notes=_recurring_text(source.notes, "Recurring Invoice"),
        recurring=Frequency.NONE,
        next_due_date=None,
    )
    InvoiceItem.objects.bulk_create([
        InvoiceItem(
            invoice=invoice,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.amount,
        )
        for item in source.items.all()
    ])
    return invoice


def _materialize_expense(source: Expense, today: date) -> Expense:
    # The receipt belongs to the original purchase and is not carried over.
    return Expense.objects.create(
        company_id=source.company_id,
        category_id=source.category_id,
        vendor_id=source.vendor_id,
        vendor_name=source.vendor_name,
        description=_recurring_text(source.description, "Recurring Expense"),
        amount=source.amount,
        currency=source.currency,
        expense_date=today,
        status=Expense.Status.PENDING,
        recurring=Frequency.NONE,
        next_due_date=None,
    )


def _materialize_income(source: Income, today: date) -> Income:
    return Income.objects.create(
        company_id=source.company_id,
        category_id=source.category_id,
        client_id=source.client_id,
        invoice_id=source.invoice_id,
        source=source.source,
        description=_recurring_text(source.description, "Recurring Income"),
        amount=source.amount,
        currency=source.currency,
        income_date=today,
        recurring=Frequency.NONE,
        next_due_date=None,
    )


class RecurringItemProcessor:
    """
    Materializes due recurring invoices, expenses and income.

    Each due row is handled in its own atomic block: the row is re-read under
    a lock, a non-recurring copy dated today is inserted and the source's
    ``next_due_date`` advances by one period. A failing row rolls back alone,
    keeps its due date for the next run and is recorded as a failed
    ``RecurringExecution``.
    """

    HANDLERS: Dict[str, tuple] = {
        Kind.INVOICE: (Invoice, _materialize_invoice),
        Kind.EXPENSE: (Expense, _materialize_expense),
        Kind.INCOME: (Income, _materialize_income),
    }

    @staticmethod
    def _due_queryset(model: Type[models.Model], today: date):
        return model.objects.alive().filter(
            recurring__in=Frequency.schedulable(),
            next_due_date__isnull=False,
            next_due_date__lte=today,
        )

    @staticmethod
    def get_due_items(kind: str, today: Optional[date] = None) -> List[models.Model]:
        model, _ = RecurringItemProcessor.HANDLERS[kind]
        today = today or timezone.localdate()
        return list(RecurringItemProcessor._due_queryset(model, today).order_by("next_due_date", "pk"))

    @staticmethod
    def process_row(kind: str, due_item: models.Model, today: date) -> RowResult:
        model, materialize = RecurringItemProcessor.HANDLERS[kind]
        previous_due_date = due_item.next_due_date

        try:
            with transaction.atomic():
                source = (
                    RecurringItemProcessor._due_queryset(model, today)
                    .select_for_update(skip_locked=True)
                    .filter(pk=due_item.pk)
                    .first()
                )
                if source is None:
                    logger.info(f"Skipping recurring {kind} {due_item.pk}: already processed or locked by another run")
                    return RowResult(kind=kind, source_id=due_item.pk, ok=False, skipped=True)

                previous_due_date = source.next_due_date
                generated = materialize(source, today)

                source.next_due_date = calculate_next_due_date(previous_due_date, source.recurring)
                source.save(update_fields=["next_due_date", "updated_at"])

                RecurringExecution.objects.create(
                    company_id=source.company_id,
                    kind=kind,
                    source_id=source.pk,
                    generated_id=generated.pk,
                    run_date=today,
                    status=RecurringExecution.Status.SUCCESS,
                    previous_due_date=previous_due_date,
                    next_due_date=source.next_due_date,
                )
        except Exception as e:
            logger.exception(f"Error processing recurring {kind} {due_item.pk}")

            RecurringExecution.objects.create(
                company_id=due_item.company_id,
                kind=kind,
                source_id=due_item.pk,
                run_date=today,
                status=RecurringExecution.Status.FAILED,
                previous_due_date=previous_due_date,
                error_message=str(e),
            )
            return RowResult(kind=kind, source_id=due_item.pk, ok=False, error=str(e))

        logger.info(
            f"Generated {kind} {generated.pk} from recurring {kind} {source.pk}; "
            f"next due {source.next_due_date}"
        )
        return RowResult(
            kind=kind,
            source_id=source.pk,
            ok=True,
            generated_id=generated.pk,
            next_due_date=source.next_due_date,
        )

    @staticmethod
    def process_kind(kind: str, today: date, report: RecurringBatchReport) -> int:
        due_items = RecurringItemProcessor.get_due_items(kind, today)
        if due_items:
            logger.info(f"Found {len(due_items)} recurring {kind} rows due on or before {today}")
        for due_item in due_items:
            report.results.append(RecurringItemProcessor.process_row(kind, due_item, today))
        return report.processed(kind)

    @staticmethod
    def _run_single(kind: str, today: Optional[date]) -> int:
        report = RecurringBatchReport(run_date=today or timezone.localdate())
        return RecurringItemProcessor.process_kind(kind, report.run_date, report)

    @staticmethod
    def process_recurring_invoices(today: Optional[date] = None) -> int:
        return RecurringItemProcessor._run_single(Kind.INVOICE, today)

    @staticmethod
    def process_recurring_expenses(today: Optional[date] = None) -> int:
        return RecurringItemProcessor._run_single(Kind.EXPENSE, today)

    @staticmethod
    def process_recurring_income(today: Optional[date] = None) -> int:
        return RecurringItemProcessor._run_single(Kind.INCOME, today)

    @staticmethod
    def run_recurring_batch(today: Optional[date] = None) -> RecurringBatchReport:
        report = RecurringBatchReport(run_date=today or timezone.localdate())
        logger.info(f"Processing recurring items for {report.run_date}")

        for kind in (Kind.INVOICE, Kind.EXPENSE, Kind.INCOME):
            RecurringItemProcessor.process_kind(kind, report.run_date, report)

        counts = report.counts()
        logger.info(
            f"Recurring run for {report.run_date} complete: "
            f"{counts['invoices']} invoices, {counts['expenses']} expenses, {counts['income']} income "
            f"({len(report.failures)} failed, {len(report.skipped)} skipped)"
        )
        return report

    @staticmethod
    def process_all_recurring_items(today: Optional[date] = None) -> Dict[str, int]:
        return RecurringItemProcessor.run_recurring_batch(today).counts()
