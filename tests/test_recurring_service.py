from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from ledger.models import Expense, Frequency, Income, Invoice, RecurringExecution
from ledger.services import RecurringBatchReport, RecurringItemProcessor, calculate_next_due_date
from tests.factories import (
    CompanyFactory,
    ExpenseFactory,
    IncomeFactory,
    InvoiceFactory,
    InvoiceItemFactory,
)

RUN_DATE = date(2024, 3, 15)


class TestCalculateNextDueDate:
    def test_daily_and_weekly(self):
        assert calculate_next_due_date(date(2024, 12, 31), Frequency.DAILY) == date(2025, 1, 1)
        assert calculate_next_due_date(date(2024, 3, 1), Frequency.WEEKLY) == date(2024, 3, 8)

    def test_monthly_clamps_to_month_end(self):
        assert calculate_next_due_date(date(2024, 1, 31), Frequency.MONTHLY) == date(2024, 2, 29)
        assert calculate_next_due_date(date(2023, 1, 31), Frequency.MONTHLY) == date(2023, 2, 28)

    def test_yearly_from_leap_day(self):
        assert calculate_next_due_date(date(2024, 2, 29), Frequency.YEARLY) == date(2025, 2, 28)

    def test_unsupported_frequency(self):
        with pytest.raises(ValueError):
            calculate_next_due_date(date(2024, 1, 1), Frequency.NONE)


@pytest.mark.django_db
class TestRecurringInvoices:
    def test_due_invoice_is_cloned_as_draft(self, settings):
        settings.LEDGER_INVOICE_DUE_DAYS = 30
        source = InvoiceFactory(
            recurring=Frequency.MONTHLY,
            next_due_date=date(2024, 3, 1),
            status=Invoice.Status.SENT,
        )
        InvoiceItemFactory(invoice=source, quantity=Decimal("2.00"), unit_price=Decimal("30.00"))
        InvoiceItemFactory(invoice=source, quantity=Decimal("1.00"), unit_price=Decimal("40.00"))

        processed = RecurringItemProcessor.process_recurring_invoices(RUN_DATE)

        assert processed == 1
        generated = Invoice.objects.exclude(pk=source.pk).get()
        assert generated.status == Invoice.Status.DRAFT
        assert generated.issue_date == RUN_DATE
        assert generated.due_date == RUN_DATE + timedelta(days=30)
        assert generated.recurring == Frequency.NONE
        assert generated.next_due_date is None
        assert generated.total == source.total
        assert generated.notes == "Monthly retainer (Recurring)"
        assert generated.invoice_number.startswith("INV-20240315-")
        assert [(i.description, i.quantity, i.unit_price, i.amount) for i in generated.items.all()] == [
            (i.description, i.quantity, i.unit_price, i.amount) for i in source.items.all()
        ]

        source.refresh_from_db()
        assert source.next_due_date == date(2024, 4, 1)

    def test_empty_notes_fall_back(self):
        InvoiceFactory(recurring=Frequency.WEEKLY, next_due_date=RUN_DATE, notes="")

        RecurringItemProcessor.process_recurring_invoices(RUN_DATE)

        generated = Invoice.objects.get(recurring=Frequency.NONE)
        assert generated.notes == "Recurring Invoice"

    def test_future_and_non_recurring_rows_are_ignored(self):
        InvoiceFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE + timedelta(days=1))
        InvoiceFactory(recurring=Frequency.NONE, next_due_date=None)
        InvoiceFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE, soft_delete=True)

        assert RecurringItemProcessor.process_recurring_invoices(RUN_DATE) == 0
        assert Invoice.objects.count() == 3


@pytest.mark.django_db
class TestRecurringExpensesAndIncome:
    def test_expense_clone_is_pending_without_receipt(self):
        source = ExpenseFactory(
            recurring=Frequency.MONTHLY,
            next_due_date=date(2024, 1, 31),
            receipt_url="https://files.example.com/receipt.pdf",
        )

        assert RecurringItemProcessor.process_recurring_expenses(RUN_DATE) == 1

        generated = Expense.objects.exclude(pk=source.pk).get()
        assert generated.status == Expense.Status.PENDING
        assert generated.receipt_url == ""
        assert generated.expense_date == RUN_DATE
        assert generated.amount == source.amount
        assert generated.description == "Printer paper (Recurring)"
        assert generated.recurring == Frequency.NONE

        source.refresh_from_db()
        assert source.next_due_date == date(2024, 2, 29)

    def test_income_clone(self):
        source = IncomeFactory(recurring=Frequency.YEARLY, next_due_date=date(2024, 3, 15), description="")

        assert RecurringItemProcessor.process_recurring_income(RUN_DATE) == 1

        generated = Income.objects.exclude(pk=source.pk).get()
        assert generated.income_date == RUN_DATE
        assert generated.source == "Consulting"
        assert generated.description == "Recurring Income"

        source.refresh_from_db()
        assert source.next_due_date == date(2025, 3, 15)


@pytest.mark.django_db
class TestProcessAllRecurringItems:
    def test_counts_per_kind(self):
        company = CompanyFactory()
        InvoiceFactory(company=company, recurring=Frequency.MONTHLY, next_due_date=RUN_DATE)
        ExpenseFactory(company=company, recurring=Frequency.WEEKLY, next_due_date=RUN_DATE)
        ExpenseFactory(company=company, recurring=Frequency.DAILY, next_due_date=RUN_DATE - timedelta(days=1))
        IncomeFactory(company=company, recurring=Frequency.MONTHLY, next_due_date=RUN_DATE)

        counts = RecurringItemProcessor.process_all_recurring_items(RUN_DATE)

        assert counts == {"invoices": 1, "expenses": 2, "income": 1, "total": 4}
        assert RecurringExecution.objects.filter(status=RecurringExecution.Status.SUCCESS).count() == 4

    def test_second_run_same_day_is_a_no_op(self):
        InvoiceFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE)
        ExpenseFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE)

        first = RecurringItemProcessor.process_all_recurring_items(RUN_DATE)
        second = RecurringItemProcessor.process_all_recurring_items(RUN_DATE)

        assert first["total"] == 2
        assert second == {"invoices": 0, "expenses": 0, "income": 0, "total": 0}
        assert Invoice.objects.count() == 2
        assert Expense.objects.count() == 2

    def test_overdue_row_catches_up_one_period_per_run(self):
        source = ExpenseFactory(recurring=Frequency.WEEKLY, next_due_date=date(2024, 2, 1))

        RecurringItemProcessor.process_all_recurring_items(RUN_DATE)

        source.refresh_from_db()
        assert source.next_due_date == date(2024, 2, 8)
        assert Expense.objects.count() == 2

    def test_row_advanced_by_another_run_is_skipped(self):
        source = ExpenseFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE)
        [stale] = RecurringItemProcessor.get_due_items(RecurringExecution.Kind.EXPENSE, RUN_DATE)

        RecurringItemProcessor.process_all_recurring_items(RUN_DATE)
        result = RecurringItemProcessor.process_row(RecurringExecution.Kind.EXPENSE, stale, RUN_DATE)

        assert result.skipped is True
        assert result.ok is False
        assert result.source_id == source.pk
        assert Expense.objects.count() == 2
        assert RecurringExecution.objects.count() == 1
        source.refresh_from_db()
        assert source.next_due_date == date(2024, 4, 15)

        report = RecurringBatchReport(run_date=RUN_DATE, results=[result])
        assert report.failures == []
        assert report.as_dict()["skipped"] == 1
        assert report.counts()["total"] == 0

    def test_failing_row_is_isolated_and_keeps_due_date(self):
        failing = ExpenseFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE, description="Broken")
        healthy = IncomeFactory(recurring=Frequency.MONTHLY, next_due_date=RUN_DATE)

        real_next_due_date = calculate_next_due_date

        def flaky(current, frequency):
            if current == RUN_DATE and frequency == Frequency.MONTHLY and flaky.calls == 0:
                flaky.calls += 1
                raise RuntimeError("calendar unavailable")
            return real_next_due_date(current, frequency)

        flaky.calls = 0

        with patch("ledger.services.recurring_service.calculate_next_due_date", side_effect=flaky):
            report = RecurringItemProcessor.run_recurring_batch(RUN_DATE)

        assert report.counts() == {"invoices": 0, "expenses": 0, "income": 1, "total": 1}
        assert [(r.kind, r.source_id) for r in report.failures] == [("expense", failing.pk)]

        failing.refresh_from_db()
        healthy.refresh_from_db()
        assert failing.next_due_date == RUN_DATE
        assert healthy.next_due_date == date(2024, 4, 15)
        assert Expense.objects.count() == 1

        execution = RecurringExecution.objects.get(status=RecurringExecution.Status.FAILED)
        assert execution.kind == RecurringExecution.Kind.EXPENSE
        assert execution.source_id == failing.pk
        assert "calendar unavailable" in execution.error_message

        retry = RecurringItemProcessor.process_all_recurring_items(RUN_DATE)
        assert retry["expenses"] == 1
        failing.refresh_from_db()
        assert failing.next_due_date == date(2024, 4, 15)

    def test_report_as_dict(self):
        IncomeFactory(recurring=Frequency.DAILY, next_due_date=RUN_DATE)

        payload = RecurringItemProcessor.run_recurring_batch(RUN_DATE).as_dict()

        assert payload["run_date"] == "2024-03-15"
        assert payload["income"] == 1
        assert payload["total"] == 1
        assert payload["failed"] == 0
        assert payload["failures"] == []
