from __future__ import annotations

from decimal import Decimal
from typing import List

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .managers import CompanyScopedManager

CENTS = Decimal("0.01")


def default_currency():
    return getattr(settings, "LEDGER_DEFAULT_CURRENCY", "IDR")


class Frequency(models.TextChoices):
    NONE = "none", "Not recurring"
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"
    YEARLY = "yearly", "Yearly"

    @classmethod
    def schedulable(cls) -> List[str]:
        return [cls.DAILY, cls.WEEKLY, cls.MONTHLY, cls.YEARLY]


class Company(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(unique=True)
    default_currency = models.CharField(max_length=3, default=default_currency)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = "Companies"

    def __str__(self):
        return self.name


class CompanyMember(models.Model):
    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        ACCOUNTANT = "accountant", "Accountant"
        STAFF = "staff", "Staff"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="company_memberships")
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STAFF)
    is_default = models.BooleanField(default=False, help_text="Company used for this user's API requests")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("company", "user")

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"


class Client(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="clients")
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    payment_terms = models.PositiveIntegerField(default=30, help_text="Days until payment is due")
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Vendor(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='vendors')
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class ExpenseCategory(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='expense_categories')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Expense categories'

    def __str__(self):
        return self.name


class IncomeCategory(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='income_categories')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Income categories'

    def __str__(self):
        return self.name


class Account(models.Model):
    class Type(models.TextChoices):
        BANK = "bank", "Bank"
        CREDIT_CARD = "credit_card", "Credit Card"
        CASH = "cash", "Cash"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="accounts")
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.BANK)
    currency = models.CharField(max_length=3, default=default_currency)
    account_number = models.CharField(max_length=50, blank=True)
    bank_name = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    initial_balance = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    current_balance = models.DecimalField(
        max_digits=15, decimal_places=2,
        help_text="Running balance, maintained by the ledger service",
    )
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['name']
        indexes = [
            models.Index(fields=['company', 'soft_delete'], name='ledger_acct_co_deleted_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"

    def save(self, *args, **kwargs):
        if self._state.adding and self.current_balance is None:
            self.current_balance = self.initial_balance
        super().save(*args, **kwargs)


class RecurringItem(models.Model):
    recurring = models.CharField(max_length=10, choices=Frequency.choices, default=Frequency.NONE, db_index=True)
    next_due_date = models.DateField(null=True, blank=True, db_index=True)

    class Meta:
        abstract = True

    @property
    def is_recurring(self):
        return self.recurring != Frequency.NONE

    def clean(self):
        super().clean()
        if self.is_recurring and self.next_due_date is None:
            raise ValidationError({"next_due_date": "A next due date is required for recurring items."})


class Invoice(RecurringItem):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"
        CANCELLED = "cancelled", "Cancelled"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="invoices")
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="invoices")
    invoice_number = models.CharField(max_length=50)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT, db_index=True)
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    currency = models.CharField(max_length=3, default=default_currency)
    subtotal = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        unique_together = ('company', 'invoice_number')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'status'], name='ledger_inv_co_status_idx'),
            models.Index(fields=['company', 'due_date'], name='ledger_inv_co_due_idx'),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.client.name}"


class LineItemBase(models.Model):
    description = models.CharField(max_length=500)
    quantity = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('1.00'))
    unit_price = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ['id']

    def expected_amount(self) -> Decimal:
        return (self.quantity * self.unit_price).quantize(CENTS)

    def clean(self):
        super().clean()
        if self.amount is not None and self.amount != self.expected_amount():
            raise ValidationError({"amount": "Amount must equal quantity multiplied by unit price."})

    def save(self, *args, **kwargs):
        if self.amount is None:
            self.amount = self.expected_amount()
        super().save(*args, **kwargs)


class InvoiceItem(LineItemBase):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="items")

    class Meta(LineItemBase.Meta):
        pass


class Quote(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"
        EXPIRED = "expired", "Expired"

    ALLOWED_TRANSITIONS = {
        Status.DRAFT: (Status.SENT, Status.ACCEPTED, Status.REJECTED),
        Status.SENT: (Status.ACCEPTED, Status.REJECTED, Status.EXPIRED, Status.DRAFT),
        Status.ACCEPTED: (Status.REJECTED,),
        Status.REJECTED: (Status.DRAFT,),
        Status.EXPIRED: (Status.DRAFT,),
    }

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="quotes")
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="quotes")
    quote_number = models.CharField(max_length=50)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT, db_index=True)
    issue_date = models.DateField(default=timezone.localdate)
    expiry_date = models.DateField()
    currency = models.CharField(max_length=3, default=default_currency)
    subtotal = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    converted_to_invoice = models.OneToOneField(
        Invoice, on_delete=models.PROTECT, null=True, blank=True, related_name='source_quote',
    )
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        unique_together = ('company', 'quote_number')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'status'], name='ledger_quote_co_status_idx'),
        ]

    def __str__(self):
        return f"{self.quote_number} - {self.client.name}"

    @property
    def is_converted(self):
        return self.converted_to_invoice_id is not None

    def get_available_transitions(self) -> List[str]:
        if self.is_converted:
            return []
        return [str(status) for status in self.ALLOWED_TRANSITIONS.get(self.status, ())]

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.get_available_transitions()


class QuoteItem(LineItemBase):
    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name="items")

    class Meta(LineItemBase.Meta):
        pass


class Expense(RecurringItem):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='expenses')
    category = models.ForeignKey(ExpenseCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    vendor = models.ForeignKey(Vendor, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    vendor_name = models.CharField(max_length=255, blank=True, help_text='Free-text vendor when no vendor record exists')
    description = models.CharField(max_length=500, blank=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    currency = models.CharField(max_length=3, default=default_currency)
    expense_date = models.DateField(db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    receipt_url = models.URLField(max_length=500, blank=True)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['-expense_date', '-created_at']
        indexes = [
            models.Index(fields=['company', 'status'], name='ledger_exp_co_status_idx'),
            models.Index(fields=['company', 'expense_date'], name='ledger_exp_co_date_idx'),
        ]

    def __str__(self):
        return f"Expense #{self.pk} - {self.description[:50]}"


class Income(RecurringItem):
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='income')
    category = models.ForeignKey(IncomeCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='income')
    client = models.ForeignKey(Client, on_delete=models.SET_NULL, null=True, blank=True, related_name='income')
    invoice = models.ForeignKey(Invoice, on_delete=models.SET_NULL, null=True, blank=True, related_name='income')
    source = models.CharField(max_length=255, blank=True)
    description = models.CharField(max_length=500, blank=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    currency = models.CharField(max_length=3, default=default_currency)
    income_date = models.DateField(db_index=True)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['-income_date', '-created_at']
        verbose_name_plural = 'Income'
        indexes = [
            models.Index(fields=['company', 'income_date'], name='ledger_inc_co_date_idx'),
        ]

    def __str__(self):
        return f"Income #{self.pk} - {self.description[:50]}"


class Transaction(models.Model):
    class Type(models.TextChoices):
        DEBIT = "debit", "Debit"
        CREDIT = "credit", "Credit"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="transactions")
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="transactions")
    type = models.CharField(max_length=10, choices=Type.choices)
    description = models.CharField(max_length=500)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    currency = models.CharField(max_length=3, default=default_currency)
    transaction_date = models.DateField()
    category_id = models.PositiveIntegerField(null=True, blank=True)
    related_invoice = models.ForeignKey(Invoice, on_delete=models.SET_NULL, null=True, blank=True, related_name="transactions")
    related_expense = models.ForeignKey(Expense, on_delete=models.SET_NULL, null=True, blank=True, related_name="transactions")
    related_income = models.ForeignKey(Income, on_delete=models.SET_NULL, null=True, blank=True, related_name="transactions")
    reconciled = models.BooleanField(default=False)
    soft_delete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CompanyScopedManager()

    class Meta:
        ordering = ['-transaction_date', '-created_at']
        indexes = [
            models.Index(fields=['company', 'transaction_date'], name='ledger_txn_co_date_idx'),
            models.Index(fields=['account', 'soft_delete'], name='ledger_txn_acct_deleted_idx'),
        ]

    def __str__(self):
        return f"{self.get_type_display()} {self.amount} {self.currency} on {self.transaction_date}"

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this entry on its account balance: credits add, debits subtract."""
        if self.type == self.Type.CREDIT:
            return self.amount
        if self.type == self.Type.DEBIT:
            return -self.amount
        raise ValueError(f"Unknown transaction type: {self.type!r}")


class RecurringExecution(models.Model):
    class Kind(models.TextChoices):
        INVOICE = "invoice", "Invoice"
        EXPENSE = "expense", "Expense"
        INCOME = "income", "Income"

    class Status(models.TextChoices):
        SUCCESS = "success", "Success"
        FAILED = "failed", "Failed"

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="recurring_executions")
    kind = models.CharField(max_length=10, choices=Kind.choices)
    source_id = models.BigIntegerField(help_text="Recurring row the run was for")
    generated_id = models.BigIntegerField(null=True, blank=True, help_text="Row materialized by the run")
    run_date = models.DateField()
    status = models.CharField(max_length=10, choices=Status.choices)
    previous_due_date = models.DateField(null=True, blank=True)
    next_due_date = models.DateField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    executed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-executed_at']
        indexes = [
            models.Index(fields=['kind', 'source_id'], name='ledger_rexec_kind_source_idx'),
            models.Index(fields=['run_date'], name='ledger_rexec_run_date_idx'),
        ]

    def __str__(self):
        return f"{self.kind} #{self.source_id} on {self.run_date}: {self.status}"
