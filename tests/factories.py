from datetime import timedelta
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone

from ledger.models import (
    Account,
    Client,
    Company,
    CompanyMember,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
    Invoice,
    InvoiceItem,
    Quote,
    QuoteItem,
    Vendor,
)


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    password = factory.django.Password("TestPass123!")


class CompanyFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Company

    name = factory.Sequence(lambda n: f"Company {n}")
    slug = factory.Sequence(lambda n: f"company-{n}")
    default_currency = "IDR"


class CompanyMemberFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CompanyMember

    company = factory.SubFactory(CompanyFactory)
    user = factory.SubFactory(UserFactory)
    role = CompanyMember.Role.ADMIN
    is_default = True


class ClientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Client

    company = factory.SubFactory(CompanyFactory)
    name = factory.Sequence(lambda n: f"Client {n}")
    email = factory.LazyAttribute(lambda o: f"billing{o.name.split()[-1]}@example.com")


class VendorFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Vendor

    company = factory.SubFactory(CompanyFactory)
    name = factory.Sequence(lambda n: f"Vendor {n}")


class ExpenseCategoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = ExpenseCategory

    company = factory.SubFactory(CompanyFactory)
    name = factory.Sequence(lambda n: f"Expense category {n}")


class IncomeCategoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = IncomeCategory

    company = factory.SubFactory(CompanyFactory)
    name = factory.Sequence(lambda n: f"Income category {n}")


class AccountFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Account

    company = factory.SubFactory(CompanyFactory)
    name = factory.Sequence(lambda n: f"Account {n}")
    type = Account.Type.BANK
    currency = "IDR"
    initial_balance = Decimal("1000.00")


class InvoiceFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Invoice

    company = factory.SubFactory(CompanyFactory)
    client = factory.SubFactory(ClientFactory, company=factory.SelfAttribute("..company"))
    invoice_number = factory.Sequence(lambda n: f"INV-TEST-{n:04d}")
    issue_date = factory.LazyFunction(timezone.localdate)
    due_date = factory.LazyAttribute(lambda o: o.issue_date + timedelta(days=30))
    currency = "IDR"
    subtotal = Decimal("100.00")
    tax = Decimal("10.00")
    tax_rate = Decimal("10.00")
    total = Decimal("110.00")
    notes = "Monthly retainer"


class InvoiceItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = InvoiceItem

    invoice = factory.SubFactory(InvoiceFactory)
    description = factory.Sequence(lambda n: f"Service {n}")
    quantity = Decimal("1.00")
    unit_price = Decimal("100.00")


class QuoteFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Quote

    company = factory.SubFactory(CompanyFactory)
    client = factory.SubFactory(ClientFactory, company=factory.SelfAttribute("..company"))
    quote_number = factory.Sequence(lambda n: f"QUO-{n:04d}")
    status = Quote.Status.DRAFT
    issue_date = factory.LazyFunction(timezone.localdate)
    expiry_date = factory.LazyAttribute(lambda o: o.issue_date + timedelta(days=14))
    currency = "IDR"
    subtotal = Decimal("250.00")
    tax = Decimal("25.00")
    tax_rate = Decimal("10.00")
    total = Decimal("275.00")
    notes = "Website redesign"


class QuoteItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = QuoteItem

    quote = factory.SubFactory(QuoteFactory)
    description = factory.Sequence(lambda n: f"Deliverable {n}")
    quantity = Decimal("1.00")
    unit_price = Decimal("125.00")


class ExpenseFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Expense

    company = factory.SubFactory(CompanyFactory)
    vendor_name = "Office Supplies Ltd"
    description = "Printer paper"
    amount = Decimal("45.00")
    currency = "IDR"
    expense_date = factory.LazyFunction(timezone.localdate)
    status = Expense.Status.APPROVED


class IncomeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Income

    company = factory.SubFactory(CompanyFactory)
    source = "Consulting"
    description = "Advisory fee"
    amount = Decimal("500.00")
    currency = "IDR"
    income_date = factory.LazyFunction(timezone.localdate)
