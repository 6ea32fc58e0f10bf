from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from django.db import transaction
from django.db.models import Q, QuerySet, Sum

from ledger.models import Account, Company, Expense, Income, Invoice, Transaction
from ledger.validation import ErrorCode, FieldError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

RELATED_MODELS = {
    "related_invoice_id": (Invoice, "Related invoice not found"),
    "related_expense_id": (Expense, "Related expense not found"),
    "related_income_id": (Income, "Related income not found"),
}

TRANSACTION_FIELDS = (
    "type",
    "description",
    "amount",
    "currency",
    "transaction_date",
    "category_id",
    "related_invoice_id",
    "related_expense_id",
    "related_income_id",
    "reconciled",
)


@dataclass
class BalanceCheck:
    account_id: int
    stored_balance: Decimal
    expected_balance: Decimal
    repaired: bool = False

    @property
    def drift(self) -> Decimal:
        return self.stored_balance - self.expected_balance

    @property
    def is_consistent(self) -> bool:
        return self.drift == ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "stored_balance": str(self.stored_balance),
            "expected_balance": str(self.expected_balance),
            "drift": str(self.drift),
            "is_consistent": self.is_consistent,
            "repaired": self.repaired,
        }


class LedgerService:
    """
    Transactions and the running balance of the account they post to.

    Every write that touches ``Account.current_balance`` locks the account
    rows first and runs inside one atomic block with the transaction write,
    so the stored balance always equals the initial balance plus the signed
    sum of the account's live transactions.
    """

    @staticmethod
    def get_account(company: Company, account_id: int) -> Account:
        try:
            return Account.objects.visible_to(company).get(pk=account_id)
        except Account.DoesNotExist:
            raise NotFoundError("Account not found")

    @staticmethod
    def list_accounts(company: Company) -> QuerySet:
        return Account.objects.visible_to(company).order_by("name", "id")

    @staticmethod
    @transaction.atomic
    def create_account(company: Company, data: Dict[str, Any]) -> Account:
        data = dict(data)
        data.setdefault("currency", company.default_currency)
        initial_balance = data.pop("initial_balance", ZERO)
        account = Account.objects.create(
            company=company,
            initial_balance=initial_balance,
            current_balance=initial_balance,
            **data,
        )
        logger.info(f"Created account {account.id} for company {company.id} with opening balance {initial_balance}")
        return account

    @staticmethod
    def _lock_accounts(company: Company, account_ids: Iterable[int]) -> Dict[int, Account]:
        # Fixed pk order keeps concurrent writers from deadlocking on two accounts.
        wanted = sorted({int(account_id) for account_id in account_ids})
        locked = {
            account.pk: account
            for account in Account.objects.for_company(company).select_for_update().filter(pk__in=wanted).order_by("pk")
        }
        if len(locked) != len(wanted):
            raise NotFoundError("Account not found")
        return locked

    @staticmethod
    def _lock_transaction(company: Company, transaction_id: int) -> Transaction:
        try:
            return Transaction.objects.visible_to(company).select_for_update().get(pk=transaction_id)
        except Transaction.DoesNotExist:
            raise NotFoundError("Transaction not found")

    @staticmethod
    def _check_related(company: Company, data: Dict[str, Any]) -> None:
        for field_name, (model, message) in RELATED_MODELS.items():
            related_id = data.get(field_name)
            if related_id is not None and not model.objects.visible_to(company).filter(pk=related_id).exists():
                raise NotFoundError(message)

    @staticmethod
    def _check_amount(amount: Optional[Decimal]) -> None:
        if amount is None or amount <= ZERO:
            raise ValidationError(fields=[
                FieldError(field="amount", code=ErrorCode.FIELD_OUT_OF_RANGE.value, message="Amount must be positive."),
            ])

    @staticmethod
    def _save_balances(accounts: Iterable[Account]) -> None:
        for account in accounts:
            account.save(update_fields=["current_balance", "updated_at"])

    @staticmethod
    def get_transaction(company: Company, transaction_id: int) -> Transaction:
        try:
            return (
                Transaction.objects.visible_to(company)
                .select_related("account", "related_invoice", "related_expense", "related_income")
                .get(pk=transaction_id)
            )
        except Transaction.DoesNotExist:
            raise NotFoundError("Transaction not found")

    @staticmethod
    def list_transactions(company: Company, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        filters = filters or {}
        qs = Transaction.objects.visible_to(company).select_related("account")

        if filters.get("type"):
            qs = qs.filter(type=filters["type"])
        if filters.get("account_id"):
            qs = qs.filter(account_id=filters["account_id"])
        if filters.get("start_date"):
            qs = qs.filter(transaction_date__gte=filters["start_date"])
        if filters.get("end_date"):
            qs = qs.filter(transaction_date__lte=filters["end_date"])
        if filters.get("reconciled") is not None:
            qs = qs.filter(reconciled=filters["reconciled"])
        if filters.get("search"):
            qs = qs.filter(description__icontains=filters["search"])

        return qs.order_by("-transaction_date", "-created_at", "-id")

    @staticmethod
    @transaction.atomic
    def create_transaction(company: Company, data: Dict[str, Any]) -> Transaction:
        data = dict(data)
        account_id = data.pop("account_id")
        LedgerService._check_amount(data.get("amount"))
        LedgerService._check_related(company, data)

        account_id = int(account_id)
        account = LedgerService._lock_accounts(company, [account_id])[account_id]
        if account.soft_delete:
            raise NotFoundError("Account not found")

        values = {name: data[name] for name in TRANSACTION_FIELDS if name in data}
        values.setdefault("currency", account.currency)
        entry = Transaction.objects.create(company=company, account=account, **values)

        account.current_balance += entry.signed_amount
        LedgerService._save_balances([account])

        logger.info(
            f"Recorded {entry.type} transaction {entry.id} of {entry.amount} on account {account.id}; "
            f"balance now {account.current_balance}"
        )
        return entry

    @staticmethod
    @transaction.atomic
    def update_transaction(company: Company, transaction_id: int, data: Dict[str, Any]) -> Transaction:
        """
        Reverse the stored effect of a transaction and apply the new one.

        When the transaction moves to another account the reversal lands on
        the old account and the new effect on the new account.
        """
        data = dict(data)
        entry = LedgerService._lock_transaction(company, transaction_id)
        new_account_id = int(data.pop("account_id", None) or entry.account_id)

        if "amount" in data:
            LedgerService._check_amount(data["amount"])
        LedgerService._check_related(company, data)

        accounts = LedgerService._lock_accounts(company, [entry.account_id, new_account_id])
        target = accounts[new_account_id]
        if target.soft_delete:
            raise NotFoundError("Account not found")

        previous_account = accounts[entry.account_id]
        previous_effect = entry.signed_amount
        previous_account.current_balance -= previous_effect

        for name in TRANSACTION_FIELDS:
            if name in data:
                setattr(entry, name, data[name])
        entry.account = target
        target.current_balance += entry.signed_amount

        entry.save()
        LedgerService._save_balances(accounts.values())

        if previous_account.pk != target.pk:
            logger.info(
                f"Moved transaction {entry.id} from account {previous_account.id} to account {target.id}"
            )
        logger.info(
            f"Updated transaction {entry.id}: effect {previous_effect} -> {entry.signed_amount}; "
            f"account {target.id} balance now {target.current_balance}"
        )
        return entry

    @staticmethod
    @transaction.atomic
    def delete_transaction(company: Company, transaction_id: int) -> None:
        entry = LedgerService._lock_transaction(company, transaction_id)
        account = LedgerService._lock_accounts(company, [entry.account_id])[entry.account_id]

        entry.soft_delete = True
        entry.save(update_fields=["soft_delete", "updated_at"])

        account.current_balance -= entry.signed_amount
        LedgerService._save_balances([account])

        logger.info(
            f"Soft-deleted transaction {entry.id}; account {account.id} balance now {account.current_balance}"
        )

    @staticmethod
    def compute_expected_balance(account: Account) -> Decimal:
        totals = account.transactions.filter(soft_delete=False).aggregate(
            credits=Sum("amount", filter=Q(type=Transaction.Type.CREDIT)),
            debits=Sum("amount", filter=Q(type=Transaction.Type.DEBIT)),
        )
        return account.initial_balance + (totals["credits"] or ZERO) - (totals["debits"] or ZERO)

    @staticmethod
    @transaction.atomic
    def check_account_balance(company: Company, account_id: int, repair: bool = False) -> BalanceCheck:
        account_id = int(account_id)
        account = LedgerService._lock_accounts(company, [account_id])[account_id]
        if account.soft_delete:
            raise NotFoundError("Account not found")

        check = BalanceCheck(
            account_id=account.pk,
            stored_balance=account.current_balance,
            expected_balance=LedgerService.compute_expected_balance(account),
        )
        if check.is_consistent:
            return check

        logger.warning(
            f"Account {account.id} balance drift of {check.drift}: "
            f"stored {check.stored_balance}, expected {check.expected_balance}"
        )
        if repair:
            account.current_balance = check.expected_balance
            LedgerService._save_balances([account])
            check.repaired = True
            logger.info(f"Repaired balance of account {account.id} to {account.current_balance}")
        return check
