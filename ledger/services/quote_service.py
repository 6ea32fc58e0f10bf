from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from ledger.models import Company, InvoiceItem, Quote
from ledger.validation import ConflictError, ErrorCode, InvalidStateError, NotFoundError

from .numbering import create_invoice_with_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    invoice_id: int
    invoice_number: str
    client_name: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class QuoteService:

    @staticmethod
    def list_quotes(company: Company, status: Optional[str] = None) -> QuerySet:
        qs = Quote.objects.visible_to(company).select_related("client").prefetch_related("items")
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_quote(company: Company, quote_id: int, lock: bool = False) -> Quote:
        qs = Quote.objects.visible_to(company).select_related("client")
        if lock:
            qs = qs.select_for_update(of=("self",))
        try:
            return qs.get(pk=quote_id)
        except Quote.DoesNotExist:
            raise NotFoundError("Quote not found")

    @staticmethod
    @transaction.atomic
    def transition_status(company: Company, quote_id: int, new_status: str) -> Quote:
        quote = QuoteService.get_quote(company, quote_id, lock=True)

        if quote.is_converted:
            raise InvalidStateError(
                "Quote has already been converted to an invoice and can no longer change status.",
                details={"invoice_id": quote.converted_to_invoice_id},
            )
        if not quote.can_transition_to(new_status):
            raise InvalidStateError(
                f"Cannot change quote status from '{quote.status}' to '{new_status}'.",
                details={"available_transitions": quote.get_available_transitions()},
            )

        old_status = quote.status
        quote.status = new_status
        update_fields = ["status", "updated_at"]
        if new_status == Quote.Status.ACCEPTED:
            quote.accepted_at = timezone.now()
            update_fields.append("accepted_at")
        quote.save(update_fields=update_fields)

        logger.info(f"Quote {quote.id} status changed: {old_status} -> {new_status}")
        return quote

    @staticmethod
    @transaction.atomic
    def convert_to_invoice(company: Company, quote_id: int, due_date: Optional[date] = None) -> ConversionResult:
        """
        Turn an accepted quote into a draft invoice with the same lines, once.

        Totals and notes are copied as stored on the quote. The invoice is due
        ``LEDGER_INVOICE_DUE_DAYS`` after today unless ``due_date`` is given.
        The quote keeps a link to the invoice, which blocks any later
        conversion.
        """
        quote = QuoteService.get_quote(company, quote_id, lock=True)

        if quote.is_converted:
            raise ConflictError(
                "Quote has already been converted to an invoice.",
                code=ErrorCode.QUOTE_ALREADY_CONVERTED,
                details={"invoice_id": quote.converted_to_invoice_id},
            )
        if quote.status != Quote.Status.ACCEPTED:
            raise InvalidStateError(
                f"Only accepted quotes can be converted to invoices (current status: '{quote.status}').",
            )

        items = list(quote.items.all())
        issue_date = timezone.localdate()
        invoice = create_invoice_with_number(
            company=company,
            issue_date=issue_date,
            client=quote.client,
            due_date=due_date or issue_date + timedelta(days=settings.LEDGER_INVOICE_DUE_DAYS),
            currency=quote.currency,
            subtotal=quote.subtotal,
            tax=quote.tax,
            tax_rate=quote.tax_rate,
            total=quote.total,
            notes=quote.notes,
        )
        InvoiceItem.objects.bulk_create([
            InvoiceItem(
                invoice=invoice,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
            )
            for item in items
        ])

        quote.converted_to_invoice = invoice
        quote.save(update_fields=["converted_to_invoice", "updated_at"])

        logger.info(f"Converted quote {quote.id} to invoice {invoice.id} ({invoice.invoice_number}) with {len(items)} items")
        return ConversionResult(
            invoice_id=invoice.pk,
            invoice_number=invoice.invoice_number,
            client_name=quote.client.name,
        )
