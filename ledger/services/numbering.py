from __future__ import annotations

import logging
import secrets
from datetime import date
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction

from ledger.models import Company, Invoice
from ledger.validation import ConflictError, ErrorCode

logger = logging.getLogger(__name__)


def generate_invoice_number(issue_date: date) -> str:
    """INV-YYYYMMDD-NNN with a random three digit suffix."""
    return f"INV-{issue_date.strftime('%Y%m%d')}-{secrets.randbelow(1000):03d}"


def create_invoice_with_number(company: Company, issue_date: date, **fields: Any) -> Invoice:
    """
    Insert an invoice under a freshly generated number.

    Invoice numbers are unique per company; a collision rolls back to a
    savepoint and retries with a new suffix. Must be called inside an
    atomic block owned by the caller.
    """
    attempts = settings.LEDGER_INVOICE_NUMBER_ATTEMPTS
    for attempt in range(1, attempts + 1):
        invoice_number = generate_invoice_number(issue_date)
        try:
            with transaction.atomic():
                return Invoice.objects.create(
                    company=company,
                    invoice_number=invoice_number,
                    issue_date=issue_date,
                    **fields,
                )
        except IntegrityError:
            logger.warning(
                f"Invoice number {invoice_number} already taken in company {company.pk} "
                f"(attempt {attempt}/{attempts})"
            )

    raise ConflictError(
        "Could not allocate a unique invoice number. Please try again.",
        code=ErrorCode.INVOICE_NUMBER_UNAVAILABLE,
    )
