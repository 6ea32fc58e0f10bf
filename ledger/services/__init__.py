"""
LedgerFlow Services Layer

Business logic lives here, separate from the rest of the app:
- Models: data and constraints
- Services: business rules, atomic blocks, row locks, logging
- API: request parsing, company context, permission checks, response mapping

Every service call takes the caller's company explicitly and reads only
that company's rows.
"""

from .ledger_service import BalanceCheck, LedgerService
from .quote_service import ConversionResult, QuoteService
from .recurring_service import (
    RecurringBatchReport,
    RecurringItemProcessor,
    RowResult,
    calculate_next_due_date,
)

__all__ = [
    "BalanceCheck",
    "ConversionResult",
    "LedgerService",
    "QuoteService",
    "RecurringBatchReport",
    "RecurringItemProcessor",
    "RowResult",
    "calculate_next_due_date",
]
