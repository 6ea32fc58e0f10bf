import hmac
import logging
from typing import Any, Dict, Optional, cast

from django.conf import settings
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import MethodNotAllowed
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.models import Quote
from ledger.services import LedgerService, QuoteService, RecurringItemProcessor
from ledger.validation import AuthenticationError, ErrorCode, ServiceUnavailableError

from .permissions import HasCompanyContext, HasLedgerPermission, require_role_permission
from .response import APIResponse
from .serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    BalanceCheckQuerySerializer,
    ConversionResultSerializer,
    QuoteConversionSerializer,
    QuoteSerializer,
    QuoteStatusSerializer,
    TransactionDetailSerializer,
    TransactionFilterSerializer,
    TransactionSerializer,
    TransactionWriteSerializer,
)

logger = logging.getLogger(__name__)

FINANCE_READ = ("finance.viewReports", "finance.manageAccounts")
FINANCE_WRITE = "finance.manageAccounts"

ACCOUNT_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Account ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)

TRANSACTION_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Transaction ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)

QUOTE_ID_PARAM = OpenApiParameter(
    name="pk",
    description="Quote ID",
    required=True,
    type=OpenApiTypes.INT,
    location=OpenApiParameter.PATH,
)


class CompanyScopedViewSet(viewsets.ViewSet):
    permission_classes = [HasCompanyContext, HasLedgerPermission]
    lookup_value_regex = r"\d+"
    required_permissions: Dict[str, Any] = {}

    @property
    def company(self):
        return self.request.company


# ------------------------------
# Account ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(
        summary="List accounts",
        description="List the company's bank, cash and credit card accounts with their running balances.",
        responses={200: AccountSerializer(many=True)},
    ),
    retrieve=extend_schema(
        summary="Get account",
        parameters=[ACCOUNT_ID_PARAM],
        responses={200: AccountSerializer},
    ),
    create=extend_schema(
        summary="Create account",
        description="Open an account; its running balance starts at the initial balance.",
        request=AccountCreateSerializer,
        responses={201: AccountSerializer},
    ),
)
class AccountViewSet(CompanyScopedViewSet):
    required_permissions = {
        "list": FINANCE_READ,
        "retrieve": FINANCE_READ,
        "create": FINANCE_WRITE,
        "balance_check": FINANCE_READ,
    }

    def list(self, request: Request, version: Optional[str] = None) -> Response:
        accounts = LedgerService.list_accounts(self.company)
        return APIResponse.success(
            data=AccountSerializer(accounts, many=True).data,
            message="Accounts retrieved.",
        )

    def retrieve(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        account = LedgerService.get_account(self.company, int(pk))
        return APIResponse.success(data=AccountSerializer(account).data, message="Account retrieved.")

    def create(self, request: Request, version: Optional[str] = None) -> Response:
        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = LedgerService.create_account(self.company, cast(Dict[str, Any], serializer.validated_data))
        return APIResponse.success(
            data=AccountSerializer(account).data,
            message="Account created.",
            status_code=201,
        )

    @extend_schema(
        summary="Check account balance",
        description=(
            "Recompute the balance from the account's transaction history and compare it with the stored "
            "running balance. POST with repair=true rewrites the stored balance when they differ."
        ),
        parameters=[ACCOUNT_ID_PARAM],
        request=BalanceCheckQuerySerializer,
    )
    @action(detail=True, methods=["get", "post"], url_path="balance-check")
    def balance_check(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        repair = False
        if request.method == "POST":
            require_role_permission(request, FINANCE_WRITE)
            serializer = BalanceCheckQuerySerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            repair = serializer.validated_data["repair"]

        check = LedgerService.check_account_balance(self.company, int(pk), repair=repair)
        return APIResponse.success(data=check.to_dict(), message="Balance checked.")


# ------------------------------
# Transaction ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(
        summary="List transactions",
        description="Paginated list of live transactions, newest transaction date first.",
        parameters=[TransactionFilterSerializer],
        responses={200: TransactionSerializer(many=True)},
    ),
    retrieve=extend_schema(
        summary="Get transaction",
        description="Transaction details including the related invoice, expense or income.",
        parameters=[TRANSACTION_ID_PARAM],
        responses={200: TransactionDetailSerializer},
    ),
    create=extend_schema(
        summary="Record transaction",
        description="Insert a transaction and apply it to the account balance in one atomic step.",
        request=TransactionWriteSerializer,
        responses={201: TransactionSerializer},
    ),
    update=extend_schema(
        summary="Update transaction",
        description="Reverse the transaction's previous effect and apply the new one in one atomic step.",
        parameters=[TRANSACTION_ID_PARAM],
        request=TransactionWriteSerializer,
        responses={200: TransactionSerializer},
    ),
    destroy=extend_schema(
        summary="Delete transaction",
        description="Soft-delete the transaction and reverse its effect on the account balance.",
        parameters=[TRANSACTION_ID_PARAM],
    ),
)
class TransactionViewSet(CompanyScopedViewSet):
    required_permissions = {
        "list": FINANCE_READ,
        "retrieve": FINANCE_READ,
        "create": FINANCE_WRITE,
        "update": FINANCE_WRITE,
        "destroy": FINANCE_WRITE,
    }

    def list(self, request: Request, version: Optional[str] = None) -> Response:
        filters = TransactionFilterSerializer(data=request.query_params.dict())
        filters.is_valid(raise_exception=True)
        params = cast(Dict[str, Any], filters.validated_data)

        page, limit = params.pop("page"), params.pop("limit")
        qs = LedgerService.list_transactions(self.company, params)
        total = qs.count()
        offset = (page - 1) * limit
        return APIResponse.paginated(
            data=TransactionSerializer(qs[offset:offset + limit], many=True).data,
            page=page,
            page_size=limit,
            total=total,
            message="Transactions retrieved.",
        )

    def retrieve(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        entry = LedgerService.get_transaction(self.company, int(pk))
        return APIResponse.success(data=TransactionDetailSerializer(entry).data, message="Transaction retrieved.")

    def create(self, request: Request, version: Optional[str] = None) -> Response:
        serializer = TransactionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = LedgerService.create_transaction(self.company, cast(Dict[str, Any], serializer.validated_data))
        return APIResponse.success(
            data=TransactionSerializer(entry).data,
            message="Transaction recorded.",
            status_code=201,
        )

    def update(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        serializer = TransactionWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = LedgerService.update_transaction(self.company, int(pk), cast(Dict[str, Any], serializer.validated_data))
        return APIResponse.success(data=TransactionSerializer(entry).data, message="Transaction updated.")

    def destroy(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        LedgerService.delete_transaction(self.company, int(pk))
        return APIResponse.success(message="Transaction deleted.")


# ------------------------------
# Quote ViewSet
# ------------------------------
@extend_schema_view(
    list=extend_schema(
        summary="List quotes",
        parameters=[
            OpenApiParameter(name="status", description="Filter by status", required=False, type=str),
        ],
        responses={200: QuoteSerializer(many=True)},
    ),
    retrieve=extend_schema(
        summary="Get quote",
        parameters=[QUOTE_ID_PARAM],
        responses={200: QuoteSerializer},
    ),
)
class QuoteViewSet(CompanyScopedViewSet):
    required_permissions = {
        "list": "quotes.view",
        "retrieve": "quotes.view",
        "update_status": ("quotes.edit", "quotes.accept"),
        "convert_to_invoice": "invoices.create",
    }

    def list(self, request: Request, version: Optional[str] = None) -> Response:
        status = request.query_params.get("status")
        if status and status not in Quote.Status.values:
            status = None
        quotes = QuoteService.list_quotes(self.company, status=status)
        return APIResponse.success(data=QuoteSerializer(quotes, many=True).data, message="Quotes retrieved.")

    def retrieve(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        quote = QuoteService.get_quote(self.company, int(pk))
        return APIResponse.success(data=QuoteSerializer(quote).data, message="Quote retrieved.")

    @extend_schema(
        summary="Update quote status",
        description=(
            "Move a quote through draft/sent/accepted/rejected/expired. Illegal transitions are rejected; "
            "accepting a quote requires the quotes.accept permission."
        ),
        request=QuoteStatusSerializer,
        responses={200: QuoteSerializer},
        parameters=[QUOTE_ID_PARAM],
    )
    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        serializer = QuoteStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]

        if new_status == Quote.Status.ACCEPTED:
            require_role_permission(request, "quotes.accept")
        else:
            require_role_permission(request, "quotes.edit")

        quote = QuoteService.transition_status(self.company, int(pk), new_status)
        return APIResponse.success(data=QuoteSerializer(quote).data, message="Quote status updated.")

    @extend_schema(
        summary="Convert quote to invoice",
        description="Create a draft invoice from an accepted quote. A quote can be converted only once.",
        request=QuoteConversionSerializer,
        responses={201: ConversionResultSerializer},
        parameters=[QUOTE_ID_PARAM],
    )
    @action(detail=True, methods=["post"], url_path="convert-to-invoice")
    def convert_to_invoice(self, request: Request, pk: Optional[int] = None, version: Optional[str] = None) -> Response:
        serializer = QuoteConversionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = QuoteService.convert_to_invoice(self.company, int(pk), due_date=serializer.validated_data.get("due_date"))
        return APIResponse.success(
            data=result.to_dict(),
            message="Quote converted to invoice.",
            status_code=201,
        )


# ------------------------------
# Cron trigger
# ------------------------------
class ProcessRecurringView(APIView):
    """Scheduler trigger, authenticated by a shared key instead of a user session."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def _check_cron_key(self, request: Request) -> None:
        expected = settings.CRON_API_KEY
        if not expected:
            logger.error("Recurring trigger called but CRON_API_KEY is not configured")
            raise ServiceUnavailableError("Recurring processing is not configured.")
        provided = request.headers.get("X-Cron-Api-Key", "")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            logger.warning("Recurring trigger called with an invalid cron key")
            raise AuthenticationError("Invalid cron API key.", code=ErrorCode.AUTHENTICATION_FAILED)

    def _run(self, request: Request) -> Response:
        self._check_cron_key(request)
        report = RecurringItemProcessor.run_recurring_batch()
        return APIResponse.success(data=report.as_dict(), message="Recurring items processed.")

    @extend_schema(
        summary="Process recurring items",
        description="Materialize every due recurring invoice, expense and income row. Requires the X-Cron-Api-Key header.",
        parameters=[
            OpenApiParameter(name="X-Cron-Api-Key", location=OpenApiParameter.HEADER, required=True, type=str),
        ],
        request=None,
    )
    def post(self, request: Request, version: Optional[str] = None) -> Response:
        return self._run(request)

    @extend_schema(exclude=True)
    def get(self, request: Request, version: Optional[str] = None) -> Response:
        if not settings.DEBUG:
            raise MethodNotAllowed(request.method)
        return self._run(request)
