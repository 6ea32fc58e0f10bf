"""
HTTP surface tests: company context, role permissions, response envelopes
and the recurring trigger endpoint.
"""
from decimal import Decimal

import pytest
from django.urls import reverse

from ledger.models import CompanyMember, Frequency, Quote, Transaction
from tests.factories import (
    AccountFactory,
    CompanyFactory,
    CompanyMemberFactory,
    ExpenseFactory,
    QuoteFactory,
    QuoteItemFactory,
    UserFactory,
)

Role = CompanyMember.Role

TRANSACTIONS_URL = "/api/v1/transactions/"
ACCOUNTS_URL = "/api/v1/accounts/"
CRON_URL = "/api/v1/cron/process-recurring/"


def _payload(account, **overrides):
    payload = {
        "account_id": account.id,
        "type": "credit",
        "description": "Client payment",
        "amount": "150.00",
        "transaction_date": "2024-03-01",
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestCompanyContext:
    def test_anonymous_request_is_401(self, api_client):
        response = api_client.get(ACCOUNTS_URL)

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "AUTHENTICATION_REQUIRED"
        assert body["request_id"]

    def test_user_without_company_is_403(self, api_client):
        api_client.force_authenticate(user=UserFactory())

        response = api_client.get(ACCOUNTS_URL)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "COMPANY_REQUIRED"

    def test_soft_deleted_company_does_not_count(self, api_client):
        member = CompanyMemberFactory(company=CompanyFactory(soft_delete=True))
        api_client.force_authenticate(user=member.user)

        assert api_client.get(ACCOUNTS_URL).status_code == 403

    def test_default_membership_wins(self, api_client):
        user = UserFactory()
        CompanyMemberFactory(user=user, is_default=False)
        default = CompanyMemberFactory(user=user, is_default=True)
        AccountFactory(company=default.company, name="Default company account")
        api_client.force_authenticate(user=user)

        response = api_client.get(ACCOUNTS_URL)

        assert [a["name"] for a in response.json()["data"]] == ["Default company account"]

    def test_request_id_header_is_echoed(self, admin_client):
        response = admin_client.get(ACCOUNTS_URL, HTTP_X_REQUEST_ID="req-123")

        assert response["X-Request-ID"] == "req-123"


@pytest.mark.django_db
class TestRolePermissions:
    def test_staff_cannot_read_finance(self, make_member, client_for):
        client = client_for(make_member(Role.STAFF))

        response = client.get(TRANSACTIONS_URL)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_accountant_can_record_transactions(self, make_member, client_for, account):
        client = client_for(make_member(Role.ACCOUNTANT))

        response = client.post(TRANSACTIONS_URL, _payload(account), format="json")

        assert response.status_code == 201

    def test_staff_cannot_accept_quote_but_can_send_it(self, make_member, client_for, company):
        client = client_for(make_member(Role.STAFF))
        quote = QuoteFactory(company=company)

        denied = client.patch(f"/api/v1/quotes/{quote.id}/status/", {"status": "accepted"}, format="json")
        allowed = client.patch(f"/api/v1/quotes/{quote.id}/status/", {"status": "sent"}, format="json")

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["data"]["status"] == "sent"

    def test_accountant_can_accept_but_not_convert(self, make_member, client_for, company):
        client = client_for(make_member(Role.ACCOUNTANT))
        quote = QuoteFactory(company=company, status=Quote.Status.SENT)

        accepted = client.patch(f"/api/v1/quotes/{quote.id}/status/", {"status": "accepted"}, format="json")
        converted = client.post(f"/api/v1/quotes/{quote.id}/convert-to-invoice/", {}, format="json")

        assert accepted.status_code == 200
        assert converted.status_code == 403


@pytest.mark.django_db
class TestAccountEndpoints:
    def test_create_account_uses_company_currency(self, admin_client, company):
        response = admin_client.post(
            ACCOUNTS_URL,
            {"name": "Operating", "type": "bank", "initial_balance": "2500.00"},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["currency"] == company.default_currency
        assert Decimal(data["current_balance"]) == Decimal("2500.00")

    def test_balance_check_and_repair(self, admin_client, account):
        type(account).objects.filter(pk=account.pk).update(current_balance=Decimal("1.00"))
        url = f"{ACCOUNTS_URL}{account.id}/balance-check/"

        response = admin_client.get(url)
        assert response.status_code == 200
        check = response.json()["data"]
        assert check["account_id"] == account.id
        assert check["is_consistent"] is False
        assert check["expected_balance"] == "1000.00"

        repaired = admin_client.post(url, {"repair": True}, format="json").json()["data"]
        assert repaired["repaired"] is True
        account.refresh_from_db()
        assert account.current_balance == Decimal("1000.00")


@pytest.mark.django_db
class TestTransactionEndpoints:
    def test_create_returns_envelope_and_updates_balance(self, admin_client, account):
        response = admin_client.post(TRANSACTIONS_URL, _payload(account), format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["account_id"] == account.id
        assert body["data"]["currency"] == account.currency
        account.refresh_from_db()
        assert account.current_balance == Decimal("1150.00")

    def test_validation_errors_use_field_envelope(self, admin_client, account):
        response = admin_client.post(
            TRANSACTIONS_URL, _payload(account, amount="-5.00", type="transfer"), format="json"
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {f["field"] for f in error["fields"]} == {"amount", "type"}

    def test_list_is_paginated(self, admin_client, account):
        for amount in ("1.00", "2.00", "3.00"):
            admin_client.post(TRANSACTIONS_URL, _payload(account, amount=amount), format="json")

        response = admin_client.get(TRANSACTIONS_URL, {"page": 2, "limit": 2})

        body = response.json()
        assert response.status_code == 200
        assert len(body["data"]) == 1
        assert body["meta"]["pagination"] == {"page": 2, "page_size": 2, "total": 3, "total_pages": 2}

    def test_list_rejects_inverted_date_range(self, admin_client):
        response = admin_client.get(TRANSACTIONS_URL, {"start_date": "2024-03-01", "end_date": "2024-02-01"})

        assert response.status_code == 400

    def test_update_and_delete(self, admin_client, account):
        created = admin_client.post(TRANSACTIONS_URL, _payload(account), format="json").json()["data"]
        url = f"{TRANSACTIONS_URL}{created['id']}/"

        updated = admin_client.put(url, _payload(account, type="debit", amount="50.00"), format="json")
        assert updated.status_code == 200
        account.refresh_from_db()
        assert account.current_balance == Decimal("950.00")

        assert admin_client.delete(url).status_code == 200
        account.refresh_from_db()
        assert account.current_balance == Decimal("1000.00")

        assert admin_client.delete(url).status_code == 404
        account.refresh_from_db()
        assert account.current_balance == Decimal("1000.00")

    def test_retrieve_includes_related_entity(self, admin_client, company, account):
        expense = ExpenseFactory(company=company)
        created = admin_client.post(
            TRANSACTIONS_URL,
            _payload(account, type="debit", related_expense_id=expense.id),
            format="json",
        ).json()["data"]

        data = admin_client.get(f"{TRANSACTIONS_URL}{created['id']}/").json()["data"]

        assert data["related_entity"]["kind"] == "expense"
        assert data["related_entity"]["id"] == expense.id

    def test_other_company_transaction_is_404(self, admin_client):
        foreign_account = AccountFactory(company=CompanyFactory())
        foreign = Transaction.objects.create(
            company=foreign_account.company,
            account=foreign_account,
            type="credit",
            description="Elsewhere",
            amount=Decimal("10.00"),
            transaction_date="2024-03-01",
        )

        assert admin_client.get(f"{TRANSACTIONS_URL}{foreign.id}/").status_code == 404
        assert admin_client.delete(f"{TRANSACTIONS_URL}{foreign.id}/").status_code == 404


@pytest.mark.django_db
class TestQuoteEndpoints:
    def test_list_and_retrieve(self, admin_client, company):
        quote = QuoteFactory(company=company, status=Quote.Status.SENT)
        QuoteItemFactory(quote=quote)
        QuoteFactory(company=CompanyFactory())

        listed = admin_client.get("/api/v1/quotes/").json()["data"]
        detail = admin_client.get(f"/api/v1/quotes/{quote.id}/").json()["data"]

        assert [q["id"] for q in listed] == [quote.id]
        assert detail["available_transitions"] == ["accepted", "rejected", "expired", "draft"]
        assert len(detail["items"]) == 1

    def test_illegal_transition_is_400(self, admin_client, company):
        quote = QuoteFactory(company=company, status=Quote.Status.DRAFT)

        response = admin_client.patch(f"/api/v1/quotes/{quote.id}/status/", {"status": "expired"}, format="json")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_STATE_TRANSITION"
        assert error["details"]["available_transitions"] == ["sent", "accepted", "rejected"]

    def test_convert_then_conflict(self, admin_client, company):
        quote = QuoteFactory(company=company, status=Quote.Status.ACCEPTED)
        url = f"/api/v1/quotes/{quote.id}/convert-to-invoice/"

        first = admin_client.post(url, {}, format="json")
        second = admin_client.post(url, {}, format="json")

        assert first.status_code == 201
        data = first.json()["data"]
        assert set(data) == {"invoice_id", "invoice_number", "client_name"}
        assert data["client_name"] == quote.client.name

        assert second.status_code == 409
        error = second.json()["error"]
        assert error["code"] == "QUOTE_ALREADY_CONVERTED"
        assert error["details"]["invoice_id"] == data["invoice_id"]

    def test_convert_draft_quote_is_400(self, admin_client, company):
        quote = QuoteFactory(company=company, status=Quote.Status.DRAFT)

        response = admin_client.post(f"/api/v1/quotes/{quote.id}/convert-to-invoice/", {}, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"


@pytest.mark.django_db
class TestCronEndpoint:
    def test_missing_configuration_is_503(self, api_client, settings):
        settings.CRON_API_KEY = ""

        response = api_client.post(CRON_URL, HTTP_X_CRON_API_KEY="anything")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"

    def test_wrong_key_is_401(self, api_client, settings):
        settings.CRON_API_KEY = "s3cret-cron-key"

        assert api_client.post(CRON_URL).status_code == 401
        assert api_client.post(CRON_URL, HTTP_X_CRON_API_KEY="guess").status_code == 401

    def test_valid_key_runs_batch(self, api_client, settings):
        settings.CRON_API_KEY = "s3cret-cron-key"
        ExpenseFactory(recurring=Frequency.MONTHLY, next_due_date="2000-01-01")

        response = api_client.post(CRON_URL, HTTP_X_CRON_API_KEY="s3cret-cron-key")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["expenses"] == 1
        assert data["total"] == 1

    def test_get_only_in_debug(self, api_client, settings):
        settings.CRON_API_KEY = "s3cret-cron-key"
        settings.DEBUG = False
        assert api_client.get(CRON_URL, HTTP_X_CRON_API_KEY="s3cret-cron-key").status_code == 405

        settings.DEBUG = True
        assert api_client.get(CRON_URL, HTTP_X_CRON_API_KEY="s3cret-cron-key").status_code == 200


@pytest.mark.django_db
def test_schema_is_served(api_client):
    response = api_client.get(reverse("schema"))

    assert response.status_code == 200
