"""Rows of another company are indistinguishable from rows that do not exist."""
from decimal import Decimal

import pytest

from ledger.models import Account, Quote
from ledger.roles import get_current_company
from ledger.services import LedgerService, QuoteService
from ledger.validation import NotFoundError
from tests.factories import AccountFactory, CompanyFactory, CompanyMemberFactory, QuoteFactory, UserFactory


@pytest.mark.django_db
class TestTenantIsolation:
    def test_accounts_are_scoped(self, company, other_company):
        own = AccountFactory(company=company)
        AccountFactory(company=other_company)

        assert list(LedgerService.list_accounts(company)) == [own]

    def test_soft_deleted_rows_are_hidden(self, company):
        AccountFactory(company=company, soft_delete=True)
        QuoteFactory(company=company, soft_delete=True)

        assert LedgerService.list_accounts(company).count() == 0
        assert QuoteService.list_quotes(company).count() == 0

    @pytest.mark.parametrize("lookup", ["get_account", "check_account_balance"])
    def test_foreign_account_lookups(self, company, other_company, lookup):
        foreign = AccountFactory(company=other_company)

        with pytest.raises(NotFoundError):
            getattr(LedgerService, lookup)(company, foreign.id)

    def test_foreign_quote_cannot_change_status(self, company, other_company):
        foreign = QuoteFactory(company=other_company, status=Quote.Status.DRAFT)

        with pytest.raises(NotFoundError):
            QuoteService.transition_status(company, foreign.id, Quote.Status.SENT)

        foreign.refresh_from_db()
        assert foreign.status == Quote.Status.DRAFT

    def test_missing_and_foreign_give_same_error(self, company):
        foreign = AccountFactory(company=CompanyFactory())
        missing_id = Account.objects.order_by("-pk").first().pk + 1000

        with pytest.raises(NotFoundError) as foreign_exc:
            LedgerService.get_account(company, foreign.id)
        with pytest.raises(NotFoundError) as missing_exc:
            LedgerService.get_account(company, missing_id)

        assert foreign_exc.value.message == missing_exc.value.message

    def test_api_never_leaks_foreign_balances(self, admin_client, other_company):
        foreign = AccountFactory(company=other_company, initial_balance=Decimal("999.00"))

        response = admin_client.get(f"/api/v1/accounts/{foreign.id}/")

        assert response.status_code == 404
        assert "999" not in response.content.decode()


@pytest.mark.django_db
class TestCurrentCompany:
    def test_default_membership_then_oldest(self):
        user = UserFactory()
        oldest = CompanyMemberFactory(user=user, is_default=False)
        CompanyMemberFactory(user=user, is_default=False)

        assert get_current_company(user) == oldest.company

        preferred = CompanyMemberFactory(user=user, is_default=True)
        assert get_current_company(user) == preferred.company

    def test_soft_deleted_company_is_skipped(self):
        member = CompanyMemberFactory(company=CompanyFactory(soft_delete=True))

        assert get_current_company(member.user) is None
