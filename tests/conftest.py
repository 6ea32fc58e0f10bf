import pytest
from rest_framework.test import APIClient

from ledger.models import CompanyMember
from tests.factories import AccountFactory, CompanyFactory, CompanyMemberFactory


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def company(db):
    return CompanyFactory()


@pytest.fixture
def other_company(db):
    return CompanyFactory()


@pytest.fixture
def make_member(company):
    def _make(role=CompanyMember.Role.ADMIN, **kwargs):
        kwargs.setdefault("company", company)
        return CompanyMemberFactory(role=role, **kwargs)
    return _make


@pytest.fixture
def admin_member(make_member):
    return make_member(CompanyMember.Role.ADMIN)


@pytest.fixture
def admin_client(api_client, admin_member):
    api_client.force_authenticate(user=admin_member.user)
    return api_client


@pytest.fixture
def client_for(api_client):
    def _client_for(member):
        api_client.force_authenticate(user=member.user)
        return api_client
    return _client_for


@pytest.fixture
def account(company):
    return AccountFactory(company=company)
