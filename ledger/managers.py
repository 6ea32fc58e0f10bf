from django.db import models


class CompanyScopedQuerySet(models.QuerySet):
    """Tenant scoping helpers shared by every company-owned model."""

    def for_company(self, company):
        return self.filter(company=company)

    def alive(self):
        return self.filter(soft_delete=False)

    def visible_to(self, company):
        # Rows of another company and soft-deleted rows look the same to callers.
        return self.for_company(company).alive()


class CompanyScopedManager(models.Manager.from_queryset(CompanyScopedQuerySet)):
    pass
