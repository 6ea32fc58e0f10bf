"""API URL routing for LedgerFlow."""
from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import AccountViewSet, ProcessRecurringView, QuoteViewSet, TransactionViewSet

router = DefaultRouter()
router.register(r'accounts', AccountViewSet, basename='api-accounts')
router.register(r'transactions', TransactionViewSet, basename='api-transactions')
router.register(r'quotes', QuoteViewSet, basename='api-quotes')

urlpatterns = router.urls + [
    path('cron/process-recurring/', ProcessRecurringView.as_view(), name='cron-process-recurring'),
]
