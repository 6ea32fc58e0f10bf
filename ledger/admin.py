from django.contrib import admin
from .models import (
    Account, Client, Company, CompanyMember, Expense, ExpenseCategory,
    Income, IncomeCategory, Invoice, InvoiceItem, Quote, QuoteItem,
    RecurringExecution, Transaction, Vendor,
)


class CompanyMemberInline(admin.TabularInline):
    model = CompanyMember
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'default_currency', 'soft_delete', 'created_at')
    search_fields = ('name', 'slug')
    prepopulated_fields = {'slug': ('name',)}
    inlines = [CompanyMemberInline]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'company', 'payment_terms', 'created_at')
    search_fields = ('name', 'email')
    list_filter = ('company',)


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ('name', 'company', 'type', 'currency', 'initial_balance', 'current_balance', 'soft_delete')
    list_filter = ('type', 'company', 'soft_delete')
    search_fields = ('name', 'account_number', 'bank_name')
    # Balances change only through ledger transactions.
    readonly_fields = ('current_balance', 'created_at', 'updated_at')


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'account', 'type', 'amount', 'currency', 'transaction_date', 'reconciled', 'soft_delete')
    list_filter = ('type', 'reconciled', 'soft_delete', 'company')
    search_fields = ('description', 'account__name')
    date_hierarchy = 'transaction_date'
    readonly_fields = ('company', 'account', 'type', 'amount', 'soft_delete', 'created_at', 'updated_at')


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'client', 'company', 'status', 'total', 'recurring', 'next_due_date', 'created_at')
    list_filter = ('status', 'recurring', 'company')
    search_fields = ('invoice_number', 'client__name')
    inlines = [InvoiceItemInline]


class QuoteItemInline(admin.TabularInline):
    model = QuoteItem
    extra = 0


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ('quote_number', 'client', 'company', 'status', 'total', 'converted_to_invoice', 'created_at')
    list_filter = ('status', 'company')
    search_fields = ('quote_number', 'client__name')
    readonly_fields = ('accepted_at', 'converted_to_invoice', 'created_at', 'updated_at')
    inlines = [QuoteItemInline]


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('id', 'description', 'company', 'category', 'vendor', 'amount', 'status', 'recurring', 'expense_date')
    list_filter = ('status', 'recurring', 'company', 'category')
    search_fields = ('description', 'vendor_name', 'vendor__name')
    date_hierarchy = 'expense_date'


@admin.register(Income)
class IncomeAdmin(admin.ModelAdmin):
    list_display = ('id', 'description', 'company', 'category', 'client', 'amount', 'recurring', 'income_date')
    list_filter = ('recurring', 'company', 'category')
    search_fields = ('description', 'source', 'client__name')
    date_hierarchy = 'income_date'


@admin.register(RecurringExecution)
class RecurringExecutionAdmin(admin.ModelAdmin):
    list_display = ('id', 'kind', 'source_id', 'generated_id', 'run_date', 'status', 'executed_at')
    list_filter = ('kind', 'status')
    search_fields = ('error_message',)
    readonly_fields = ('executed_at',)


admin.site.register(Vendor)
admin.site.register(ExpenseCategory)
admin.site.register(IncomeCategory)
