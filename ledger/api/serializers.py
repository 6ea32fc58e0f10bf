from decimal import Decimal
from typing import Optional

from rest_framework import serializers

from ledger.models import Account, Quote, QuoteItem, Transaction


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = [
            "id",
            "name",
            "type",
            "currency",
            "account_number",
            "bank_name",
            "description",
            "initial_balance",
            "current_balance",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "current_balance", "created_at", "updated_at"]


class AccountCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, min_length=1)
    type = serializers.ChoiceField(choices=Account.Type.choices)
    currency = serializers.CharField(max_length=3, min_length=3, required=False)
    account_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    bank_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    initial_balance = serializers.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))


class BalanceCheckQuerySerializer(serializers.Serializer):
    repair = serializers.BooleanField(default=False)


class TransactionSerializer(serializers.ModelSerializer):
    account_id = serializers.IntegerField(read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)
    related_invoice_id = serializers.IntegerField(read_only=True, allow_null=True)
    related_expense_id = serializers.IntegerField(read_only=True, allow_null=True)
    related_income_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "account_id",
            "account_name",
            "type",
            "description",
            "amount",
            "currency",
            "transaction_date",
            "category_id",
            "related_invoice_id",
            "related_expense_id",
            "related_income_id",
            "reconciled",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TransactionDetailSerializer(TransactionSerializer):
    related_entity = serializers.SerializerMethodField()

    class Meta(TransactionSerializer.Meta):
        fields = TransactionSerializer.Meta.fields + ["related_entity"]
        read_only_fields = fields

    def get_related_entity(self, obj) -> Optional[dict]:
        if obj.related_invoice_id and obj.related_invoice:
            invoice = obj.related_invoice
            return {"kind": "invoice", "id": invoice.id, "label": invoice.invoice_number, "amount": str(invoice.total)}
        if obj.related_expense_id and obj.related_expense:
            expense = obj.related_expense
            return {"kind": "expense", "id": expense.id, "label": expense.description, "amount": str(expense.amount)}
        if obj.related_income_id and obj.related_income:
            income = obj.related_income
            return {"kind": "income", "id": income.id, "label": income.description, "amount": str(income.amount)}
        return None


class TransactionWriteSerializer(serializers.Serializer):
    account_id = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=Transaction.Type.choices)
    description = serializers.CharField(max_length=500, min_length=1)
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.CharField(max_length=3, min_length=3, required=False)
    transaction_date = serializers.DateField()
    category_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    related_invoice_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    related_expense_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    related_income_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    reconciled = serializers.BooleanField(default=False)


class TransactionFilterSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)
    type = serializers.ChoiceField(choices=Transaction.Type.choices, required=False)
    account_id = serializers.IntegerField(min_value=1, required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    reconciled = serializers.BooleanField(allow_null=True, default=None)
    search = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate(self, attrs):
        start_date, end_date = attrs.get("start_date"), attrs.get("end_date")
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({"end_date": "End date must be on or after the start date."})
        return attrs


class QuoteItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteItem
        fields = ["id", "description", "quantity", "unit_price", "amount"]
        read_only_fields = fields


class QuoteSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source="client.name", read_only=True)
    converted_to_invoice_id = serializers.IntegerField(read_only=True, allow_null=True)
    available_transitions = serializers.SerializerMethodField()
    items = QuoteItemSerializer(many=True, read_only=True)

    class Meta:
        model = Quote
        fields = [
            "id",
            "quote_number",
            "client",
            "client_name",
            "status",
            "issue_date",
            "expiry_date",
            "currency",
            "subtotal",
            "tax",
            "tax_rate",
            "total",
            "notes",
            "accepted_at",
            "converted_to_invoice_id",
            "available_transitions",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_available_transitions(self, obj) -> list:
        return obj.get_available_transitions()


class QuoteStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Quote.Status.choices)


class QuoteConversionSerializer(serializers.Serializer):
    due_date = serializers.DateField(required=False)


class ConversionResultSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    invoice_number = serializers.CharField()
    client_name = serializers.CharField()
