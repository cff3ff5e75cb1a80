from __future__ import annotations

from rest_framework import serializers

from pricing.dataclasses import MarkupKind, Section, TaxRule
from pricing.services.templates import PRICING_TEMPLATES

from .models import Quote, QuoteActivity
from .workflow import QuoteStatus

SECTION_CHOICES = [s.value for s in Section]
TAX_RULE_CHOICES = [t.value for t in TaxRule]
MARKUP_KIND_CHOICES = [k.value for k in MarkupKind]
STATUS_CHOICES = [s.value for s in QuoteStatus]


# ---------- READ MODEL (projection of QuoteAggregate.to_record()) ----------
class MarkupSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=MARKUP_KIND_CHOICES)
    value = serializers.DecimalField(max_digits=18, decimal_places=4)


class LineItemSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    section = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    buy_price = serializers.DecimalField(max_digits=18, decimal_places=4)
    buy_currency = serializers.CharField()
    markup = MarkupSerializer()
    tax_rule = serializers.CharField()
    validity_date = serializers.DateField(allow_null=True)
    price_coerced = serializers.BooleanField()


class TotalsSerializer(serializers.Serializer):
    total_cost_base       = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_sell_base       = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_margin_base     = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_tax_base        = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_with_tax_base   = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_sell_target     = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_tax_target      = serializers.DecimalField(max_digits=18, decimal_places=2)
    total_with_tax_target = serializers.DecimalField(max_digits=18, decimal_places=2)
    margin_percent        = serializers.DecimalField(max_digits=9,  decimal_places=2)
    target_currency       = serializers.CharField()
    unknown_currencies    = serializers.ListField(child=serializers.CharField())
    warnings              = serializers.ListField(child=serializers.CharField())


class ApprovalTriggerSerializer(serializers.Serializer):
    code = serializers.CharField()
    message = serializers.CharField()
    severity = serializers.CharField()


class ApprovalStateSerializer(serializers.Serializer):
    requires_approval = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    triggers = ApprovalTriggerSerializer(many=True)
    requested_by = serializers.CharField(allow_null=True)
    requested_at = serializers.CharField(allow_null=True)
    approved_by = serializers.CharField(allow_null=True)
    approved_at = serializers.CharField(allow_null=True)
    rejection_reason = serializers.CharField(allow_null=True)


class QuoteSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    reference = serializers.CharField()
    client_name = serializers.CharField()
    status = serializers.CharField()
    base_currency = serializers.CharField()
    target_currency = serializers.CharField()
    rates = serializers.DictField(child=serializers.CharField())
    lines = LineItemSerializer(many=True)
    totals = TotalsSerializer()
    approval = ApprovalStateSerializer()
    has_expired_rates = serializers.BooleanField()
    is_editable = serializers.BooleanField()


class QuoteSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Quote
        fields = [
            "id", "reference", "client_name", "status",
            "base_currency", "target_currency",
            "total_sell_base", "total_with_tax_target", "margin_percent",
            "requires_approval", "created_at", "updated_at",
        ]


class QuoteActivitySerializer(serializers.ModelSerializer):
    class Meta:
        model = QuoteActivity
        fields = ["id", "text", "category", "tone", "actor", "created_at"]


# ---------- WRITE (request validation) ----------
class QuoteCreateSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=64)
    client_name = serializers.CharField(max_length=255)
    target_currency = serializers.CharField(min_length=3, max_length=3, required=False)
    template = serializers.ChoiceField(choices=sorted(PRICING_TEMPLATES), required=False)


class LineInputSerializer(serializers.Serializer):
    # Prices stay free text: the engine reads anything non-numeric as 0
    section = serializers.ChoiceField(choices=SECTION_CHOICES)
    description = serializers.CharField(allow_blank=True, required=False)
    buy_price = serializers.CharField(allow_blank=True, required=False)
    buy_currency = serializers.CharField(max_length=3, required=False)
    markup = MarkupSerializer(required=False)
    markup_kind = serializers.ChoiceField(choices=MARKUP_KIND_CHOICES, required=False)
    markup_value = serializers.CharField(allow_blank=True, required=False)
    tax_rule = serializers.ChoiceField(choices=TAX_RULE_CHOICES, required=False)
    validity_date = serializers.DateField(allow_null=True, required=False)


class RateSerializer(serializers.Serializer):
    rate = serializers.DecimalField(max_digits=18, decimal_places=6)


class CurrencySerializer(serializers.Serializer):
    currency = serializers.CharField(min_length=3, max_length=3)


class TemplateSerializer(serializers.Serializer):
    template = serializers.ChoiceField(choices=sorted(PRICING_TEMPLATES))


class TransitionSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, required=False)
    comment = serializers.CharField(allow_blank=True, required=False)
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)
