# quotes/views.py
from __future__ import annotations

import logging

from django.http import Http404
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsQuoteApprover
from pricing.services.currency import CurrencyRateError

from . import services
from .aggregate import QuoteAggregate
from .errors import LineItemError, QuoteError, QuoteValidationError
from .models import Quote, QuoteActivity
from .repository import QuoteRepository
from .serializers import (
    CurrencySerializer,
    LineInputSerializer,
    QuoteActivitySerializer,
    QuoteCreateSerializer,
    QuoteSerializer,
    QuoteSummarySerializer,
    RateSerializer,
    TemplateSerializer,
    TransitionSerializer,
)

logger = logging.getLogger(__name__)

# 400: the request itself is wrong. 409: the request is fine but the quote's state forbids it.
_BAD_REQUEST_ERRORS = (QuoteValidationError, LineItemError, CurrencyRateError)


def _error(exc: Exception) -> Response:
    code = getattr(exc, "code", "invalid_rate")
    body = {"detail": str(exc), "code": code}
    if isinstance(exc, QuoteValidationError):
        body["errors"] = exc.errors
    if isinstance(exc, _BAD_REQUEST_ERRORS):
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    return Response(body, status=status.HTTP_409_CONFLICT)


def _payload(aggregate: QuoteAggregate) -> dict:
    data = aggregate.to_record()
    data["is_editable"] = aggregate.is_editable
    return QuoteSerializer(data).data


def _actor(request) -> str:
    user = request.user
    return getattr(user, "audit_name", None) or user.get_username()


def _run(quote_id: int, command, status_code: int = status.HTTP_200_OK) -> Response:
    try:
        aggregate, _ = services.execute(quote_id, command)
    except Quote.DoesNotExist:
        raise Http404(f"Quote {quote_id} not found")
    except (QuoteError, CurrencyRateError) as e:
        return _error(e)
    return Response(_payload(aggregate), status=status_code)


class QuoteListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = Quote.objects.all()
        status_filter = request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter.upper())
        return Response(QuoteSummarySerializer(qs, many=True).data)

    def post(self, request):
        ser = QuoteCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            aggregate = services.create_quote(user=request.user, **ser.validated_data)
        except QuoteError as e:
            return _error(e)
        return Response(_payload(aggregate), status=status.HTTP_201_CREATED)


class QuoteDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        try:
            aggregate = QuoteRepository().load(id)
        except Quote.DoesNotExist:
            raise Http404(f"Quote {id} not found")
        return Response(_payload(aggregate))


class QuoteLinesView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, id):
        ser = LineInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        fields = dict(ser.validated_data)
        section = fields.pop("section")
        return _run(id, lambda agg: agg.add_line(section, **fields), status.HTTP_201_CREATED)


class QuoteLineDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, id, line_id):
        ser = LineInputSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        if not ser.validated_data:
            return Response({"detail": "No line fields supplied", "code": "invalid_line_item"},
                            status=status.HTTP_400_BAD_REQUEST)
        return _run(id, lambda agg: agg.update_line_fields(line_id, dict(ser.validated_data)))

    def delete(self, request, id, line_id):
        return _run(id, lambda agg: agg.remove_line(line_id))


class QuoteRateView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, id, code):
        ser = RateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _run(id, lambda agg: agg.set_rate(code, ser.validated_data["rate"]))


class QuoteCurrencyView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, id):
        ser = CurrencySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _run(id, lambda agg: agg.set_target_currency(ser.validated_data["currency"]))


class QuoteTemplateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, id):
        ser = TemplateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _run(id, lambda agg: agg.apply_template(ser.validated_data["template"]))


class QuoteTransitionView(APIView):
    """
    POST /api/quotes/<id>/transitions/<event>

    Events: submit, submit-for-approval, approve, reject, accept, lost, override.
    Only managers may approve or reject.
    """
    APPROVER_EVENTS = {"approve", "reject"}

    def get_permissions(self):
        if self.kwargs.get("event") in self.APPROVER_EVENTS:
            return [IsQuoteApprover()]
        return [IsAuthenticated()]

    def post(self, request, id, event):
        ser = TransitionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        actor = _actor(request)

        commands = {
            "submit": lambda agg: agg.attempt_submission(actor),
            "submit-for-approval": lambda agg: agg.submit_for_approval(actor),
            "approve": lambda agg: agg.approve(actor, comment=data.get("comment")),
            "reject": lambda agg: agg.reject(data.get("reason", ""), actor),
            "accept": lambda agg: agg.mark_accepted(actor),
            "lost": lambda agg: agg.mark_lost(data.get("reason", ""), actor),
            "override": lambda agg: agg.override_status(data.get("status", ""), actor),
        }
        command = commands.get(event)
        if command is None:
            return Response({"detail": f"Unknown event '{event}'", "code": "illegal_transition"},
                            status=status.HTTP_404_NOT_FOUND)
        logger.info(f"Quote {id}: {event} by {actor}")
        return _run(id, command)


class QuoteActivityView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, id):
        quote = get_object_or_404(Quote, pk=id)
        qs = QuoteActivity.objects.filter(quote=quote)
        return Response(QuoteActivitySerializer(qs, many=True).data)
