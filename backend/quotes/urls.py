from django.urls import path

from .views import (
    QuoteActivityView,
    QuoteCurrencyView,
    QuoteDetailView,
    QuoteLineDetailView,
    QuoteLinesView,
    QuoteListCreateView,
    QuoteRateView,
    QuoteTemplateView,
    QuoteTransitionView,
)

urlpatterns = [
    path('quotes', QuoteListCreateView.as_view(), name='quote-list'),
    path('quotes/<int:id>', QuoteDetailView.as_view(), name='quote-detail'),
    path('quotes/<int:id>/lines', QuoteLinesView.as_view(), name='quote-lines'),
    path('quotes/<int:id>/lines/<str:line_id>', QuoteLineDetailView.as_view(), name='quote-line-detail'),
    path('quotes/<int:id>/rates/<str:code>', QuoteRateView.as_view(), name='quote-rate'),
    path('quotes/<int:id>/currency', QuoteCurrencyView.as_view(), name='quote-currency'),
    path('quotes/<int:id>/template', QuoteTemplateView.as_view(), name='quote-template'),
    path('quotes/<int:id>/transitions/<str:event>', QuoteTransitionView.as_view(), name='quote-transition'),
    path('quotes/<int:id>/activity', QuoteActivityView.as_view(), name='quote-activity'),
]
