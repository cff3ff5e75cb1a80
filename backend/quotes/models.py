from django.conf import settings
from django.db import models


class Quote(models.Model):
    """
    Persisted snapshot of a QuoteAggregate.

    `payload` holds the aggregate's plain record (lines, rate snapshot,
    approval audit). The header columns duplicate a few read-model figures
    so quotes can be listed and filtered without loading the aggregate.
    """
    STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('VALIDATION', 'Validation'),
        ('SENT', 'Sent'),
        ('ACCEPTED', 'Accepted'),
        ('REJECTED', 'Rejected'),
    ]

    reference = models.CharField(max_length=64, unique=True)
    client_name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DRAFT')
    base_currency = models.CharField(max_length=3)
    target_currency = models.CharField(max_length=3)
    total_sell_base = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    total_with_tax_target = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    margin_percent = models.DecimalField(max_digits=9, decimal_places=2, default=0)
    requires_approval = models.BooleanField(default=False)
    payload = models.JSONField(default=dict)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', '-updated_at'], name='quote_status_updated_idx'),
        ]
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.reference} ({self.status})"


class QuoteActivity(models.Model):
    CATEGORY_CHOICES = [
        ('NOTE', 'Note'),
        ('SYSTEM', 'System'),
        ('EMAIL', 'Email'),
        ('ALERT', 'Alert'),
        ('APPROVAL', 'Approval'),
    ]
    TONE_CHOICES = [
        ('success', 'Success'),
        ('neutral', 'Neutral'),
        ('warning', 'Warning'),
        ('destructive', 'Destructive'),
    ]

    quote = models.ForeignKey(Quote, on_delete=models.CASCADE, related_name='activities')
    text = models.TextField()
    category = models.CharField(max_length=12, choices=CATEGORY_CHOICES, default='NOTE')
    tone = models.CharField(max_length=12, choices=TONE_CHOICES, default='neutral')
    actor = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField()

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['quote', '-created_at'], name='activity_quote_created_idx'),
        ]

    def __str__(self):
        return f"[{self.category}] {self.text}"
