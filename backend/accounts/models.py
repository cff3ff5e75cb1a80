# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        ('sales', 'Sales'),
        ('manager', 'Manager'),
        ('finance', 'Finance'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='sales')

    @property
    def can_approve_quotes(self) -> bool:
        return self.role == 'manager' or self.is_superuser

    @property
    def audit_name(self) -> str:
        """Name written into quote audit fields, e.g. 'Fatima (Manager)'."""
        name = self.get_full_name() or self.username
        return f"{name} ({self.get_role_display()})"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
