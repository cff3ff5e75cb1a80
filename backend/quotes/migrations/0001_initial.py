import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Quote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=64, unique=True)),
                ("client_name", models.CharField(max_length=255)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("VALIDATION", "Validation"), ("SENT", "Sent"), ("ACCEPTED", "Accepted"), ("REJECTED", "Rejected")], default="DRAFT", max_length=20)),
                ("base_currency", models.CharField(max_length=3)),
                ("target_currency", models.CharField(max_length=3)),
                ("total_sell_base", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("total_with_tax_target", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("margin_percent", models.DecimalField(decimal_places=2, default=0, max_digits=9)),
                ("requires_approval", models.BooleanField(default=False)),
                ("payload", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-updated_at"],
                "indexes": [models.Index(fields=["status", "-updated_at"], name="quote_status_updated_idx")],
            },
        ),
        migrations.CreateModel(
            name="QuoteActivity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("text", models.TextField()),
                ("category", models.CharField(choices=[("NOTE", "Note"), ("SYSTEM", "System"), ("EMAIL", "Email"), ("ALERT", "Alert"), ("APPROVAL", "Approval")], default="NOTE", max_length=12)),
                ("tone", models.CharField(choices=[("success", "Success"), ("neutral", "Neutral"), ("warning", "Warning"), ("destructive", "Destructive")], default="neutral", max_length=12)),
                ("actor", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField()),
                ("quote", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="activities", to="quotes.quote")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["quote", "-created_at"], name="activity_quote_created_idx")],
            },
        ),
    ]
