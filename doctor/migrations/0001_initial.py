# Generated manually for doctor module

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
            name="Doctor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("specialization", models.CharField(blank=True, default="", max_length=100)),
                ("license_number", models.CharField(blank=True, default="", max_length=100)),
                ("department", models.CharField(blank=True, default="", max_length=100)),
                ("qualifications", models.JSONField(blank=True, default=list)),
                ("years_of_experience", models.PositiveIntegerField(blank=True, null=True)),
                ("contact_phone_office", models.CharField(blank=True, default="", max_length=50)),
                (
                    "signature",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Signature image as a data URL or storage key",
                    ),
                ),
                ("signature_metadata", models.JSONField(blank=True, default=dict)),
                ("is_active_profile", models.BooleanField(default=True)),
                (
                    "assignment_stats",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Denormalized counters maintained by the assignment workflow",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="doctor_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "doctors",
                "ordering": ["user__username"],
            },
        ),
    ]
