# Generated manually for study module

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

WORKFLOW_STATUS_CHOICES = [
    ("new_study_received", "New Study"),
    ("pending_assignment", "Pending Assignment"),
    ("assigned_to_doctor", "Assigned to Doctor"),
    ("doctor_opened_report", "Doctor Opened Report"),
    ("report_in_progress", "Report In Progress"),
    ("report_drafted", "Report Drafted"),
    ("report_finalized", "Report Finalized"),
    ("report_uploaded", "Report Uploaded"),
    ("report_downloaded_radiologist", "Downloaded by Radiologist"),
    ("report_downloaded", "Report Downloaded"),
    ("final_report_downloaded", "Final Report Downloaded"),
    ("archived", "Archived"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("doctor", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Lab",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(help_text="Display name of the lab", max_length=200)),
                (
                    "identifier",
                    models.CharField(help_text="Short lab code shown next to the name", max_length=50, unique=True),
                ),
                ("is_active", models.BooleanField(db_index=True, default=True)),
            ],
            options={
                "db_table": "labs",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Patient",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "patient_id",
                    models.CharField(
                        help_text="Business patient identifier (MRN) from the source system",
                        max_length=100,
                        unique=True,
                    ),
                ),
                ("first_name", models.CharField(blank=True, default="", max_length=100)),
                ("last_name", models.CharField(blank=True, default="", max_length=100)),
                ("patient_name_raw", models.CharField(blank=True, default="", max_length=200)),
                (
                    "full_name",
                    models.CharField(
                        blank=True, db_index=True, default="", help_text="Computed display name", max_length=200
                    ),
                ),
                ("age_string", models.CharField(blank=True, default="", max_length=20)),
                ("gender", models.CharField(blank=True, default="", max_length=10)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("address", models.TextField(blank=True, default="")),
                ("clinical_history", models.TextField(blank=True, default="")),
                ("previous_injury", models.TextField(blank=True, default="")),
                ("previous_surgery", models.TextField(blank=True, default="")),
                ("referral_info", models.TextField(blank=True, default="")),
                (
                    "documents",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Attached document descriptors: [{file_name, file_type, uploaded_at, ...}]",
                    ),
                ),
            ],
            options={
                "db_table": "patients",
                "ordering": ["patient_id"],
            },
        ),
        migrations.CreateModel(
            name="Study",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("study_instance_uid", models.CharField(max_length=128, unique=True)),
                ("orthanc_study_id", models.CharField(blank=True, default="", max_length=64)),
                ("accession_number", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                (
                    "workflow_status",
                    models.CharField(
                        choices=WORKFLOW_STATUS_CHOICES,
                        db_index=True,
                        default="new_study_received",
                        max_length=40,
                    ),
                ),
                (
                    "case_type",
                    models.CharField(
                        blank=True,
                        default="routine",
                        help_text="routine / urgent / emergency as sent by the lab",
                        max_length=20,
                    ),
                ),
                ("report_available", models.BooleanField(default=False)),
                ("report_started_at", models.DateTimeField(blank=True, null=True)),
                ("report_finalized_at", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("reporter_name", models.CharField(blank=True, default="", max_length=200)),
                ("modality", models.CharField(blank=True, db_index=True, default="", max_length=16)),
                ("modalities_in_study", models.JSONField(blank=True, default=list)),
                ("exam_description", models.CharField(blank=True, default="", max_length=255)),
                ("study_description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "series_images",
                    models.CharField(
                        blank=True, default="", help_text='Pre-rendered "series/instances" string', max_length=32
                    ),
                ),
                ("series_count", models.PositiveIntegerField(default=0)),
                ("instance_count", models.PositiveIntegerField(default=0)),
                ("study_date", models.DateField(blank=True, db_index=True, null=True)),
                ("study_time", models.CharField(blank=True, default="", max_length=16)),
                ("age", models.CharField(blank=True, default="", max_length=20)),
                ("gender", models.CharField(blank=True, default="", max_length=10)),
                ("clinical_history", models.TextField(blank=True, default="")),
                ("referred_by", models.CharField(blank=True, default="", max_length=200)),
                ("institution_name", models.CharField(blank=True, default="", max_length=200)),
                ("zip_status", models.CharField(blank=True, default="not_started", max_length=20)),
                ("zip_url", models.URLField(blank=True, default="", max_length=500)),
                ("zip_file_name", models.CharField(blank=True, default="", max_length=255)),
                ("zip_size_mb", models.FloatField(blank=True, null=True)),
                ("zip_download_count", models.PositiveIntegerField(default=0)),
                ("zip_created_at", models.DateTimeField(blank=True, null=True)),
                ("zip_expires_at", models.DateTimeField(blank=True, null=True)),
                (
                    "created_at",
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, help_text="Upload time"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "calculated_tat",
                    models.JSONField(
                        blank=True,
                        help_text="Pre-computed TAT snapshot, see study.tat.calculate_study_tat",
                        null=True,
                    ),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="studies",
                        to="study.patient",
                    ),
                ),
                (
                    "source_lab",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="studies",
                        to="study.lab",
                    ),
                ),
            ],
            options={
                "db_table": "studies",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["workflow_status", "created_at"], name="idx_study_status_created"),
                    models.Index(fields=["source_lab", "created_at"], name="idx_study_lab_created"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StudyAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("assigned_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("priority", models.CharField(blank=True, default="NORMAL", max_length=20)),
                (
                    "assigned_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "doctor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="doctor.doctor",
                    ),
                ),
                (
                    "study",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="study.study",
                    ),
                ),
            ],
            options={
                "db_table": "study_assignments",
                "ordering": ["-assigned_at"],
                "indexes": [
                    models.Index(fields=["doctor", "assigned_at"], name="idx_assignment_doctor_time"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StudyReport",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.TextField(blank=True, default="")),
                ("findings", models.TextField(blank=True, default="")),
                ("impression", models.TextField(blank=True, default="")),
                ("recommendations", models.TextField(blank=True, default="")),
                ("finalized_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "doctor",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reports",
                        to="doctor.doctor",
                    ),
                ),
                (
                    "study",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reports",
                        to="study.study",
                    ),
                ),
            ],
            options={
                "db_table": "study_reports",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="StatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=WORKFLOW_STATUS_CHOICES, max_length=40)),
                ("changed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "study",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="study.study",
                    ),
                ),
            ],
            options={
                "db_table": "study_status_history",
                "ordering": ["changed_at"],
            },
        ),
    ]
