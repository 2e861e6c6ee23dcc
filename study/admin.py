"""
Django Admin configuration for the study app.
"""

from django.contrib import admin

from study.models import Lab, Patient, StatusHistory, Study, StudyAssignment, StudyReport


class StudyAssignmentInline(admin.TabularInline):
    model = StudyAssignment
    extra = 0
    raw_id_fields = ['doctor', 'assigned_by']


class StatusHistoryInline(admin.TabularInline):
    model = StatusHistory
    extra = 0
    readonly_fields = ['status', 'changed_at', 'changed_by', 'note']


@admin.register(Lab)
class LabAdmin(admin.ModelAdmin):
    list_display = ['name', 'identifier', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'identifier']


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['patient_id', 'full_name', 'gender', 'age_string']
    search_fields = ['patient_id', 'full_name', 'first_name', 'last_name', 'patient_name_raw']


@admin.register(Study)
class StudyAdmin(admin.ModelAdmin):
    """Admin interface for Study model."""

    list_display = [
        'accession_number',
        'patient',
        'source_lab',
        'modality',
        'workflow_status',
        'created_at',
        'report_finalized_at',
    ]

    list_filter = [
        'workflow_status',
        'modality',
        'source_lab',
        'created_at',
    ]

    search_fields = [
        'accession_number',
        'study_instance_uid',
        'patient__patient_id',
        'patient__full_name',
    ]

    # TAT snapshot is maintained by the reporting workflow
    readonly_fields = ['created_at', 'updated_at', 'calculated_tat']

    raw_id_fields = ['patient']
    inlines = [StudyAssignmentInline, StatusHistoryInline]

    fieldsets = (
        ('Identifiers', {
            'fields': ('study_instance_uid', 'orthanc_study_id', 'accession_number')
        }),
        ('Patient & Source', {
            'fields': ('patient', 'source_lab', 'institution_name', 'referred_by')
        }),
        ('Examination Details', {
            'fields': (
                'modality',
                'modalities_in_study',
                'exam_description',
                'study_description',
                'study_date',
                'study_time',
                'series_count',
                'instance_count',
            )
        }),
        ('Workflow', {
            'fields': (
                'workflow_status',
                'case_type',
                'report_available',
                'report_started_at',
                'report_finalized_at',
                'reporter_name',
            )
        }),
        ('Timeline', {
            'fields': ('created_at', 'updated_at', 'calculated_tat'),
            'classes': ('collapse',),
        }),
    )

    ordering = ['-created_at']
    date_hierarchy = 'created_at'


@admin.register(StudyReport)
class StudyReportAdmin(admin.ModelAdmin):
    list_display = ['study', 'doctor', 'finalized_at', 'created_at']
    raw_id_fields = ['study', 'doctor']
