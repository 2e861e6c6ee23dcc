"""
Django Admin configuration for doctor profiles.
"""

from django.contrib import admin

from doctor.models import Doctor


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'specialization', 'department', 'is_active_profile']
    list_filter = ['is_active_profile', 'specialization']
    search_fields = ['user__username', 'user__first_name', 'user__last_name', 'license_number']
    raw_id_fields = ['user']
    readonly_fields = ['assignment_stats', 'created_at', 'updated_at']
