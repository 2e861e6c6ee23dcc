"""
Doctor profile linked one-to-one with the Django auth user.
"""

from django.conf import settings
from django.db import models


class Doctor(models.Model):
    """Radiologist profile used to scope worklists and sign reports."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='doctor_profile',
    )
    specialization = models.CharField(max_length=100, blank=True, default='')
    license_number = models.CharField(max_length=100, blank=True, default='')
    department = models.CharField(max_length=100, blank=True, default='')
    qualifications = models.JSONField(default=list, blank=True)
    years_of_experience = models.PositiveIntegerField(null=True, blank=True)
    contact_phone_office = models.CharField(max_length=50, blank=True, default='')
    signature = models.TextField(
        blank=True,
        default='',
        help_text='Signature image as a data URL or storage key',
    )
    signature_metadata = models.JSONField(default=dict, blank=True)
    is_active_profile = models.BooleanField(default=True)
    assignment_stats = models.JSONField(
        default=dict,
        blank=True,
        help_text='Denormalized counters maintained by the assignment workflow',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctors'
        ordering = ['user__username']

    def __str__(self) -> str:
        return self.full_name

    @property
    def full_name(self) -> str:
        return self.user.get_full_name() or self.user.get_username()

    def to_dict(self) -> dict:
        """Profile as shown on the doctor's own settings page."""
        user = self.user
        return {
            'id': self.pk,
            'full_name': self.full_name,
            'email': user.email,
            'username': user.get_username(),
            'specialization': self.specialization,
            'license_number': self.license_number,
            'department': self.department,
            'qualifications': self.qualifications,
            'years_of_experience': self.years_of_experience,
            'contact_phone_office': self.contact_phone_office,
            'signature': self.signature,
            'signature_metadata': self.signature_metadata,
            'is_active': self.is_active_profile and user.is_active,
        }
