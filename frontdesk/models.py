"""
Database models for the hospital front desk.

Patients are identified by a hospital/year scoped UHID and every
appointment carries a Visit ID derived from it.  Doctors publish
recurring weekly shifts from which bookable slots are computed.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models

hhmm_validator = RegexValidator(r'^([01]\d|2[0-3]):[0-5]\d$', 'Time must be in HH:MM (24-hour) format')


class Hospital(models.Model):
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)
    contact_number = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Hospital staff account.

    Doctors are users with the ``DOCTOR`` role; every role except
    ``SUPER_ADMIN`` is expected to be linked to one hospital.
    """
    ROLE_SUPER_ADMIN = 'SUPER_ADMIN'
    ROLE_HOSPITAL_ADMIN = 'HOSPITAL_ADMIN'
    ROLE_DOCTOR = 'DOCTOR'
    ROLE_RECEPTIONIST = 'RECEPTIONIST'
    ROLE_CHOICES = [
        (ROLE_SUPER_ADMIN, 'Super administrator'),
        (ROLE_HOSPITAL_ADMIN, 'Hospital administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_RECEPTIONIST, 'Receptionist'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_RECEPTIONIST, db_index=True)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )
    specialisation = models.CharField(max_length=120, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Shift(models.Model):
    """A recurring weekly availability window for a staff member.

    ``start_time``/``end_time`` are "HH:MM" strings read as UTC wall-clock
    time on the day being queried.  An end before the start means the
    shift runs past midnight.
    """
    WEEKDAY_CHOICES = [
        ('MONDAY', 'Monday'),
        ('TUESDAY', 'Tuesday'),
        ('WEDNESDAY', 'Wednesday'),
        ('THURSDAY', 'Thursday'),
        ('FRIDAY', 'Friday'),
        ('SATURDAY', 'Saturday'),
        ('SUNDAY', 'Sunday'),
    ]
    staff = models.ForeignKey(User, on_delete=models.CASCADE, related_name='shifts')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='shifts')
    shift_name = models.CharField(max_length=64, blank=True)
    day = models.CharField(max_length=10, choices=WEEKDAY_CHOICES)
    start_time = models.CharField(max_length=5, validators=[hhmm_validator])
    end_time = models.CharField(max_length=5, validators=[hhmm_validator])
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['staff', 'day'], name='shift_staff_day_idx'),
        ]

    def __str__(self) -> str:
        return f"Shift(u={self.staff_id}, {self.day} {self.start_time}-{self.end_time})"


class UhidSequence(models.Model):
    """Per-year UHID counter; only ever incremented."""
    year_code = models.CharField(max_length=2, primary_key=True)
    sequence = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:
        return f"{self.year_code}: {self.sequence}"


class Patient(models.Model):
    MODE_CHOICES = [('OPD', 'OPD'), ('IPD', 'IPD')]
    SOURCE_CHOICES = [
        ('WALK_IN', 'Walk in'),
        ('WEBSITE', 'Website'),
        ('REFERRAL', 'Referral'),
        ('PHONE', 'Phone'),
        ('OTHER', 'Other'),
    ]
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='patients')
    # Assigned once at registration; null only for legacy rows awaiting backfill
    uhid = models.CharField(max_length=16, unique=True, null=True, blank=True)
    name = models.CharField(max_length=128)
    phone = models.CharField(max_length=20, db_index=True)
    dob = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, blank=True)
    registration_mode = models.CharField(max_length=3, choices=MODE_CHOICES, default='OPD')
    registration_source = models.CharField(max_length=16, choices=SOURCE_CHOICES, default='WALK_IN')
    registration_source_details = models.CharField(max_length=255, blank=True)
    referral_person_name = models.CharField(max_length=128, blank=True, null=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='registered_patients'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['hospital', 'phone'], name='patient_hospital_phone_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.uhid or 'no UHID'})"


class Appointment(models.Model):
    VISIT_OPD = 'OPD'
    VISIT_IPD = 'IPD'
    VISIT_TYPE_CHOICES = ((VISIT_OPD, 'OPD'), (VISIT_IPD, 'IPD'))

    STATUS_PENDING = 'PENDING'
    STATUS_SCHEDULED = 'SCHEDULED'
    STATUS_CONFIRMED = 'CONFIRMED'
    STATUS_DIAGNOSED = 'DIAGNOSED'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_DIAGNOSED, 'Diagnosed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='doctor_appointments')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='appointments')
    visit_type = models.CharField(max_length=3, choices=VISIT_TYPE_CHOICES, default=VISIT_OPD)
    # Shared by every patient of the same hospital prefix and year; unique per patient
    visit_id = models.CharField(max_length=32, null=True, blank=True, db_index=True)
    scheduled_at = models.DateTimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='booked_appointments'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'scheduled_at'], name='appt_doctor_time_idx'),
            models.Index(fields=['patient', 'visit_type'], name='appt_patient_visit_idx'),
        ]
        constraints = [
            models.UniqueConstraint(fields=('patient', 'visit_id'), name='appt_patient_visit_id_uniq'),
        ]

    def __str__(self) -> str:
        return f"{self.visit_id or self.pk} d={self.doctor_id} @ {self.scheduled_at:%F %H:%M}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.BigIntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_time_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_time_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
