"""
Django admin registrations for the front desk models.

Lets superusers inspect hospitals, staff, shifts, patients and visits
via ``/admin/``.  Identifiers are read-only: they come from the
allocation services and must not be edited by hand.
"""

from django.contrib import admin

from .models import Appointment, AuditEvent, Hospital, Patient, Shift, UhidSequence, User


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at')
    search_fields = ('name',)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'hospital', 'specialisation', 'is_active')
    list_filter = ('role', 'hospital')
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ('staff', 'hospital', 'day', 'start_time', 'end_time', 'shift_name')
    list_filter = ('day', 'hospital')
    search_fields = ('staff__username', 'shift_name')


@admin.register(UhidSequence)
class UhidSequenceAdmin(admin.ModelAdmin):
    list_display = ('year_code', 'sequence')
    readonly_fields = ('year_code', 'sequence')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('uhid', 'name', 'phone', 'hospital', 'registration_mode', 'registration_source')
    list_filter = ('hospital', 'registration_mode', 'registration_source')
    search_fields = ('uhid', 'name', 'phone')
    readonly_fields = ('uhid',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('visit_id', 'patient', 'doctor', 'scheduled_at', 'visit_type', 'status')
    list_filter = ('status', 'visit_type', 'hospital')
    search_fields = ('visit_id', 'patient__uhid', 'patient__name', 'doctor__username')
    readonly_fields = ('visit_id',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__username')
