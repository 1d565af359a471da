import bleach
from rest_framework import serializers

from frontdesk.models import Appointment, Patient


class AvailabilityQuerySerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(min_value=1)
    date = serializers.CharField(max_length=40)


class AppointmentCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    doctorId = serializers.IntegerField(min_value=1)
    scheduledAt = serializers.DateTimeField()
    visitType = serializers.ChoiceField(choices=[c for c, _ in Appointment.VISIT_TYPE_CHOICES], required=False, default=Appointment.VISIT_OPD)
    status = serializers.ChoiceField(
        choices=[Appointment.STATUS_PENDING, Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED],
        required=False, default=Appointment.STATUS_SCHEDULED,
    )


class PublicBookingSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    phone = serializers.RegexField(r'^\d{10}$', error_messages={'invalid': 'Phone number must be exactly 10 digits'})
    dob = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=['MALE', 'FEMALE', 'OTHER'], required=False, allow_blank=True)
    hospitalId = serializers.IntegerField(min_value=1)
    doctorId = serializers.IntegerField(min_value=1)
    scheduledAt = serializers.DateTimeField()
    source = serializers.ChoiceField(choices=[c for c, _ in Patient.SOURCE_CHOICES], required=False, default='WEBSITE')
    referralPersonName = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)

    def validate_name(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if len(v) < 2:
            raise serializers.ValidationError('Name needs at least 2 characters')
        return v


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[c for c, _ in Appointment.STATUS_CHOICES],
        error_messages={'required': 'New status is required to update'},
    )


class RescheduleSerializer(serializers.Serializer):
    scheduledAt = serializers.DateTimeField()
