import bleach
from rest_framework import serializers

from frontdesk.models import Patient


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class PatientRegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    phone = serializers.RegexField(r'^\d{10}$', error_messages={'invalid': 'Phone number must be exactly 10 digits'})
    dob = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=['MALE', 'FEMALE', 'OTHER'], required=False, allow_blank=True)
    registrationMode = serializers.ChoiceField(choices=[c for c, _ in Patient.MODE_CHOICES], required=False, default='OPD')
    registrationSource = serializers.ChoiceField(choices=[c for c, _ in Patient.SOURCE_CHOICES], required=False, default='WALK_IN')
    referralPersonName = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)
    hospitalId = serializers.IntegerField(required=False, allow_null=True)

    def validate_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name needs at least 2 characters')
        return v

    def validate_referralPersonName(self, v):
        return _clean(v) or None


class PatientListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    hospitalId = serializers.IntegerField(required=False, allow_null=True)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200)
