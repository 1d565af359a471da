from rest_framework import serializers

from frontdesk.models import Shift, hhmm_validator


class ShiftSerializer(serializers.Serializer):
    staffId = serializers.IntegerField(min_value=1)
    shiftName = serializers.CharField(max_length=64, required=False, allow_blank=True)
    day = serializers.ChoiceField(choices=[c for c, _ in Shift.WEEKDAY_CHOICES])
    startTime = serializers.CharField(max_length=5, validators=[hhmm_validator])
    endTime = serializers.CharField(max_length=5, validators=[hhmm_validator])

    def validate(self, attrs):
        start = attrs.get('startTime', getattr(self.instance, 'start_time', None))
        end = attrs.get('endTime', getattr(self.instance, 'end_time', None))
        if start and end and start == end:
            raise serializers.ValidationError('Shift start and end cannot be the same')
        return attrs


def shift_to_dict(shift: Shift) -> dict:
    return {
        'id': shift.id,
        'staffId': shift.staff_id,
        'hospitalId': shift.hospital_id,
        'shiftName': shift.shift_name,
        'day': shift.day,
        'startTime': shift.start_time,
        'endTime': shift.end_time,
    }
