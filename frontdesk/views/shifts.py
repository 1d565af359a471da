"""
Shift management for hospital administrators.

Shifts are recurring weekly windows ("MONDAY 09:00-13:00") for a staff
member of the administrator's hospital.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.exceptions import InvalidInput, NotFound
from frontdesk.models import Shift, User
from frontdesk.permissions import IsHospitalAdmin
from frontdesk.serializers.shift import ShiftSerializer, shift_to_dict


def _get_shift(request, pk) -> Shift:
    shift = Shift.objects.filter(id=pk, hospital_id=request.user.hospital_id).first()
    if not shift:
        raise NotFound('Shift not found')
    return shift


def _get_staff(request, staff_id) -> User:
    staff = User.objects.filter(id=staff_id, hospital_id=request.user.hospital_id).first()
    if not staff:
        raise InvalidInput('Staff member not found in this hospital')
    return staff


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def shifts(request):
    if not request.user.hospital_id:
        raise InvalidInput("User isn't linked to any hospital")
    if request.method == 'GET':
        qs = Shift.objects.filter(hospital_id=request.user.hospital_id).order_by('staff_id', 'day', 'start_time')
        return Response({'ok': True, 'data': [shift_to_dict(s) for s in qs]})

    s = ShiftSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    staff = _get_staff(request, vd['staffId'])
    shift = Shift.objects.create(
        staff=staff,
        hospital_id=request.user.hospital_id,
        shift_name=vd.get('shiftName', ''),
        day=vd['day'],
        start_time=vd['startTime'],
        end_time=vd['endTime'],
    )
    return Response({'ok': True, 'data': shift_to_dict(shift)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def shift_detail(request, pk: int):
    shift = _get_shift(request, pk)
    if request.method == 'GET':
        return Response({'ok': True, 'data': shift_to_dict(shift)})
    if request.method == 'DELETE':
        shift.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = ShiftSerializer(shift, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if 'staffId' in vd:
        shift.staff = _get_staff(request, vd['staffId'])
    for field, key in [
        ('shift_name', 'shiftName'),
        ('day', 'day'),
        ('start_time', 'startTime'),
        ('end_time', 'endTime'),
    ]:
        if key in vd:
            setattr(shift, field, vd[key])
    shift.save()
    return Response({'ok': True, 'data': shift_to_dict(shift)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalAdmin])
def staff_shifts(request, staff_id: int):
    staff = _get_staff(request, staff_id)
    qs = Shift.objects.filter(staff=staff).order_by('day', 'start_time')
    return Response({'ok': True, 'data': [shift_to_dict(s) for s in qs]})
