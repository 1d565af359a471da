"""
Doctor availability endpoints.

Staff query free 15-minute slots for a doctor on a date; the same
calculation backs the public booking page (see ``views.public``).
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.exceptions import NotFound
from frontdesk.models import User
from frontdesk.permissions import IsHospitalStaff
from frontdesk.serializers.appointment import AvailabilityQuerySerializer
from frontdesk.services.availability import get_available_slots


def get_doctor_or_404(doctor_id, hospital_id=None) -> User:
    qs = User.objects.filter(id=doctor_id, role=User.ROLE_DOCTOR)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    doctor = qs.first()
    if not doctor:
        raise NotFound('Doctor not found')
    return doctor


def doctor_to_dict(doctor: User) -> dict:
    return {
        'id': doctor.id,
        'name': doctor.get_full_name() or doctor.username,
        'specialisation': doctor.specialisation,
        'hospitalId': doctor.hospital_id,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def doctor_availability(request):
    """Free slots of a doctor on a date.

    Query params:
      - doctorId: the doctor's user id
      - date: ``YYYY-MM-DD``
    """
    q = AvailabilityQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    hospital_id = None if request.user.role == User.ROLE_SUPER_ADMIN else request.user.hospital_id
    doctor = get_doctor_or_404(q.validated_data['doctorId'], hospital_id)
    slots = get_available_slots(doctor.id, q.validated_data['date'])
    return Response({'ok': True, 'message': 'These are the slots of required doctor', 'data': slots})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def hospital_doctors(request):
    qs = User.objects.filter(role=User.ROLE_DOCTOR, is_active=True)
    if request.user.role != User.ROLE_SUPER_ADMIN:
        qs = qs.filter(hospital_id=request.user.hospital_id)
    return Response({'ok': True, 'data': [doctor_to_dict(d) for d in qs.order_by('id')]})
