"""
Unauthenticated endpoints behind the hospital's public booking page.

Callers pick a hospital and doctor, read the free slots of a day and
book one.  Bookings register the caller as a patient on first use.
"""
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
    throttle_classes,
)
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from frontdesk.exceptions import InvalidInput, NotFound
from frontdesk.models import Appointment, Hospital, User
from frontdesk.serializers.appointment import AvailabilityQuerySerializer, PublicBookingSerializer
from frontdesk.services.appointments import book_public_appointment
from frontdesk.services.availability import available_slot_times
from frontdesk.services.identifiers import validate_visit_id
from frontdesk.throttles import PublicBookingRateThrottle
from frontdesk.views.doctors import doctor_to_dict, get_doctor_or_404


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_doctors(request):
    hospital_id = request.query_params.get('hospitalId')
    if not hospital_id or not str(hospital_id).isdigit():
        raise InvalidInput('hospitalId is required')
    hospital = Hospital.objects.filter(id=int(hospital_id)).first()
    if not hospital:
        raise NotFound('Hospital not found')
    qs = User.objects.filter(role=User.ROLE_DOCTOR, hospital=hospital, is_active=True).order_by('id')
    return Response({'ok': True, 'data': [doctor_to_dict(d) for d in qs]})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_slots(request):
    q = AvailabilityQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    doctor = get_doctor_or_404(q.validated_data['doctorId'])
    slots = available_slot_times(doctor.id, q.validated_data['date'])
    return Response({
        'ok': True,
        'data': [{'time': s.strftime('%H:%M'), 'scheduledAt': s.isoformat()} for s in slots],
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([PublicBookingRateThrottle])
def public_book(request):
    if not getattr(settings, 'PUBLIC_BOOKING_ENABLED', True):
        raise PermissionDenied('Online booking is disabled')
    s = PublicBookingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appointment = book_public_appointment(
        name=vd['name'],
        phone=vd['phone'],
        hospital_id=vd['hospitalId'],
        doctor_id=vd['doctorId'],
        scheduled_at=vd['scheduledAt'],
        dob=vd.get('dob'),
        gender=vd.get('gender') or '',
        source=vd['source'],
        referral_person_name=vd.get('referralPersonName'),
    )
    return Response({'ok': True, 'data': _public_view(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_appointment_status(request, visit_id: str):
    """Status of a visit, for the patient holding ``phone``."""
    if not validate_visit_id(visit_id):
        raise InvalidInput('Invalid Visit ID format')
    phone = (request.query_params.get('phone') or '').strip()
    if not phone:
        raise InvalidInput('phone is required')
    appointment = (
        Appointment.objects.select_related('patient', 'doctor', 'hospital')
        .filter(visit_id=visit_id, patient__phone=phone)
        .order_by('-scheduled_at')
        .first()
    )
    if not appointment:
        raise NotFound('Visit not found')
    return Response({'ok': True, 'data': _public_view(appointment)})


def _public_view(appointment: Appointment) -> dict:
    # No phone or date of birth on the public side
    return {
        'visitId': appointment.visit_id,
        'uhid': appointment.patient.uhid,
        'patientName': appointment.patient.name,
        'doctorName': appointment.doctor.get_full_name() or appointment.doctor.username,
        'hospitalName': appointment.hospital.name,
        'scheduledAt': appointment.scheduled_at.isoformat(),
        'status': appointment.status,
    }
