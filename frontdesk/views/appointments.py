from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.exceptions import NotFound
from frontdesk.models import Appointment, Patient, User
from frontdesk.permissions import IsFrontDesk, IsHospitalStaff
from frontdesk.serializers.appointment import (
    AppointmentCreateSerializer,
    AppointmentStatusSerializer,
    RescheduleSerializer,
)
from frontdesk.services.appointments import (
    book_appointment,
    reschedule_appointment,
    serialize_appointment,
    update_appointment_status,
)
from frontdesk.views.doctors import get_doctor_or_404


def _scope(user):
    return None if user.role == User.ROLE_SUPER_ADMIN else user.hospital_id


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def create_appointment(request):
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    hospital_id = _scope(request.user)

    patients = Patient.objects.filter(id=vd['patientId'])
    if hospital_id:
        patients = patients.filter(hospital_id=hospital_id)
    patient = patients.first()
    if not patient:
        raise NotFound('Patient not found')
    doctor = get_doctor_or_404(vd['doctorId'], hospital_id)

    appointment = book_appointment(
        patient=patient,
        doctor=doctor,
        scheduled_at=vd['scheduledAt'],
        visit_type=vd['visitType'],
        status=vd['status'],
        created_by=request.user,
    )
    return Response({'ok': True, 'data': serialize_appointment(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def appointment_by_visit(request, visit_id: str):
    """Visits with this ID in the caller's hospital.

    Patients registered at the same hospital prefix in the same year share
    Visit IDs, so this is a list; pass ``uhid`` to narrow it to one patient.
    """
    qs = Appointment.objects.select_related('patient', 'doctor', 'hospital').filter(visit_id=visit_id)
    hospital_id = _scope(request.user)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    uhid = request.query_params.get('uhid')
    if uhid:
        qs = qs.filter(patient__uhid=uhid)
    items = list(qs.order_by('-scheduled_at'))
    if not items:
        raise NotFound('Visit not found')
    return Response({'ok': True, 'data': [serialize_appointment(a) for a in items]})


def _get_appointment_or_404(pk: int, user) -> Appointment:
    qs = Appointment.objects.filter(id=pk)
    hospital_id = _scope(user)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    appointment = qs.first()
    if not appointment:
        raise NotFound('Appointment not found')
    return appointment


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def appointment_status(request, pk: int):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = update_appointment_status(
        _get_appointment_or_404(pk, request.user), s.validated_data['status'], changed_by=request.user,
    )
    return Response({'ok': True, 'data': serialize_appointment(appointment)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def appointment_schedule(request, pk: int):
    s = RescheduleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = reschedule_appointment(
        _get_appointment_or_404(pk, request.user), s.validated_data['scheduledAt'], changed_by=request.user,
    )
    return Response({'ok': True, 'data': serialize_appointment(appointment)})
