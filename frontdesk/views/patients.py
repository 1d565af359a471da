"""
Patient registry endpoints.

Front desk staff register patients (a UHID is allocated on creation)
and every staff role can list and view the patients of its hospital.
Doctors receive masked phone numbers.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from frontdesk.exceptions import NotFound
from frontdesk.models import Patient, User
from frontdesk.permissions import IsFrontDesk, IsHospitalStaff, IsSameHospital
from frontdesk.serializers.patient import PatientListQuerySerializer, PatientRegisterSerializer
from frontdesk.services.patients import register_patient, resolve_hospital, serialize_patient


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def list_patients(request):
    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = Patient.objects.all()
    if request.user.role == User.ROLE_SUPER_ADMIN:
        if vd.get('hospitalId'):
            qs = qs.filter(hospital_id=vd['hospitalId'])
    else:
        qs = qs.filter(hospital=resolve_hospital(request.user))
    term = (vd.get('q') or '').strip()
    if term:
        qs = qs.filter(Q(name__icontains=term) | Q(uhid__iexact=term) | Q(phone__icontains=term))

    total = qs.count()
    page = vd.get('page') or 1
    page_size = vd.get('pageSize') or 50
    start = (page - 1) * page_size
    items = qs.order_by('-id')[start:start + page_size]
    return Response({
        'ok': True,
        'data': [serialize_patient(p, request.user) for p in items],
        'pagination': {'total': total, 'page': page, 'pageSize': page_size},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_register(request):
    s = PatientRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    hospital = resolve_hospital(request.user, vd.get('hospitalId'))
    patient = register_patient(
        hospital,
        name=vd['name'],
        phone=vd['phone'],
        dob=vd.get('dob'),
        gender=vd.get('gender', ''),
        registration_mode=vd['registrationMode'],
        registration_source=vd['registrationSource'],
        referral_person_name=vd.get('referralPersonName'),
        created_by=request.user,
    )
    return Response({'ok': True, 'data': serialize_patient(patient, request.user)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalStaff])
def patient_detail(request, pk: int):
    patient = Patient.objects.select_related('hospital').filter(id=pk).first()
    if not patient:
        raise NotFound('Patient not found')
    if not IsSameHospital().has_object_permission(request, None, patient):
        raise NotFound('Patient not found')
    data = serialize_patient(patient, request.user)
    data['visits'] = [
        {
            'visitId': a.visit_id,
            'visitType': a.visit_type,
            'doctorId': a.doctor_id,
            'scheduledAt': a.scheduled_at.isoformat(),
            'status': a.status,
        }
        for a in patient.appointments.order_by('-scheduled_at')
    ]
    return Response({'ok': True, 'data': data})
