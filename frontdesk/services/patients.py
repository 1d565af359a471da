import logging
from typing import Optional

from django.db import transaction
from rest_framework.exceptions import PermissionDenied

from frontdesk.exceptions import InvalidInput
from frontdesk.models import Hospital, Patient, User
from frontdesk.services.audit import log_action
from frontdesk.services.identifiers import generate_uhid
from frontdesk.services.masking import mask_patient_for_doctor

logger = logging.getLogger(__name__)


def resolve_hospital(current_user, hospital_id=None) -> Hospital:
    """Hospital a request acts on: the user's own, or any one for super admins."""
    if getattr(current_user, 'role', '') == User.ROLE_SUPER_ADMIN:
        hospital = Hospital.objects.filter(id=hospital_id).first() if hospital_id else None
        if not hospital:
            raise InvalidInput('hospitalId is required for super administrators')
        return hospital
    if not getattr(current_user, 'hospital_id', None):
        raise PermissionDenied("User isn't linked to any hospital")
    return current_user.hospital


def register_patient(hospital: Hospital, *, name, phone, dob=None, gender='', registration_mode='OPD',
                     registration_source='WALK_IN', registration_source_details='',
                     referral_person_name=None, created_by: Optional[User] = None) -> Patient:
    """Create a patient with a freshly allocated UHID.

    The UHID is allocated in the same transaction as the insert, so a
    failed insert never leaves a patient without a UHID behind.
    """
    with transaction.atomic():
        uhid = generate_uhid(hospital.name)
        patient = Patient.objects.create(
            hospital=hospital,
            uhid=uhid,
            name=name,
            phone=phone,
            dob=dob,
            gender=gender or '',
            registration_mode=registration_mode,
            registration_source=registration_source,
            registration_source_details=registration_source_details or '',
            referral_person_name=referral_person_name if registration_source == 'REFERRAL' else None,
            created_by=created_by if getattr(created_by, 'pk', None) else None,
        )
        log_action(user=created_by, action='patient_create', object_type='patient', object_id=patient.id,
                   detail={'uhid': uhid, 'source': registration_source})
    logger.info('Registered patient %s at hospital %s', uhid, hospital.id)
    return patient


def serialize_patient(patient: Patient, viewer=None) -> dict:
    data = {
        'id': patient.id,
        'uhid': patient.uhid,
        'name': patient.name,
        'phone': patient.phone,
        'dob': patient.dob.isoformat() if patient.dob else None,
        'gender': patient.gender,
        'hospitalId': patient.hospital_id,
        'registrationMode': patient.registration_mode,
        'registrationSource': patient.registration_source,
        'referralPersonName': patient.referral_person_name,
        'createdAt': patient.created_at.isoformat() if patient.created_at else None,
    }
    if getattr(viewer, 'role', '') == User.ROLE_DOCTOR:
        return mask_patient_for_doctor(data)
    return data
