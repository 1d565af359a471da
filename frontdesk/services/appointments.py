"""
Appointment booking, status changes and rescheduling.

Booking takes row locks on the doctor and the patient before checking
for conflicts and counting visits, so two bookings for the same doctor
or the same patient run one after the other and cannot both pass the
conflict check or compute the same Visit ID.  The unique (patient, visit_id)
constraint backs this up on databases without row locks.

Status changes and moves lock the doctor row first as well, so a moved
visit is checked against bookings under the same lock.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import IntegrityError, transaction
from django.utils import timezone

from frontdesk.exceptions import InvalidInput, NotFound, SlotConflict
from frontdesk.models import Appointment, Hospital, Patient, User
from frontdesk.services.audit import log_action
from frontdesk.services.availability import find_conflicting_appointment
from frontdesk.services.identifiers import generate_visit_id
from frontdesk.services.patients import register_patient

logger = logging.getLogger(__name__)


def slots_group(doctor_id) -> str:
    return f"doctor.{doctor_id}.slots"


def publish_slots_changed(doctor_id, scheduled_at: datetime) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(slots_group(doctor_id), {
        "type": "slots.changed",
        "doctorId": doctor_id,
        "date": scheduled_at.astimezone(dt_timezone.utc).date().isoformat(),
        "scheduledAt": scheduled_at.isoformat(),
    })


def book_appointment(*, patient: Patient, doctor: User, scheduled_at: datetime,
                     visit_type: str = Appointment.VISIT_OPD,
                     status: str = Appointment.STATUS_SCHEDULED,
                     created_by: Optional[User] = None, now: Optional[datetime] = None) -> Appointment:
    now = now or timezone.now()
    if timezone.is_naive(scheduled_at):
        scheduled_at = timezone.make_aware(scheduled_at, dt_timezone.utc)
    if scheduled_at < now:
        logger.warning('Rejected booking in the past for doctor %s at %s', doctor.id, scheduled_at)
        raise InvalidInput('Cannot book an appointment in the past')
    if doctor.role != User.ROLE_DOCTOR:
        raise InvalidInput('Appointments can only be booked with a doctor')

    with transaction.atomic():
        # Lock order: doctor, then patient
        User.objects.select_for_update().filter(pk=doctor.pk).first()
        Patient.objects.select_for_update().filter(pk=patient.pk).first()

        conflict = find_conflicting_appointment(doctor.id, scheduled_at)
        if conflict:
            logger.warning('Booking conflict for doctor %s at %s (existing %s)',
                           doctor.id, scheduled_at, conflict.visit_id or conflict.pk)
            raise SlotConflict()

        visit_id = generate_visit_id(patient.uhid, visit_type)
        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(
                    patient=patient,
                    doctor=doctor,
                    hospital_id=doctor.hospital_id or patient.hospital_id,
                    visit_type=visit_type,
                    visit_id=visit_id,
                    scheduled_at=scheduled_at,
                    status=status,
                    created_by=created_by if getattr(created_by, 'pk', None) else None,
                )
        except IntegrityError as exc:
            logger.warning('Visit ID %s already taken', visit_id)
            raise SlotConflict(f'Visit ID {visit_id} was already issued to this patient, please retry') from exc

        log_action(user=created_by, action='appointment_create', object_type='appointment',
                   object_id=appointment.id, detail={'visitId': visit_id, 'doctorId': doctor.id})
        transaction.on_commit(lambda: publish_slots_changed(doctor.id, scheduled_at))

    logger.info('Booked %s with doctor %s at %s', visit_id, doctor.id, scheduled_at.isoformat())
    return appointment


def _lock_appointment(appointment: Appointment) -> Appointment:
    # Lock order matches booking: doctor, then the appointment row
    User.objects.select_for_update().filter(pk=appointment.doctor_id).first()
    locked = Appointment.objects.select_for_update().filter(pk=appointment.pk).first()
    if not locked:
        raise NotFound('Appointment not found')
    return locked


def update_appointment_status(appointment: Appointment, status: str, *,
                              changed_by: Optional[User] = None) -> Appointment:
    """Move an appointment to ``status``.

    Cancelling frees the slot.  Reviving a cancelled appointment re-checks
    the slot, since another patient may have been booked into it meanwhile.
    """
    if status not in dict(Appointment.STATUS_CHOICES):
        raise InvalidInput(f'Unknown appointment status {status}')

    with transaction.atomic():
        locked = _lock_appointment(appointment)
        previous = locked.status
        if previous == status:
            return locked
        if previous == Appointment.STATUS_CANCELLED:
            conflict = find_conflicting_appointment(locked.doctor_id, locked.scheduled_at, exclude_id=locked.pk)
            if conflict:
                logger.warning('Cannot revive %s, slot taken by %s', locked.pk, conflict.visit_id or conflict.pk)
                raise SlotConflict()

        locked.status = status
        locked.save(update_fields=['status'])
        log_action(user=changed_by, action='appointment_status', object_type='appointment',
                   object_id=locked.id, detail={'from': previous, 'to': status})
        if Appointment.STATUS_CANCELLED in (previous, status):
            doctor_id, scheduled_at = locked.doctor_id, locked.scheduled_at
            transaction.on_commit(lambda: publish_slots_changed(doctor_id, scheduled_at))

    logger.info('Appointment %s status %s -> %s', locked.pk, previous, status)
    return locked


def reschedule_appointment(appointment: Appointment, scheduled_at: datetime, *,
                           changed_by: Optional[User] = None, now: Optional[datetime] = None) -> Appointment:
    now = now or timezone.now()
    if timezone.is_naive(scheduled_at):
        scheduled_at = timezone.make_aware(scheduled_at, dt_timezone.utc)
    if scheduled_at < now:
        raise InvalidInput('Cannot move an appointment into the past')

    with transaction.atomic():
        locked = _lock_appointment(appointment)
        if locked.status == Appointment.STATUS_CANCELLED:
            raise InvalidInput('Cancelled appointments cannot be rescheduled')

        conflict = find_conflicting_appointment(locked.doctor_id, scheduled_at, exclude_id=locked.pk)
        if conflict:
            logger.warning('Reschedule conflict for doctor %s at %s (existing %s)',
                           locked.doctor_id, scheduled_at, conflict.visit_id or conflict.pk)
            raise SlotConflict()

        previous = locked.scheduled_at
        locked.scheduled_at = scheduled_at
        locked.save(update_fields=['scheduled_at'])
        log_action(user=changed_by, action='appointment_reschedule', object_type='appointment',
                   object_id=locked.id, detail={'from': previous.isoformat(), 'to': scheduled_at.isoformat()})

        doctor_id = locked.doctor_id

        def _publish():
            publish_slots_changed(doctor_id, previous)
            publish_slots_changed(doctor_id, scheduled_at)

        transaction.on_commit(_publish)

    logger.info('Moved appointment %s from %s to %s', locked.pk, previous.isoformat(), scheduled_at.isoformat())
    return locked


def book_public_appointment(*, name, phone, hospital_id, doctor_id, scheduled_at, dob=None, gender='',
                            source='WEBSITE', referral_person_name=None, now=None) -> Appointment:
    """Book an OPD visit from the public site, registering the caller if new.

    Patients are matched by phone number within the hospital.
    """
    hospital = Hospital.objects.filter(id=hospital_id).first()
    if not hospital:
        raise NotFound('Hospital not found')
    doctor = User.objects.filter(id=doctor_id, role=User.ROLE_DOCTOR).first()
    if not doctor:
        raise NotFound('Doctor not found')
    if doctor.hospital_id != hospital.id:
        raise InvalidInput('Doctor does not belong to the selected hospital')

    with transaction.atomic():
        patient = Patient.objects.filter(phone=phone, hospital=hospital).order_by('id').first()
        if not patient:
            patient = register_patient(
                hospital,
                name=name,
                phone=phone,
                dob=dob,
                gender=gender,
                registration_mode='OPD',
                registration_source=source,
                registration_source_details=f'Public booking from {source}',
                referral_person_name=referral_person_name,
            )
        return book_appointment(patient=patient, doctor=doctor, scheduled_at=scheduled_at,
                                visit_type=Appointment.VISIT_OPD, now=now)


def serialize_appointment(appointment: Appointment) -> dict:
    return {
        'id': appointment.id,
        'visitId': appointment.visit_id,
        'visitType': appointment.visit_type,
        'patientId': appointment.patient_id,
        'patientName': appointment.patient.name,
        'uhid': appointment.patient.uhid,
        'doctorId': appointment.doctor_id,
        'doctorName': appointment.doctor.get_full_name() or appointment.doctor.username,
        'doctorSpecialisation': appointment.doctor.specialisation,
        'hospitalId': appointment.hospital_id,
        'hospitalName': appointment.hospital.name,
        'scheduledAt': appointment.scheduled_at.isoformat(),
        'status': appointment.status,
    }
