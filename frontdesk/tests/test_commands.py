from datetime import datetime, timezone
from io import StringIO

import pytest
from django.core.management import call_command
from django.test import override_settings

from frontdesk.models import Appointment, Hospital, Patient, Shift, User
from frontdesk.services.identifiers import validate_uhid, validate_visit_id

pytestmark = pytest.mark.django_db


def run(*args):
    out, err = StringIO(), StringIO()
    call_command(*args, stdout=out, stderr=err)
    return out.getvalue(), err.getvalue()


def legacy_rows():
    hospital = Hospital.objects.create(name='Avalon General')
    doctor = User.objects.create_user(username='doc', password='P@ssw0rd1', role=User.ROLE_DOCTOR, hospital=hospital)
    patient = Patient.objects.create(hospital=hospital, name='Asha', phone='9876543210')
    for hour in (11, 9):
        Appointment.objects.create(patient=patient, doctor=doctor, hospital=hospital,
                                   scheduled_at=datetime(2030, 1, 7, hour, tzinfo=timezone.utc))
    Appointment.objects.create(patient=patient, doctor=doctor, hospital=hospital, visit_type='IPD',
                               scheduled_at=datetime(2030, 1, 8, 9, tzinfo=timezone.utc))
    return patient


def test_backfill_assigns_uhids_and_visit_ids():
    patient = legacy_rows()
    out, _ = run('backfill_identifiers')
    patient.refresh_from_db()
    assert validate_uhid(patient.uhid)
    prefix = patient.uhid[:-3]
    opd = list(patient.appointments.filter(visit_type='OPD').order_by('scheduled_at').values_list('visit_id', flat=True))
    assert opd == [f'OPD{prefix}1', f'OPD{prefix}2']
    assert patient.appointments.get(visit_type='IPD').visit_id == f'IPD{prefix}1'
    assert all(validate_visit_id(v) for v in patient.appointments.values_list('visit_id', flat=True))
    assert 'UHIDs assigned: 1' in out
    assert 'Visit IDs assigned: 3' in out


def test_backfill_is_idempotent():
    legacy_rows()
    run('backfill_identifiers')
    before = sorted(Appointment.objects.values_list('visit_id', flat=True))
    out, _ = run('backfill_identifiers')
    assert sorted(Appointment.objects.values_list('visit_id', flat=True)) == before
    assert 'UHIDs assigned: 0' in out
    assert 'Visit IDs assigned: 0' in out


def test_backfill_dry_run_writes_nothing():
    patient = legacy_rows()
    out, _ = run('backfill_identifiers', '--dry-run')
    patient.refresh_from_db()
    assert patient.uhid is None
    assert '(dry run)' in out


def test_backfill_reports_short_hospital_names():
    hospital = Hospital.objects.create(name='X')
    Patient.objects.create(hospital=hospital, name='Asha', phone='9876543210')
    out, err = run('backfill_identifiers')
    assert 'failed: 1' in out
    assert 'at least two characters' in err


def test_ensure_demo_users_is_idempotent():
    run('ensure_demo_users')
    run('ensure_demo_users')
    assert User.objects.filter(username__in=['superadmin', 'hospadmin', 'reception1', 'doctor1']).count() == 4
    doctor = User.objects.get(username='doctor1')
    assert doctor.role == User.ROLE_DOCTOR
    assert doctor.check_password('123456')
    assert Shift.objects.filter(staff=doctor).count() == 10
    assert User.objects.get(username='superadmin').hospital is None


@override_settings(TIME_ZONE='Asia/Kolkata')
def test_backfill_year_code_follows_local_date():
    patient = legacy_rows()
    # 20:00 UTC on New Year's Eve is already 1 January in Kolkata
    Patient.objects.filter(id=patient.id).update(created_at=datetime(2025, 12, 31, 20, 0, tzinfo=timezone.utc))
    run('backfill_identifiers')
    patient.refresh_from_db()
    assert patient.uhid == 'TRAV26001'
