from datetime import date, datetime, timezone

import pytest

from frontdesk.exceptions import InvalidInput, NoShiftConfigured
from frontdesk.models import Appointment, Hospital, Patient, Shift, User
from frontdesk.services.availability import available_slot_times, get_available_slots, parse_query_date

pytestmark = pytest.mark.django_db

MONDAY = '2025-01-06'


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def hospital():
    return Hospital.objects.create(name='Avalon General')


@pytest.fixture
def doctor(hospital):
    return User.objects.create_user(username='doc', password='P@ssw0rd1', role=User.ROLE_DOCTOR, hospital=hospital)


@pytest.fixture
def patient(hospital):
    return Patient.objects.create(hospital=hospital, uhid='TRAV25001', name='Asha', phone='9876543210')


def add_shift(doctor, start, end, day='MONDAY'):
    return Shift.objects.create(staff=doctor, hospital=doctor.hospital, day=day, start_time=start, end_time=end)


def book(patient, doctor, when, status=Appointment.STATUS_SCHEDULED):
    return Appointment.objects.create(patient=patient, doctor=doctor, hospital=doctor.hospital,
                                      scheduled_at=when, status=status)


def test_half_hour_shift_gives_two_slots(doctor):
    add_shift(doctor, '09:00', '09:30')
    assert get_available_slots(doctor.id, MONDAY) == ['09:00', '09:15']


def test_booked_slot_is_not_offered(doctor, patient):
    add_shift(doctor, '09:00', '09:30')
    book(patient, doctor, utc(2025, 1, 6, 9, 0))
    assert get_available_slots(doctor.id, MONDAY) == ['09:15']


def test_cancelled_appointment_frees_slot(doctor, patient):
    add_shift(doctor, '09:00', '09:30')
    book(patient, doctor, utc(2025, 1, 6, 9, 0), status=Appointment.STATUS_CANCELLED)
    assert get_available_slots(doctor.id, MONDAY) == ['09:00', '09:15']


def test_conflict_window_is_half_a_slot_inclusive(doctor, patient):
    add_shift(doctor, '09:00', '09:45')
    # 7 minutes after 09:00, 8 minutes before 09:15
    book(patient, doctor, utc(2025, 1, 6, 9, 7))
    assert get_available_slots(doctor.id, MONDAY) == ['09:15', '09:30']

    # exactly 7.5 minutes from both 09:15 and 09:30
    book(patient, doctor, utc(2025, 1, 6, 9, 22, 30))
    assert get_available_slots(doctor.id, MONDAY) == []


def test_other_doctors_appointments_are_ignored(hospital, doctor, patient):
    other = User.objects.create_user(username='doc2', password='P@ssw0rd1', role=User.ROLE_DOCTOR, hospital=hospital)
    add_shift(doctor, '09:00', '09:30')
    book(patient, other, utc(2025, 1, 6, 9, 0))
    assert get_available_slots(doctor.id, MONDAY) == ['09:00', '09:15']


def test_no_shift_on_weekday_raises(doctor):
    add_shift(doctor, '09:00', '12:00', day='TUESDAY')
    with pytest.raises(NoShiftConfigured) as exc:
        get_available_slots(doctor.id, MONDAY)
    assert exc.value.status_code == 400
    assert 'No shift found' in str(exc.value.detail)


def test_overnight_shift_runs_into_next_day(doctor):
    add_shift(doctor, '22:00', '02:00')
    slots = available_slot_times(doctor.id, MONDAY)
    assert len(slots) == 16
    assert slots[0] == utc(2025, 1, 6, 22, 0)
    assert slots[-1] == utc(2025, 1, 7, 1, 45)
    assert slots == sorted(slots)


def test_overnight_shift_sees_next_day_bookings(doctor, patient):
    add_shift(doctor, '22:00', '02:00')
    book(patient, doctor, utc(2025, 1, 7, 1, 0))
    slots = get_available_slots(doctor.id, MONDAY)
    assert '01:00' not in slots
    assert len(slots) == 15


def test_overlapping_shifts_do_not_repeat_slots(doctor):
    add_shift(doctor, '09:15', '09:45')
    add_shift(doctor, '09:00', '09:30')
    assert get_available_slots(doctor.id, MONDAY) == ['09:00', '09:15', '09:30']


def test_separate_shifts_are_listed_in_start_order(doctor):
    add_shift(doctor, '17:00', '17:30')
    add_shift(doctor, '09:00', '09:15')
    assert get_available_slots(doctor.id, MONDAY) == ['09:00', '17:00', '17:15']


def test_accepts_iso_datetime_and_date_objects(doctor):
    add_shift(doctor, '09:00', '09:15')
    assert get_available_slots(doctor.id, '2025-01-06T18:30:00Z') == ['09:00']
    assert get_available_slots(doctor.id, date(2025, 1, 6)) == ['09:00']


@pytest.mark.parametrize('value', ['', 'tomorrow', '2025-13-01', '06/01/2025', None])
def test_invalid_date_is_rejected(value):
    with pytest.raises(InvalidInput) as exc:
        parse_query_date(value)
    assert 'YYYY-MM-DD' in str(exc.value.detail)


def test_datetime_with_offset_uses_utc_date():
    assert parse_query_date('2025-01-07T02:00:00+05:30') == date(2025, 1, 6)
