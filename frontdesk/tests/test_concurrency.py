"""
Allocation and booking under parallel requests.

These run real transactions from worker threads, each on its own
database connection, so they need ``transaction=True``.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone

import pytest
from django.db import connection

from frontdesk.exceptions import SlotConflict
from frontdesk.models import Appointment, Hospital, UhidSequence, User
from frontdesk.services.appointments import book_appointment
from frontdesk.services.identifiers import generate_uhid
from frontdesk.services.patients import register_patient

pytestmark = pytest.mark.django_db(transaction=True)

NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)
SLOT = datetime(2030, 1, 7, 9, 0, tzinfo=timezone.utc)
WORKERS = 8


def run_together(fn, count):
    """Call ``fn`` from ``count`` threads released at the same moment.

    Returns one ``(result, error)`` pair per call.
    """
    barrier = threading.Barrier(count)

    def worker():
        try:
            barrier.wait()
            return fn(), None
        except Exception as exc:
            return None, exc
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=count) as pool:
        futures = [pool.submit(worker) for _ in range(count)]
        return [f.result() for f in futures]


def test_parallel_uhids_are_distinct_and_contiguous():
    outcomes = run_together(lambda: generate_uhid('Avalon General', today=date(2025, 1, 15)), WORKERS)

    assert [err for _, err in outcomes if err] == []
    uhids = sorted(uhid for uhid, _ in outcomes)
    assert uhids == [f'TRAV25{n:03d}' for n in range(1, WORKERS + 1)]
    assert UhidSequence.objects.get(year_code='25').sequence == WORKERS


def test_parallel_bookings_for_one_slot_admit_exactly_one():
    hospital = Hospital.objects.create(name='Avalon General')
    doctor = User.objects.create_user(username='doc', password='P@ssw0rd1', role=User.ROLE_DOCTOR,
                                      hospital=hospital)
    patient = register_patient(hospital, name='Asha', phone='9876543210')

    outcomes = run_together(
        lambda: book_appointment(patient=patient, doctor=doctor, scheduled_at=SLOT, now=NOW), 2,
    )

    booked = [appt for appt, _ in outcomes if appt]
    errors = [err for _, err in outcomes if err]
    assert len(booked) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], SlotConflict)
    assert Appointment.objects.filter(doctor=doctor).count() == 1
    assert booked[0].visit_id == f'OPD{patient.uhid[:-3]}1'
