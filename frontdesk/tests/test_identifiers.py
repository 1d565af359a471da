from datetime import date, datetime, timezone

import pytest
from django.db import DatabaseError

from frontdesk.exceptions import IdentifierGenerationError, InvalidInput, SequenceExhausted
from frontdesk.models import Appointment, Hospital, Patient, UhidSequence, User
from frontdesk.services import identifiers
from frontdesk.services.identifiers import (
    extract_uhid_from_visit_id,
    generate_uhid,
    generate_visit_id,
    validate_uhid,
    validate_visit_id,
    year_code,
)
from frontdesk.services.masking import mask_mobile_number, mask_patient_for_doctor

pytestmark = pytest.mark.django_db

JAN_2025 = date(2025, 1, 15)


@pytest.fixture
def hospital():
    return Hospital.objects.create(name='Avalon General')


@pytest.fixture
def doctor(hospital):
    return User.objects.create_user(username='doc', password='P@ssw0rd1', role=User.ROLE_DOCTOR, hospital=hospital)


def make_patient(hospital, uhid, phone='9876543210'):
    return Patient.objects.create(hospital=hospital, uhid=uhid, name='Asha', phone=phone)


def add_visit(patient, doctor, visit_type, hour):
    return Appointment.objects.create(
        patient=patient, doctor=doctor, hospital=patient.hospital, visit_type=visit_type,
        scheduled_at=datetime(2030, 1, 7, hour, tzinfo=timezone.utc),
    )


def test_year_code_is_last_two_digits():
    assert year_code(date(2025, 6, 1)) == '25'
    assert year_code(date(2031, 1, 1)) == '31'


def test_consecutive_uhids_increase_by_one():
    first = generate_uhid('Avalon General', today=JAN_2025)
    second = generate_uhid('avalon general', today=JAN_2025)
    assert first == 'TRAV25001'
    assert second == 'TRAV25002'
    assert UhidSequence.objects.get(year_code='25').sequence == 2


def test_sequences_are_per_year():
    assert generate_uhid('Avalon', today=JAN_2025) == 'TRAV25001'
    assert generate_uhid('Avalon', today=date(2026, 1, 1)) == 'TRAV26001'
    assert generate_uhid('Beacon', today=JAN_2025) == 'TRBE25002'


def test_generated_uhids_validate():
    for name in ('Avalon', 'City Care', 'mercy'):
        assert validate_uhid(generate_uhid(name, today=JAN_2025))


def test_sequence_stops_at_limit_without_consuming(settings):
    settings.UHID_SEQUENCE_MAX = 2
    generate_uhid('Avalon', today=JAN_2025)
    generate_uhid('Avalon', today=JAN_2025)
    with pytest.raises(SequenceExhausted):
        generate_uhid('Avalon', today=JAN_2025)
    assert UhidSequence.objects.get(year_code='25').sequence == 2


@pytest.mark.parametrize('name', ['', ' ', 'A', None])
def test_short_hospital_name_is_rejected(name):
    with pytest.raises(InvalidInput):
        generate_uhid(name, today=JAN_2025)


def test_non_letter_prefix_is_issued_but_does_not_validate():
    uhid = generate_uhid('1st Care', today=JAN_2025)
    assert uhid == 'TR1S25001'
    assert not validate_uhid(uhid)


def test_store_failure_is_wrapped(monkeypatch):
    def broken(code, **kwargs):
        raise DatabaseError('connection lost')

    monkeypatch.setattr(identifiers, 'next_sequence', broken)
    with pytest.raises(IdentifierGenerationError) as exc:
        generate_uhid('Avalon', today=JAN_2025)
    assert 'Failed to generate UHID' in str(exc.value.detail)


@pytest.mark.parametrize('value,ok', [
    ('TRAV25001', True),
    ('TRAV25999', True),
    ('TRav25001', False),
    ('TRAV2501', False),
    ('TRAV250001', False),
    ('XXAV25001', False),
    ('TRAV25001\n', False),
    ('TRAV25٠٠١', False),
    (None, False),
    (25001, False),
])
def test_validate_uhid(value, ok):
    assert validate_uhid(value) is ok


@pytest.mark.parametrize('value,ok', [
    ('OPDTRAV251', True),
    ('IPDTRAV2512', True),
    ('OPDTRAV25', False),
    ('ERXTRAV251', False),
    ('opdTRAV251', False),
    ('', False),
])
def test_validate_visit_id(value, ok):
    assert validate_visit_id(value) is ok


def test_visit_sequence_counts_only_same_type(hospital, doctor):
    patient = make_patient(hospital, 'TRAV25001')
    assert generate_visit_id('TRAV25001', 'OPD') == 'OPDTRAV251'

    add_visit(patient, doctor, 'OPD', 9)
    assert generate_visit_id('TRAV25001', 'OPD') == 'OPDTRAV252'

    add_visit(patient, doctor, 'IPD', 10)
    assert generate_visit_id('TRAV25001', 'OPD') == 'OPDTRAV252'
    assert generate_visit_id('TRAV25001', 'IPD') == 'IPDTRAV252'


def test_visit_sequence_ignores_other_patients(hospital, doctor):
    other = make_patient(hospital, 'TRAV25002', phone='9000000000')
    add_visit(other, doctor, 'OPD', 9)
    assert generate_visit_id('TRAV25001', 'OPD') == 'OPDTRAV251'


def test_visit_id_needs_uhid_and_known_type():
    with pytest.raises(InvalidInput) as exc:
        generate_visit_id('', 'OPD')
    assert 'UHID is required' in str(exc.value.detail)
    with pytest.raises(InvalidInput):
        generate_visit_id('TRAV25001', 'ER')


def test_visit_count_failure_is_wrapped(monkeypatch):
    def broken(*args, **kwargs):
        raise DatabaseError('timeout')

    monkeypatch.setattr(Appointment.objects, 'filter', broken)
    with pytest.raises(IdentifierGenerationError):
        generate_visit_id('TRAV25001', 'OPD')


@pytest.mark.parametrize('value', ['', 'OPD', 'TRAV25001', 'OPDTRAV25', 'XYZTRAV251'])
def test_extract_returns_none_for_invalid(value):
    assert extract_uhid_from_visit_id(value) is None


@pytest.mark.parametrize('visit_id', ['OPDTRAV251', 'IPDTRAV2512', 'OPDTRZZ99123'])
def test_extract_recovers_hospital_year_scope(visit_id):
    uhid = extract_uhid_from_visit_id(visit_id)
    assert validate_uhid(uhid)
    assert uhid == visit_id[3:9] + '001'


@pytest.mark.parametrize('number,masked', [
    ('9876543289', '9876****89'),
    ('+91 98765 43289', '9198******89'),
    ('12345', '12*45'),
    ('1234', '1234'),
    ('123', '123'),
    ('', None),
    (None, None),
])
def test_mask_mobile_number(number, masked):
    assert mask_mobile_number(number) == masked


def test_mask_patient_for_doctor_keeps_other_fields():
    data = mask_patient_for_doctor({'name': 'Asha', 'phone': '9876543289'})
    assert data == {'name': 'Asha', 'phone': '9876****89'}
