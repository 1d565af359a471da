"""
Patient and visit identifiers.

A UHID is ``TR`` + the first two letters of the hospital name + the
two-digit year code + a zero-padded 3-digit sequence, e.g. ``TRAV25001``.
The sequence comes from a per-year :class:`UhidSequence` row that is only
ever advanced with a single ``UPDATE ... SET sequence = sequence + 1`` so
concurrent registrations never receive the same number.

A Visit ID is ``OPD``/``IPD`` + the UHID without its sequence + the
number of that patient's visits of the same type so far plus one, e.g.
``OPDTRAV251``.  The count is not reserved; callers that need a unique
Visit ID under concurrency must serialise on the patient (see
:func:`frontdesk.services.appointments.book_appointment`).
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from frontdesk.exceptions import IdentifierGenerationError, InvalidInput, SequenceExhausted
from frontdesk.models import Appointment, UhidSequence

logger = logging.getLogger(__name__)

UHID_RE = re.compile(r'TR[A-Z]{2}\d{2}\d{3}', re.ASCII)
VISIT_ID_RE = re.compile(r'(OPD|IPD)(TR[A-Z]{2}\d{2})(\d+)', re.ASCII)
VISIT_TYPES = (Appointment.VISIT_OPD, Appointment.VISIT_IPD)
SEQUENCE_WIDTH = 3


def year_code(today: Optional[date] = None) -> str:
    """Two-digit year code, e.g. ``'25'`` for 2025."""
    today = today or timezone.localdate()
    return str(today.year)[2:]


def next_sequence(code: str, *, limit: Optional[int] = None) -> int:
    """Advance and return the UHID counter for ``code``.

    The row is created at 0 on first use and bumped by one in the same
    transaction; the UPDATE holds the row lock until commit.  Raising
    inside the block rolls the increment back, so a refused number is
    never consumed.
    """
    limit = settings.UHID_SEQUENCE_MAX if limit is None else limit
    with transaction.atomic():
        UhidSequence.objects.get_or_create(year_code=code, defaults={'sequence': 0})
        UhidSequence.objects.filter(year_code=code).update(sequence=F('sequence') + 1)
        sequence = UhidSequence.objects.values_list('sequence', flat=True).get(year_code=code)
        if sequence > limit:
            logger.error('UHID sequence for year %s exhausted (limit %s)', code, limit)
            raise SequenceExhausted(f'UHID sequence for year {code} exhausted at {limit}')
    return sequence


def generate_uhid(hospital_name: str, *, today: Optional[date] = None) -> str:
    name = (hospital_name or '').strip()
    if len(name) < 2:
        raise InvalidInput('Hospital name needs at least two characters to derive a UHID')
    prefix = name[:2].upper()
    code = year_code(today)
    try:
        sequence = next_sequence(code)
    except DatabaseError as exc:
        logger.exception('UHID allocation failed for year %s', code)
        raise IdentifierGenerationError(f'Failed to generate UHID: {exc}') from exc

    uhid = f'TR{prefix}{code}{sequence:0{SEQUENCE_WIDTH}d}'
    if not validate_uhid(uhid):
        logger.warning('Issued UHID %s does not match the UHID format (hospital %r)', uhid, hospital_name)
    logger.info('Allocated UHID %s', uhid)
    return uhid


def generate_visit_id(uhid: str, visit_type: str) -> str:
    if not uhid:
        raise InvalidInput('UHID is required to generate Visit ID')
    if visit_type not in VISIT_TYPES:
        raise InvalidInput(f'Visit type must be one of {", ".join(VISIT_TYPES)}')

    try:
        visit_count = Appointment.objects.filter(patient__uhid=uhid, visit_type=visit_type).count()
    except DatabaseError as exc:
        logger.exception('Visit count failed for %s', uhid)
        raise IdentifierGenerationError(f'Failed to generate Visit ID: {exc}') from exc
    return format_visit_id(uhid, visit_type, visit_count + 1)


def format_visit_id(uhid: str, visit_type: str, number: int) -> str:
    """``OPDTRAV25`` + ``number`` for UHID ``TRAV25001``."""
    return f'{visit_type}{uhid[:-SEQUENCE_WIDTH]}{number}'


def validate_uhid(value) -> bool:
    return isinstance(value, str) and bool(UHID_RE.fullmatch(value))


def validate_visit_id(value) -> bool:
    return isinstance(value, str) and bool(VISIT_ID_RE.fullmatch(value))


def extract_uhid_from_visit_id(visit_id: str) -> Optional[str]:
    """Rebuild a UHID of the same hospital and year from a Visit ID.

    The patient's own sequence digits are not part of the Visit ID, so
    the result always ends in ``001``; use it for the hospital/year scope
    only, never to look up a specific patient.
    """
    if not validate_visit_id(visit_id):
        return None
    match = VISIT_ID_RE.fullmatch(visit_id)
    return f'{match.group(2)}001'
