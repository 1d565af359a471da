"""Phone number masking for staff who should not see full contact details."""
from __future__ import annotations

import re
from typing import Optional


def mask_mobile_number(number: Optional[str]) -> Optional[str]:
    """Mask the middle digits, e.g. ``9876543289`` -> ``9876****89``.

    Numbers with fewer than four digits are returned unchanged; numbers
    of four or five digits keep only the first and last two.
    """
    if not number:
        return None
    digits = re.sub(r'\D', '', number)
    if len(digits) < 4:
        return number
    if len(digits) >= 6:
        return digits[:4] + '*' * (len(digits) - 6) + digits[-2:]
    return digits[:2] + '*' * (len(digits) - 4) + digits[-2:]


def mask_patient_for_doctor(patient: dict) -> dict:
    if not patient:
        return patient
    return {**patient, 'phone': mask_mobile_number(patient.get('phone'))}
