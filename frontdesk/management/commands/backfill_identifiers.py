"""
Assign UHIDs and Visit IDs to rows created before identifiers existed.

Patients get a UHID from their hospital's name; appointments then get
Visit IDs numbered by their position among the patient's visits of the
same type (oldest first).  Rows that already carry an identifier are
left alone, so the command can be re-run.
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from frontdesk.exceptions import AppError
from frontdesk.models import Appointment, Patient
from frontdesk.services.identifiers import format_visit_id, generate_uhid


class Command(BaseCommand):
    help = "Backfill missing patient UHIDs and appointment Visit IDs (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='Report what would change without writing.')

    def handle(self, *args, **opts):
        dry_run = opts['dry_run']
        uhids, uhid_failures = self.backfill_uhids(dry_run)
        visits, visit_skipped = self.backfill_visit_ids(dry_run)
        self.stdout.write(self.style.SUCCESS(
            f"UHIDs assigned: {uhids}, failed: {uhid_failures}; "
            f"Visit IDs assigned: {visits}, skipped: {visit_skipped}"
            + (" (dry run)" if dry_run else "")
        ))

    def backfill_uhids(self, dry_run):
        assigned = failed = 0
        for patient in Patient.objects.filter(uhid__isnull=True).select_related('hospital').order_by('created_at', 'id'):
            if dry_run:
                assigned += 1
                continue
            try:
                with transaction.atomic():
                    patient.uhid = generate_uhid(patient.hospital.name, today=timezone.localdate(patient.created_at))
                    patient.save(update_fields=['uhid'])
            except AppError as exc:
                failed += 1
                self.stderr.write(self.style.ERROR(f"patient {patient.id}: {exc.detail}"))
                continue
            assigned += 1
        return assigned, failed

    def backfill_visit_ids(self, dry_run):
        assigned = skipped = 0
        pending = (
            Appointment.objects.filter(visit_id__isnull=True, patient__uhid__isnull=False)
            .values_list('patient_id', 'visit_type').distinct()
        )
        for patient_id, visit_type in pending:
            visits = list(
                Appointment.objects.filter(patient_id=patient_id, visit_type=visit_type)
                .select_related('patient').order_by('scheduled_at', 'id')
            )
            taken = {a.visit_id for a in visits if a.visit_id}
            for number, appointment in enumerate(visits, start=1):
                if appointment.visit_id:
                    continue
                visit_id = format_visit_id(appointment.patient.uhid, visit_type, number)
                if visit_id in taken:
                    skipped += 1
                    self.stderr.write(self.style.WARNING(
                        f"appointment {appointment.id}: {visit_id} already used by this patient"))
                    continue
                taken.add(visit_id)
                if not dry_run:
                    appointment.visit_id = visit_id
                    appointment.save(update_fields=['visit_id'])
                assigned += 1
        return assigned, skipped
