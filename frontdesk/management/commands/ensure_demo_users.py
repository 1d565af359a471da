from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from frontdesk.models import Hospital, Shift, User

DEMO_HOSPITAL = "Avalon General Hospital"

DEMO_USERS = [
    ("superadmin", User.ROLE_SUPER_ADMIN, ""),
    ("hospadmin", User.ROLE_HOSPITAL_ADMIN, ""),
    ("reception1", User.ROLE_RECEPTIONIST, ""),
    ("doctor1", User.ROLE_DOCTOR, "General Medicine"),
]

DEMO_SHIFTS = [("Morning OPD", "09:00", "13:00"), ("Evening OPD", "17:00", "20:00")]


class Command(BaseCommand):
    help = "Ensure a demo hospital, staff (password=123456) and doctor shifts exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="123456")

    def handle(self, *args, **opts):
        hospital, _ = Hospital.objects.get_or_create(name=DEMO_HOSPITAL)
        password = make_password(opts["password"])
        for username, role, specialisation in DEMO_USERS:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "role": role,
                    "password": password,
                    "is_active": True,
                    "hospital": None if role == User.ROLE_SUPER_ADMIN else hospital,
                    "specialisation": specialisation,
                },
            )
            if not created:
                # Reset password, role and activation
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))

        doctor = User.objects.get(username="doctor1")
        for day, _ in Shift.WEEKDAY_CHOICES[:5]:
            for name, start, end in DEMO_SHIFTS:
                Shift.objects.get_or_create(
                    staff=doctor, hospital=hospital, day=day, start_time=start, end_time=end,
                    defaults={"shift_name": name},
                )
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
