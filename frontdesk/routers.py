"""
URL mappings for the front desk API.

Trailing slashes are omitted on every API path.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view
from .views import health
from .views.appointments import create_appointment, appointment_by_visit, appointment_status, appointment_schedule
from .views.doctors import doctor_availability, hospital_doctors
from .views.patients import list_patients, patient_register, patient_detail
from .views.public import public_doctors, public_slots, public_book, public_appointment_status
from .views.shifts import shifts, shift_detail, staff_shifts

urlpatterns = [
    # Auth
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),

    # Doctors
    path('api/doctors', hospital_doctors, name='hospital_doctors'),
    path('api/doctors/availability', doctor_availability, name='doctor_availability'),

    # Shifts
    path('api/shifts', shifts, name='shifts'),
    path('api/shifts/<int:pk>', shift_detail, name='shift_detail'),
    path('api/shifts/staff/<int:staff_id>', staff_shifts, name='staff_shifts'),

    # Patients
    path('api/patients', list_patients, name='list_patients'),
    path('api/patients/register', patient_register, name='patient_register'),
    path('api/patients/<int:pk>', patient_detail, name='patient_detail'),

    # Appointments
    path('api/appointments', create_appointment, name='create_appointment'),
    path('api/appointments/<int:pk>/status', appointment_status, name='appointment_status'),
    path('api/appointments/<int:pk>/schedule', appointment_schedule, name='appointment_schedule'),
    path('api/appointments/<str:visit_id>', appointment_by_visit, name='appointment_by_visit'),

    # Public booking
    path('api/public/doctors', public_doctors, name='public_doctors'),
    path('api/public/slots', public_slots, name='public_slots'),
    path('api/public/appointments', public_book, name='public_book'),
    path('api/public/appointments/<str:visit_id>', public_appointment_status, name='public_appointment_status'),

    path('healthz', health.healthz, name='healthz'),
    path('', include('django_prometheus.urls')),
]
