"""Liveness check: database, cache and this year's UHID counter headroom."""
from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import JsonResponse

from frontdesk.models import UhidSequence
from frontdesk.services.identifiers import year_code


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        code = year_code()
        used = UhidSequence.objects.filter(year_code=code).values_list('sequence', flat=True).first() or 0
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=503)

    cache.set('healthz', 1, 5)
    return JsonResponse({
        'ok': True,
        'db': bool(row and row[0] == 1),
        'cache': cache.get('healthz') == 1,
        'uhid': {'year': code, 'issued': used, 'remaining': max(settings.UHID_SEQUENCE_MAX - used, 0)},
    })
