from rest_framework.throttling import AnonRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class PublicBookingRateThrottle(AnonRateThrottle):
    scope = 'public_booking'
