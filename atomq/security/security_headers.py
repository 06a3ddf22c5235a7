"""
Response hardening headers.
"""
from flask import current_app

# Applied to every response unless a view already set them
DEFAULT_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    'Permissions-Policy': 'geolocation=(), microphone=(), camera=()',
}

HSTS_VALUE = 'max-age=31536000; includeSubDomains'


class SecurityHeaders:
    """Adds hardening headers to every response of an app."""

    @staticmethod
    def init_app(app):
        app.after_request(SecurityHeaders.apply)

    @staticmethod
    def apply(response):
        for name, value in DEFAULT_HEADERS.items():
            response.headers.setdefault(name, value)

        # API payloads are per-user; keep them out of shared caches
        if response.mimetype == 'application/json':
            response.cache_control.no_store = True

        if current_app.config.get('SESSION_COOKIE_SECURE', False):
            response.headers.setdefault('Strict-Transport-Security', HSTS_VALUE)
        return response
