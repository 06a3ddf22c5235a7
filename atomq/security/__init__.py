"""
Security features for the API: login lockout, response headers and
security event logging.
"""

from .account_lockout import AccountLockout, LockoutStatus, get_account_lockout
from .security_headers import SecurityHeaders
from .security_logger import SecurityLogger
from .security_init import init_security

__all__ = [
    'AccountLockout',
    'LockoutStatus',
    'get_account_lockout',
    'SecurityHeaders',
    'SecurityLogger',
    'init_security',
]
