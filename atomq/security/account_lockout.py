"""
Account lockout module.

Counts failed login attempts per email and locks the email out after
too many failures inside a short window. State lives in process memory:
it resets on restart and is not shared between server processes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import math
import threading
from typing import Callable

from flask import current_app


@dataclass
class LockoutStatus:
    allowed: bool
    remaining_attempts: int
    locked_until: datetime | None = None

    def minutes_remaining(self, now: datetime) -> int:
        if not self.locked_until:
            return 0
        return max(1, math.ceil((self.locked_until - now).total_seconds() / 60))


@dataclass
class _AttemptRecord:
    count: int
    last_attempt: datetime
    locked_until: datetime | None = None


class AccountLockout:
    """
    Account lockout manager.

    Tracks failed login attempts and locks accounts after threshold.
    """

    def __init__(self, max_attempts: int = 5, window_minutes: int = 5,
                 lockout_duration_minutes: int = 15,
                 clock: Callable[[], datetime] = datetime.utcnow):
        """
        Args:
            max_attempts: Failed attempts inside the window that trigger a lockout
            window_minutes: An attempt after this much quiet time starts a new count
            lockout_duration_minutes: Duration of lockout in minutes
            clock: Source of the current time
        """
        self._records: dict[str, _AttemptRecord] = {}
        self._lock = threading.Lock()
        self.clock = clock
        self.configure(max_attempts, window_minutes, lockout_duration_minutes)

    def configure(self, max_attempts: int, window_minutes: int, lockout_duration_minutes: int):
        self.max_attempts = max_attempts
        self.attempt_window = timedelta(minutes=window_minutes)
        self.lockout_duration = timedelta(minutes=lockout_duration_minutes)

    def check(self, identifier: str) -> LockoutStatus:
        """Report whether a login for identifier may proceed, without counting it."""
        with self._lock:
            now = self.clock()
            record = self._records.get(identifier)
            if record is None:
                return LockoutStatus(True, self.max_attempts)

            if record.locked_until:
                if now < record.locked_until:
                    return LockoutStatus(False, 0, record.locked_until)
                # Lockout expired
                del self._records[identifier]
                current_app.logger.info(f"Account lockout expired for: {identifier}")
                return LockoutStatus(True, self.max_attempts)

            if now - record.last_attempt > self.attempt_window:
                del self._records[identifier]
                return LockoutStatus(True, self.max_attempts)

            return LockoutStatus(True, max(0, self.max_attempts - record.count))

    def record_failed_attempt(self, identifier: str) -> LockoutStatus:
        """
        Record a failed login attempt.

        Returns:
            The status after counting this attempt
        """
        with self._lock:
            now = self.clock()
            record = self._records.get(identifier)

            expired = record is not None and (
                (record.locked_until and now >= record.locked_until)
                or (not record.locked_until and now - record.last_attempt > self.attempt_window)
            )
            if record is None or expired:
                record = _AttemptRecord(count=0, last_attempt=now)
                self._records[identifier] = record

            record.count += 1
            record.last_attempt = now
            current_app.logger.warning(
                f"Failed login attempt {record.count}/{self.max_attempts} for: {identifier}"
            )

            if record.count >= self.max_attempts:
                record.locked_until = now + self.lockout_duration
                current_app.logger.error(
                    f"ACCOUNT LOCKED: {identifier} after {record.count} failed attempts. "
                    f"Locked until: {record.locked_until}"
                )
                return LockoutStatus(False, 0, record.locked_until)

            return LockoutStatus(True, self.max_attempts - record.count)

    def record_successful_attempt(self, identifier: str):
        """Forget all failures for identifier after a successful login."""
        self.reset(identifier)

    def reset(self, identifier: str):
        """Reset lockout for a specific identifier."""
        with self._lock:
            self._records.pop(identifier, None)

    def clear(self) -> int:
        """Reset every identifier. Returns how many were tracked."""
        with self._lock:
            count = len(self._records)
            self._records.clear()
            return count


# Global account lockout instance
_account_lockout = AccountLockout()


def get_account_lockout() -> AccountLockout:
    """Get the global account lockout instance."""
    return _account_lockout
