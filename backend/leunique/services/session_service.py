# Overview: Server-side session state keyed by an opaque cookie token.

"""
Session Token Management

WHY: The browser only ever holds an opaque random token (HTTP-only cookie).
Everything else about the session lives server-side in a SessionStore.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before they are used as keys (a dump of the
  store does not yield usable cookies)
- 7-day idle timeout (SESSION_IDLE_TIMEOUT), evaluated lazily on lookup;
  every new session also sweeps out idle ones, so abandoned sessions
  do not accumulate
- Revocable on logout, user deletion and deactivation

LIMITATION: Sessions are process memory only. A restart logs everyone out.
"""

import hashlib
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from leunique.time_utils import to_utc_z, utcnow


SESSION_IDLE_TIMEOUT = timedelta(days=7)


@dataclass
class SessionRecord:
    """Server-side half of a session. Holds no user data beyond the id."""
    user_id: int
    token_hash: str
    created_at: datetime
    last_used_at: datetime
    user_agent: str | None = None
    ip_address: str | None = None

    def expires_at(self, idle_timeout: timedelta) -> datetime:
        return self.last_used_at + idle_timeout

    def to_dict(self, idle_timeout: timedelta = SESSION_IDLE_TIMEOUT) -> dict:
        return {
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at(idle_timeout)),
        }


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for storage using SHA-256.

    WHY SHA-256 not scrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class SessionStore:
    """
    In-memory session backend.

    Thread-safe: the Flask server may handle requests on several threads.
    """

    def __init__(self, idle_timeout: timedelta = SESSION_IDLE_TIMEOUT, clock=utcnow):
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        user_id: int,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[SessionRecord, str]:
        """
        Create a session bound to user_id.

        Returns (session_record, plaintext_token). The client receives the
        plaintext token; the store keeps only its hash.
        """
        plaintext_token = generate_token()
        now = self._clock()
        record = SessionRecord(
            user_id=user_id,
            token_hash=hash_token(plaintext_token),
            created_at=now,
            last_used_at=now,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        with self._lock:
            self._drop_idle(now)
            self._sessions[record.token_hash] = record
        return record, plaintext_token

    def validate_session(self, token: str | None) -> SessionRecord | None:
        """
        Return the live SessionRecord for token, or None.

        Idle sessions are dropped here (no background timer). A successful
        lookup refreshes last_used_at.
        """
        if not token:
            return None

        token_hash = hash_token(token)
        now = self._clock()

        with self._lock:
            record = self._sessions.get(token_hash)
            if record is None:
                return None

            if now - record.last_used_at > self.idle_timeout:
                del self._sessions[token_hash]
                return None

            record.last_used_at = now
            return record

    def revoke_session(self, token: str | None) -> bool:
        """
        Revoke session token.

        Returns True if a session was removed, False if none matched.
        Revoking twice is not an error.
        """
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(hash_token(token), None) is not None

    def revoke_all_user_sessions(self, user_id: int) -> int:
        """
        Revoke all sessions for a user. Returns count revoked.

        WHY: user deleted, deactivated or password reset; forces
        re-authentication on all devices.
        """
        with self._lock:
            doomed = [h for h, rec in self._sessions.items() if rec.user_id == user_id]
            for token_hash in doomed:
                del self._sessions[token_hash]
        return len(doomed)

    def purge_expired(self) -> int:
        """Drop every idle-expired session. Returns count removed."""
        with self._lock:
            return self._drop_idle(self._clock())

    def _drop_idle(self, now: datetime) -> int:
        # Caller holds _lock
        doomed = [
            h for h, rec in self._sessions.items()
            if now - rec.last_used_at > self.idle_timeout
        ]
        for token_hash in doomed:
            del self._sessions[token_hash]
        return len(doomed)

    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)
