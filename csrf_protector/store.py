"""Per-session queue of issued CSRF tokens."""

import secrets
from typing import MutableMapping, Optional

from csrf_protector.exceptions import CSRFProtectorError


def _tokens_match(stored, token: str) -> bool:
    # compare_digest rejects non-ASCII str, so compare encoded bytes
    return isinstance(stored, str) and secrets.compare_digest(stored.encode(), token.encode())


class SessionTokenStore:
    """Ordered tokens issued to one session, oldest first.

    The queue lives in a single slot of the session mapping. Session locking
    and persistence belong to the session middleware; this class only reads
    and writes the slot.

    Matching a token consumes it together with every older token, so a
    token can be used once while several open tabs may each hold a newer,
    still-valid token.
    """

    def __init__(self, session: Optional[MutableMapping], key: str, max_tokens: Optional[int] = None):
        self.session = session
        self.key = key
        self.max_tokens = max_tokens

    def has_queue(self) -> bool:
        """True if the slot exists and holds a proper list."""
        return self.session is not None and isinstance(self.session.get(self.key), list)

    def tokens(self) -> list:
        if not self.has_queue():
            return []
        return list(self.session[self.key])

    def append(self, token: str) -> None:
        """Push a token to the tail, resetting a missing or malformed slot.

        When the queue would exceed ``max_tokens`` the oldest tokens are dropped.
        """
        if self.session is None:
            raise CSRFProtectorError("Cannot store CSRF tokens without a session")
        if not self.has_queue():
            self.clear()
        # Reassign so the session middleware notices the change
        queue = self.session[self.key] + [token]
        if self.max_tokens is not None and len(queue) > self.max_tokens:
            queue = queue[-self.max_tokens :]
        self.session[self.key] = queue

    def consume_if_present(self, token: str) -> bool:
        """Consume ``token`` and all older tokens if it is in the queue.

        Returns:
            True on a match. On no match, or a malformed slot, returns False
            and leaves the queue unchanged.
        """
        if not token or not self.has_queue():
            return False

        queue = self.session[self.key]
        for index, stored in enumerate(queue):
            if _tokens_match(stored, token):
                self.session[self.key] = queue[index + 1 :]
                return True
        return False

    def contains(self, token: Optional[str]) -> bool:
        """Membership test without consumption."""
        if not token:
            return False
        return any(_tokens_match(stored, token) for stored in self.tokens())

    def clear(self) -> None:
        if self.session is not None:
            self.session[self.key] = []
