"""Live quiz sessions held by the server between requests."""
import logging

from quiz_engine.errors import Forbidden, NotFound
from quiz_engine.services.attempt_session import AttemptSession, SessionStatus

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Attempt sessions keyed by attempt id.

    Sessions share nothing; the registry only routes requests to the right
    one and makes sure only its owner can reach it. A user holds at most one
    live session, and a session is dropped once its results are delivered.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, AttemptSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, attempt_id: str) -> bool:
        return attempt_id in self._sessions

    def add(self, session: AttemptSession) -> None:
        """Register a session, closing the owner's earlier ones."""
        stale = [
            attempt_id
            for attempt_id, other in self._sessions.items()
            if other is not session
            and (attempt_id == session.attempt_id or other.user_id == session.user_id)
        ]
        for attempt_id in stale:
            self.discard(attempt_id)
        if stale:
            logger.info(f"Closed {len(stale)} earlier sessions of {session.user_id}")
        self._sessions[session.attempt_id] = session

    def get(self, attempt_id: str, user_id: str) -> AttemptSession:
        session = self._sessions.get(attempt_id)
        if session is None:
            raise NotFound("No live session for this attempt")
        if session.user_id != user_id:
            raise Forbidden("Attempt belongs to another user")
        return session

    def close(self, attempt_id: str, user_id: str) -> AttemptSession:
        """Dispose the session and forget it."""
        session = self.get(attempt_id, user_id)
        session.dispose()
        del self._sessions[attempt_id]
        return session

    def discard(self, attempt_id: str) -> None:
        session = self._sessions.pop(attempt_id, None)
        if session is not None:
            session.dispose()

    def release_finished(self, session: AttemptSession) -> None:
        """Forget a session whose results have been handed out."""
        if session.status is SessionStatus.RESULTS:
            self.discard(session.attempt_id)

    def dispose_all(self) -> int:
        count = len(self._sessions)
        for session in self._sessions.values():
            session.dispose()
        self._sessions.clear()
        if count:
            logger.info(f"Disposed {count} live quiz sessions")
        return count


# Process-wide registry used by the HTTP layer
registry = SessionRegistry()
