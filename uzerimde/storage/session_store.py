"""
In-process try-on sessions.

A session holds the user's photo for the duration of a try-on: created on
upload, replaced when the user picks another photo, dropped on explicit
reset or once it outlives ``storage.session_ttl_s``.  Landmarks are derived
from the photo when it is stored and are rebuilt whenever it is replaced.

``image_generation`` increments on every photo change and
``avatar_request`` on every avatar request.  An avatar request records both
numbers when it starts and may only commit its result while both are still
current; otherwise the result is stale and discarded.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field

from uzerimde.config import config
from uzerimde.core.landmark_detection import detect_landmarks
from uzerimde.core.selection import Selection
from uzerimde.models.schemas import BodyLandmarks

logger = logging.getLogger(__name__)


@dataclass
class TryOnSession:
    session_id: str
    image: bytes
    content_type: str
    width: int
    height: int
    landmarks: BodyLandmarks
    selection: Selection = field(default_factory=Selection)
    image_generation: int = 0
    avatar_request: int = 0
    avatar_url: str | None = None
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AvatarTicket:
    """The photo generation and request number an avatar request started on."""
    generation: int
    request: int


class SessionStore:

    def __init__(self):
        self._sessions: dict[str, TryOnSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, image: bytes, content_type: str = "image/jpeg") -> TryOnSession:
        landmarks, (width, height) = detect_landmarks(image)
        self.evict()
        session = TryOnSession(
            session_id=uuid.uuid4().hex[:16],
            image=image,
            content_type=content_type,
            width=width,
            height=height,
            landmarks=landmarks,
        )
        self._sessions[session.session_id] = session
        logger.info("Session %s created (%dx%d)", session.session_id, width, height)
        return session

    def get(self, session_id: str) -> TryOnSession | None:
        session = self._sessions.get(session_id)
        if session is not None and self._expired(session, time.time()):
            self.delete(session_id)
            return None
        return session

    def _expired(self, session: TryOnSession, now: float) -> bool:
        return now - session.created_at > config.storage.session_ttl_s

    def evict(self, now: float | None = None) -> int:
        """Drop expired sessions, then the oldest ones beyond the size cap.

        Leaves room for one more session.  Returns how many were dropped.
        """
        now = time.time() if now is None else now
        doomed = [sid for sid, s in self._sessions.items() if self._expired(s, now)]

        keep = max(config.storage.max_sessions - 1, 0)
        alive = sorted(
            (s for sid, s in self._sessions.items() if sid not in doomed),
            key=lambda s: s.created_at,
        )
        if len(alive) > keep:
            doomed += [s.session_id for s in alive[:len(alive) - keep]]

        for sid in doomed:
            del self._sessions[sid]
        if doomed:
            logger.info("Evicted %d session(s), %d left", len(doomed), len(self._sessions))
        return len(doomed)

    def replace_image(
        self,
        session: TryOnSession,
        image: bytes,
        content_type: str = "image/jpeg",
    ) -> TryOnSession:
        """New photo: fresh landmarks, avatar dropped, generation bumped."""
        landmarks, (width, height) = detect_landmarks(image)
        session.image = image
        session.content_type = content_type
        session.width, session.height = width, height
        session.landmarks = landmarks
        session.avatar_url = None
        session.image_generation += 1
        logger.info(
            "Session %s image replaced (%dx%d, generation %d)",
            session.session_id, width, height, session.image_generation,
        )
        return session

    def begin_avatar(self, session: TryOnSession) -> AvatarTicket:
        """Start an avatar request; any request started earlier becomes stale."""
        session.avatar_request += 1
        return AvatarTicket(session.image_generation, session.avatar_request)

    def commit_avatar(self, session: TryOnSession, ticket: AvatarTicket, avatar_url: str) -> bool:
        """Store the avatar a request produced; False if the request is stale."""
        if self._sessions.get(session.session_id) is not session:
            logger.info("Discarding avatar for closed session %s", session.session_id)
            return False
        if ticket.generation != session.image_generation:
            logger.info(
                "Discarding stale avatar for session %s (generation %d, current %d)",
                session.session_id, ticket.generation, session.image_generation,
            )
            return False
        if ticket.request != session.avatar_request:
            logger.info(
                "Discarding superseded avatar for session %s (request %d, latest %d)",
                session.session_id, ticket.request, session.avatar_request,
            )
            return False
        session.avatar_url = avatar_url
        return True

    def delete(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("Session %s closed", session_id)
        return removed

    def clear(self) -> None:
        self._sessions.clear()


sessions = SessionStore()
