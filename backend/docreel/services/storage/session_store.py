"""
Session store - single source of truth for sessions, chunk identity and order.

Implements the Repository pattern so pipeline stages never touch the backing
storage directly:
    - SessionStore: abstract interface used by every stage
    - InMemorySessionStore: process-lifetime implementation with a secondary
      chunk_id -> session_id index

Every mutation that changes the chunk list re-normalizes ``Chunk.order`` to
0..N-1 matching list position, and re-derives the session status.
"""

from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from docreel.core import NotFoundError, ValidationError, get_logger
from docreel.models import Chunk, ChunkStatus, Script, Session, SessionStatus

logger = get_logger(__name__, component="session_store")

UPDATABLE_CHUNK_FIELDS = {"title", "content", "script", "video_url", "status"}

ChunkPredicate = Callable[[Chunk], bool]


def _renumber(chunks: List[Chunk]) -> None:
    for index, chunk in enumerate(chunks):
        chunk.order = index


class SessionStore(ABC):
    """
    Abstract store for sessions and their ordered chunks.

    Lookups return None when the id is unknown; mutations raise NotFoundError.
    """

    @abstractmethod
    def create(self, file_name: str, chunks: List[Chunk]) -> str:
        """Store a new session and return its id."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[Session]:
        """Return the session or None."""

    @abstractmethod
    def list_sessions(self) -> List[Session]:
        """Return every stored session."""

    @abstractmethod
    def delete_session(self, session_id: str) -> bool:
        """Remove a session and all its chunks. Returns False when unknown."""

    @abstractmethod
    def find_chunk(self, predicate: ChunkPredicate) -> Optional[Tuple[Session, Chunk]]:
        """Return the first (session, chunk) whose chunk satisfies predicate."""

    @abstractmethod
    def get_chunk(self, chunk_id: str) -> Optional[Tuple[Session, Chunk]]:
        """Return (session, chunk) for a chunk id or None."""

    @abstractmethod
    def update_chunk(self, chunk_id: str, **fields: Any) -> Chunk:
        """Apply a partial update to a chunk."""

    @abstractmethod
    def reorder(self, session_id: str, ordered_chunk_ids: Iterable[str]) -> List[Chunk]:
        """Rebuild the chunk list in the given order, dropping unknown ids."""

    @abstractmethod
    def delete_chunk(self, chunk_id: str) -> Chunk:
        """Remove one chunk and re-normalize the remaining order."""


class InMemorySessionStore(SessionStore):
    """Process-lifetime session store guarded by a re-entrant lock."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._chunk_index: Dict[str, str] = {}
        self._lock = RLock()

    def create(self, file_name: str, chunks: List[Chunk]) -> str:
        with self._lock:
            seen = set()
            for chunk in chunks:
                if chunk.id in seen or chunk.id in self._chunk_index:
                    raise ValidationError(f"Duplicate chunk id: {chunk.id}")
                seen.add(chunk.id)

            session = Session(file_name=file_name, chunks=list(chunks))
            _renumber(session.chunks)
            session.status = SessionStatus.from_chunks(c.status for c in session.chunks)

            self._sessions[session.id] = session
            for chunk in session.chunks:
                self._chunk_index[chunk.id] = session.id

        logger.info("Session created", extra={
            "session_id": session.id,
            "file_name": file_name,
            "chunk_count": len(session.chunks),
        })
        return session.id

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            for chunk in session.chunks:
                self._chunk_index.pop(chunk.id, None)
        logger.info("Session deleted", extra={"session_id": session_id})
        return True

    def find_chunk(self, predicate: ChunkPredicate) -> Optional[Tuple[Session, Chunk]]:
        with self._lock:
            for session in self._sessions.values():
                for chunk in session.chunks:
                    if predicate(chunk):
                        return session, chunk
        return None

    def get_chunk(self, chunk_id: str) -> Optional[Tuple[Session, Chunk]]:
        with self._lock:
            session_id = self._chunk_index.get(chunk_id)
            session = self._sessions.get(session_id) if session_id else None
            if session is None:
                return None
            for chunk in session.chunks:
                if chunk.id == chunk_id:
                    return session, chunk
        return None

    def _require_chunk(self, chunk_id: str) -> Tuple[Session, Chunk]:
        found = self.get_chunk(chunk_id)
        if found is None:
            raise NotFoundError("Chunk not found")
        return found

    def update_chunk(self, chunk_id: str, **fields: Any) -> Chunk:
        unknown = set(fields) - UPDATABLE_CHUNK_FIELDS
        if unknown:
            raise ValidationError(f"Unknown chunk fields: {', '.join(sorted(unknown))}")

        with self._lock:
            session, chunk = self._require_chunk(chunk_id)

            status = ChunkStatus(fields.get("status", chunk.status))
            script = fields.get("script", chunk.script)
            if isinstance(script, dict):
                script = Script.from_dict(script)
            video_url = fields.get("video_url", chunk.video_url)

            if status == ChunkStatus.SCRIPT_READY and script is None:
                raise ValidationError("A chunk cannot be script_ready without a script")
            if status == ChunkStatus.VIDEO_READY and not video_url:
                raise ValidationError("A chunk cannot be video_ready without a video URL")

            if "title" in fields:
                chunk.title = fields["title"]
            if "content" in fields:
                chunk.content = fields["content"]
            chunk.script = script
            chunk.video_url = video_url
            chunk.status = status

            session.status = SessionStatus.from_chunks(c.status for c in session.chunks)

        logger.debug("Chunk updated", extra={
            "chunk_id": chunk_id,
            "fields": sorted(fields),
            "status": status.value,
        })
        return chunk

    def reorder(self, session_id: str, ordered_chunk_ids: Iterable[str]) -> List[Chunk]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError("Session not found")

            by_id = {chunk.id: chunk for chunk in session.chunks}
            reordered: List[Chunk] = []
            for chunk_id in ordered_chunk_ids:
                chunk = by_id.pop(chunk_id, None)
                if chunk is not None:
                    reordered.append(chunk)

            # Chunks left out of the new order leave the session
            for dropped_id in by_id:
                self._chunk_index.pop(dropped_id, None)

            _renumber(reordered)
            session.chunks = reordered
            session.status = SessionStatus.from_chunks(c.status for c in session.chunks)

        logger.info("Chunks reordered", extra={
            "session_id": session_id,
            "chunk_count": len(reordered),
            "dropped": len(by_id),
        })
        return list(reordered)

    def delete_chunk(self, chunk_id: str) -> Chunk:
        with self._lock:
            session, chunk = self._require_chunk(chunk_id)
            session.chunks = [c for c in session.chunks if c.id != chunk_id]
            self._chunk_index.pop(chunk_id, None)
            _renumber(session.chunks)
            session.status = SessionStatus.from_chunks(c.status for c in session.chunks)

        logger.info("Chunk deleted", extra={
            "session_id": session.id,
            "chunk_id": chunk_id,
            "remaining": len(session.chunks),
        })
        return chunk
