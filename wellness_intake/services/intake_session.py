# wellness_intake/services/intake_session.py
from __future__ import annotations

import logging
import threading
import uuid
import weakref
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Optional, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from wellness_intake.config import Settings, get_settings
from wellness_intake.db import Base, make_engine, make_session_factory
from wellness_intake.models import WellnessSession
from wellness_intake.intake.agent import TurnResult, WellnessIntakeAgent
from wellness_intake.intake.schema import WellnessData
from wellness_intake.intake.state import StageProgress

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    pass


class ProgressStore(ABC):
    """
    Key-value home for StageProgress between requests.
    """

    @abstractmethod
    def get(self, session_id: str) -> Optional[StageProgress]:
        ...

    @abstractmethod
    def set(self, session_id: str, progress: StageProgress) -> None:
        ...


class InMemoryProgressStore(ProgressStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[str, StageProgress] = {}

    def get(self, session_id: str) -> Optional[StageProgress]:
        with self._lock:
            progress = self._items.get(session_id)
            return progress.model_copy(deep=True) if progress is not None else None

    def set(self, session_id: str, progress: StageProgress) -> None:
        with self._lock:
            self._items[session_id] = progress.model_copy(deep=True)


def init_db(engine: Engine) -> None:
    """
    Create all tables. Safe to call on every startup.
    """
    Base.metadata.create_all(bind=engine)


class SqlProgressStore(ProgressStore):
    """
    Stores each session's progress as JSON in the wellness_sessions table.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SqlProgressStore":
        engine = make_engine(database_url)
        init_db(engine)
        return cls(make_session_factory(engine))

    @contextmanager
    def db_session(self):
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, session_id: str) -> Optional[StageProgress]:
        with self.db_session() as session:
            row = session.get(WellnessSession, session_id)
            if row is None:
                return None
            return StageProgress.model_validate(row.progress)

    def set(self, session_id: str, progress: StageProgress) -> None:
        data = progress.model_dump(mode="json")
        with self.db_session() as session:
            row = session.get(WellnessSession, session_id)
            if row is None:
                session.add(
                    WellnessSession(
                        id=session_id,
                        current_stage=progress.current_stage.value,
                        progress=data,
                    )
                )
            else:
                row.current_stage = progress.current_stage.value
                row.progress = data


class _SessionLock:
    """
    Per-session turn lock. Unlike threading.Lock it supports weak
    references, so the service registry forgets it once no turn holds it.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class IntakeSessionService:
    """
    Service that coordinates:
      - creating sessions and their initial progress
      - driving the WellnessIntakeAgent, one turn per session at a time
      - saving progress back to the store after successful turns
    """

    def __init__(self, agent: WellnessIntakeAgent, store: ProgressStore):
        self.agent = agent
        self.store = store
        self._locks_guard = threading.Lock()
        # Entries live only while a turn for that session holds the lock.
        self._locks: "weakref.WeakValueDictionary[str, _SessionLock]" = weakref.WeakValueDictionary()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "IntakeSessionService":
        settings = settings or get_settings()
        if settings.database_url:
            store: ProgressStore = SqlProgressStore.from_url(settings.database_url)
        else:
            store = InMemoryProgressStore()
        return cls(WellnessIntakeAgent.from_settings(settings), store)

    def start_session(self) -> Tuple[str, StageProgress, str]:
        """
        Start a new interview.

        Returns:
          - session_id
          - initial progress
          - introduction message for the first stage
        """
        progress, intro = self.agent.start()
        session_id = str(uuid.uuid4())
        self.store.set(session_id, progress)
        logger.info("Started wellness session %s", session_id)
        return session_id, progress, intro

    def handle_turn(self, session_id: str, message: str) -> TurnResult:
        """
        Process one user message. If the agent raises, nothing is saved, so
        the same message can simply be sent again.
        """
        lock = self._session_lock(session_id)
        with lock:
            progress = self.get_progress(session_id)
            result = self.agent.process_user_response(message, progress)
            self.store.set(session_id, result.updated_progress)
            return result

    def get_progress(self, session_id: str) -> StageProgress:
        progress = self.store.get(session_id)
        if progress is None:
            raise SessionNotFound(session_id)
        return progress

    def final_data(self, session_id: str) -> WellnessData:
        return self.agent.finalize(self.get_progress(session_id))

    def summary(self, session_id: str) -> str:
        return self.agent.summarize(self.get_progress(session_id))

    def _session_lock(self, session_id: str) -> _SessionLock:
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = _SessionLock()
                self._locks[session_id] = lock
            return lock
