from .intake_session import (
    IntakeSessionService,
    ProgressStore,
    InMemoryProgressStore,
    SqlProgressStore,
    SessionNotFound,
    init_db,
)

__all__ = [
    "IntakeSessionService",
    "ProgressStore",
    "InMemoryProgressStore",
    "SqlProgressStore",
    "SessionNotFound",
    "init_db",
]
