# wellness_intake/models.py
from datetime import datetime, timezone
import uuid

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from wellness_intake.db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WellnessSession(Base):
    """
    One interview session. `progress` holds the serialised StageProgress.
    """
    __tablename__ = "wellness_sessions"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    current_stage: Mapped[str] = mapped_column(String, nullable=False)
    progress: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
