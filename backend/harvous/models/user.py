"""ORM model for `user_metadata`: per-user counters kept outside the auth provider."""

from datetime import datetime

from sqlalchemy import Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import TIMESTAMP

from harvous.database import Base, utcnow


class UserMetadata(Base):
    __tablename__ = "user_metadata"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Only ever increases, so deleting a note never frees its simple id
    highest_simple_note_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<UserMetadata(user_id='{self.user_id}', highest={self.highest_simple_note_id})>"
