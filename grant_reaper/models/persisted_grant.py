"""PersistedGrant model - refresh tokens, authorization codes, consents and the like."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from grant_reaper.core.database import Base


class PersistedGrant(Base):
    """A stored authorization grant.

    Rows are written by the token issuance pipeline. The cleanup service only
    ever reads and deletes them.
    """

    __tablename__ = "persisted_grants"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    subject_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    client_id: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(200), nullable=True)
    creation_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiration: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    consumed_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    data: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (
        Index("ix_persisted_grants_subject_client_type", "subject_id", "client_id", "type"),
        Index("ix_persisted_grants_subject_session_type", "subject_id", "session_id", "type"),
    )

    def __repr__(self) -> str:
        return f"<PersistedGrant {self.type} {self.key}>"

    def to_dict(self) -> dict:
        """Summary used in removal notifications; never includes the payload."""
        return {
            "key": self.key,
            "type": self.type,
            "subject_id": self.subject_id,
            "client_id": self.client_id,
            "expiration": self.expiration.isoformat() if self.expiration else None,
            "consumed_time": self.consumed_time.isoformat() if self.consumed_time else None,
        }
