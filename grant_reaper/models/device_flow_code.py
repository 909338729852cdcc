"""DeviceFlowCode model - pending device authorization requests."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from grant_reaper.core.database import Base


class DeviceFlowCode(Base):
    """A device authorization request, addressed by user code and device code."""

    __tablename__ = "device_flow_codes"

    user_code: Mapped[str] = mapped_column(String(200), primary_key=True)
    device_code: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    subject_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    client_id: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(200), nullable=True)
    creation_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiration: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    data: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<DeviceFlowCode {self.user_code}>"

    def to_dict(self) -> dict:
        return {
            "user_code": self.user_code,
            "device_code": self.device_code,
            "client_id": self.client_id,
            "expiration": self.expiration.isoformat() if self.expiration else None,
        }
