"""
Single-use, time-limited invite for one e-mail to join one reservation.
"""

from datetime import datetime

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from courtshare.db.base import Base, UTCDateTime
from courtshare.core.clock import utcnow


class Invite(Base):
    __tablename__ = "invites"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False)
    reservation_id = Column(
        Integer,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = Column(UTCDateTime(), nullable=False)
    used_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    reservation = relationship("Reservation", lazy="selectin")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def __repr__(self) -> str:
        return f"<Invite(id={self.id}, reservation={self.reservation_id}, email={self.email})>"
