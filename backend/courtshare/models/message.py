"""
Append-only chat message attached to a reservation.
"""

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from courtshare.db.base import Base, UTCDateTime
from courtshare.core.clock import utcnow


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(
        Integer,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow, index=True)

    user = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, reservation={self.reservation_id}, user={self.user_id})>"
