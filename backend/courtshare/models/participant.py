"""
Participant status: one row per (user, reservation) with the two independent
flags is_going and has_paid.

The unique constraint is what makes every join path (invite accept, short link
join, owner add) fail with a conflict on a second attempt, even when two
requests race past the application-level check.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from courtshare.db.base import Base, TimestampMixin


class ParticipantStatus(Base, TimestampMixin):
    __tablename__ = "participant_statuses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reservation_id = Column(
        Integer,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_going = Column(Boolean, nullable=False, default=True)
    has_paid = Column(Boolean, nullable=False, default=False)

    # Relationships
    user = relationship("User", lazy="selectin")
    reservation = relationship("Reservation", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("user_id", "reservation_id", name="uq_participant_user_reservation"),
    )

    def __repr__(self) -> str:
        return (
            f"<ParticipantStatus(user={self.user_id}, reservation={self.reservation_id}, "
            f"going={self.is_going}, paid={self.has_paid})>"
        )
