"""
Reservation model: an owned booking of a court for a UTC time span.

Key design decisions:
- CHECK constraint keeps end_time strictly after start_time
- Composite index on (court_id, start_time, end_time) serves the overlap query
  run both for slot availability and for the write-time conflict re-check
- short_url is unique and permanent for the lifetime of the reservation
- On PostgreSQL the migration also adds a gist exclusion constraint so two
  overlapping reservations on the same court cannot both commit
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from courtshare.db.base import Base, TimestampMixin, UTCDateTime


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=False)
    short_url = Column(String(32), unique=True, index=True, nullable=False)

    # Shared secret, stored and compared as plaintext
    password = Column(String(255), nullable=True)
    password_required = Column(Boolean, nullable=False, default=False)

    payment_required = Column(Boolean, nullable=False, default=False)
    payment_info = Column(Text, nullable=True)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False, index=True)

    # Relationships
    owner = relationship("User", lazy="selectin")
    court = relationship("Court", lazy="selectin")
    participants = relationship(
        "ParticipantStatus",
        back_populates="reservation",
        lazy="selectin",
        order_by="ParticipantStatus.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_reservation_end_after_start"),
        Index("ix_reservations_court_span", "court_id", "start_time", "end_time"),
    )

    def is_owned_by(self, user_id: int) -> bool:
        return self.owner_id == user_id

    def has_participant(self, user_id: int) -> bool:
        return any(p.user_id == user_id for p in self.participants)

    @property
    def password_gate_active(self) -> bool:
        return bool(self.password_required and self.password)

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, court={self.court_id}, "
            f"start={self.start_time}, end={self.end_time})>"
        )
