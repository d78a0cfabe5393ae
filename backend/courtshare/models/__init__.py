from courtshare.models.user import User
from courtshare.models.court import Court
from courtshare.models.reservation import Reservation
from courtshare.models.participant import ParticipantStatus
from courtshare.models.invite import Invite
from courtshare.models.message import Message

__all__ = ["User", "Court", "Reservation", "ParticipantStatus", "Invite", "Message"]
