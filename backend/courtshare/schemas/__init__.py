from courtshare.schemas.court import CourtResponse, CourtSummary
from courtshare.schemas.slot import TimeSlotResponse
from courtshare.schemas.reservation import (
    ReservationCreate, ReservationUpdate, ReservationReschedule,
    ReservationResponse, ReservationListResponse, ReservationDeleteResponse,
    ParticipantView, PersonSummary,
)
from courtshare.schemas.access import (
    InviteCreate, InviteCreatedResponse, InviteSummary, InviteAcceptResponse,
    ShortLinkView, VerifyPasswordRequest, VerifyPasswordResponse, JoinRequest,
)
from courtshare.schemas.participant import ParticipantStatusUpdate, ParticipantAdd, PaymentRosterEntry
from courtshare.schemas.message import MessageCreate, MessageResponse

__all__ = [
    "CourtResponse", "CourtSummary", "TimeSlotResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationReschedule",
    "ReservationResponse", "ReservationListResponse", "ReservationDeleteResponse",
    "ParticipantView", "PersonSummary",
    "InviteCreate", "InviteCreatedResponse", "InviteSummary", "InviteAcceptResponse",
    "ShortLinkView", "VerifyPasswordRequest", "VerifyPasswordResponse", "JoinRequest",
    "ParticipantStatusUpdate", "ParticipantAdd", "PaymentRosterEntry",
    "MessageCreate", "MessageResponse",
]
