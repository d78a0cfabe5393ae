"""
Canonical reservation read model.

Every endpoint that returns a reservation goes through one of these
projections. Going/not-going counts are derived from the participant rows on
each read; nothing is materialized.
"""

from typing import Optional

from courtshare.core.config import get_settings
from courtshare.models.invite import Invite
from courtshare.models.message import Message
from courtshare.models.participant import ParticipantStatus
from courtshare.models.reservation import Reservation
from courtshare.models.user import User
from courtshare.schemas.access import InviteSummary, ShortLinkView
from courtshare.schemas.court import CourtSummary
from courtshare.schemas.message import MessageResponse
from courtshare.schemas.participant import PaymentRosterEntry
from courtshare.schemas.reservation import ParticipantView, PersonSummary, ReservationResponse

settings = get_settings()


def short_link_for(reservation: Reservation) -> str:
    return f"{settings.APP_URL.rstrip('/')}/r/{reservation.short_url}"


def invite_link_for(invite: Invite) -> str:
    return f"{settings.APP_URL.rstrip('/')}/invite/{invite.token}"


def person_summary(user: User) -> PersonSummary:
    return PersonSummary(id=user.id, name=user.name, email=user.email, image=user.image)


def participant_view(participant: ParticipantStatus) -> ParticipantView:
    return ParticipantView(
        id=participant.id,
        user_id=participant.user_id,
        name=participant.user.name,
        email=participant.user.email,
        image=participant.user.image,
        has_paid=participant.has_paid,
        is_going=participant.is_going,
    )


def project_reservation(reservation: Reservation, viewer_id: Optional[int]) -> ReservationResponse:
    participants = [participant_view(p) for p in reservation.participants]
    going = sum(1 for p in participants if p.is_going)

    return ReservationResponse(
        id=reservation.id,
        name=reservation.name,
        description=reservation.description,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        short_url=reservation.short_url,
        short_link=short_link_for(reservation),
        payment_required=reservation.payment_required,
        payment_info=reservation.payment_info,
        password_required=reservation.password_required,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        court=CourtSummary.model_validate(reservation.court),
        owner=person_summary(reservation.owner),
        participants=participants,
        going_count=going,
        not_going_count=len(participants) - going,
        is_owner=viewer_id is not None and reservation.is_owned_by(viewer_id),
    )


def project_short_link(reservation: Reservation, viewer: Optional[User]) -> ShortLinkView:
    """Public view: no participant list, password only for the owner."""
    is_owner = viewer is not None and reservation.is_owned_by(viewer.id)
    return ShortLinkView(
        id=reservation.id,
        name=reservation.name,
        court_name=reservation.court.name,
        court=CourtSummary.model_validate(reservation.court),
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        description=reservation.description,
        payment_required=reservation.payment_required,
        payment_info=reservation.payment_info,
        password_required=reservation.password_required,
        owner=person_summary(reservation.owner),
        is_owner=is_owner,
        is_participant=viewer is not None and reservation.has_participant(viewer.id),
        password=reservation.password if is_owner else None,
    )


def project_invite(invite: Invite) -> InviteSummary:
    reservation = invite.reservation
    return InviteSummary(
        id=reservation.id,
        name=reservation.name,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        description=reservation.description,
        invited_email=invite.email,
        expires_at=invite.expires_at,
        court=CourtSummary.model_validate(reservation.court),
        owner=person_summary(reservation.owner),
    )


def project_roster(reservation: Reservation) -> list[PaymentRosterEntry]:
    return [
        PaymentRosterEntry(
            user_id=p.user_id,
            name=p.user.name,
            email=p.user.email,
            has_paid=p.has_paid,
            is_going=p.is_going,
        )
        for p in reservation.participants
    ]


def project_message(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        reservation_id=message.reservation_id,
        content=message.content,
        created_at=message.created_at,
        user=person_summary(message.user),
    )
