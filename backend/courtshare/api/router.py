"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from courtshare.api.routes import courts, reservations, invites, short_links, participants, messages

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(courts.router)
api_router.include_router(reservations.router)
api_router.include_router(invites.router)
api_router.include_router(short_links.router)
api_router.include_router(participants.router)
api_router.include_router(messages.router)
