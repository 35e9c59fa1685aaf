from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from kisansetu.api.dependencies import (
    get_advisory_service,
    get_profile_lookup,
    get_session_store,
)
from kisansetu.core.security import verify_jwt
from kisansetu.models.advisory import (
    AdvisoryExchange,
    AdvisoryQuestionRequest,
    AdvisorySessionResponse,
)
from kisansetu.models.conversation import ConversationTurn
from kisansetu.services.advisory_service import (
    COMMON_QUESTIONS,
    AdvisorySession,
    AdvisoryService,
    AdvisorySessionStore,
)
from kisansetu.services.geo_resolver import ClientReportedLocation, GeoResolver, ProfileLookup

router = APIRouter(prefix="/advisory", tags=["Advisory"])


def _owned_session(
    session_id: str, user_payload: dict, store: AdvisorySessionStore
) -> AdvisorySession:
    session = store.get(session_id)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Advisory session not found"
        )
    if session.owner_id != user_payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this advisory session",
        )
    return session


@router.post(
    "/sessions",
    response_model=AdvisorySessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_advisory_session(
    user_payload: dict = Depends(verify_jwt),
    store: AdvisorySessionStore = Depends(get_session_store),
):
    """
    Opens an advisory chat. The session lives in memory until it is deleted;
    the soil profile is resolved on its first question.
    """
    session = store.create(
        owner_id=user_payload.get("sub"), language=user_payload.get("language", "en")
    )
    return AdvisorySessionResponse(id=session.id, common_questions=COMMON_QUESTIONS)


@router.get("/sessions/{session_id}/messages", response_model=List[ConversationTurn])
async def get_advisory_messages(
    session_id: str,
    user_payload: dict = Depends(verify_jwt),
    store: AdvisorySessionStore = Depends(get_session_store),
):
    session = _owned_session(session_id, user_payload, store)
    return list(session.conversation.as_history())


@router.post(
    "/sessions/{session_id}/messages",
    response_model=AdvisoryExchange,
    response_model_exclude_none=True,
)
async def ask_advisory_question(
    session_id: str,
    request: AdvisoryQuestionRequest,
    user_payload: dict = Depends(verify_jwt),
    store: AdvisorySessionStore = Depends(get_session_store),
    service: AdvisoryService = Depends(get_advisory_service),
    profile_lookup: ProfileLookup = Depends(get_profile_lookup),
):
    """
    Answers one question. The stored profile location wins over the
    location the device reports with the question.
    """
    session = _owned_session(session_id, user_payload, store)
    geo_resolver = GeoResolver(ClientReportedLocation(request), profile_lookup=profile_lookup)
    return await service.ask(session, request.question, geo_resolver)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_advisory_session(
    session_id: str,
    user_payload: dict = Depends(verify_jwt),
    store: AdvisorySessionStore = Depends(get_session_store),
):
    _owned_session(session_id, user_payload, store)
    store.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
