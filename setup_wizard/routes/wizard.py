"""
Setup Wizard Routes
Receives completed wizard submissions from the front-end
"""

import logging

from fastapi import APIRouter, Depends, Request

from ..schemas import ErrorResponse, SubmissionAck, SubmissionPayload
from ..services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Setup Wizard"])


def get_submission_service(request: Request) -> SubmissionService:
    return request.app.state.submission_service


@router.post(
    "/submit-wizard",
    response_model=SubmissionAck,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def submit_wizard(
    payload: SubmissionPayload,
    service: SubmissionService = Depends(get_submission_service),
):
    """
    Relay a completed wizard to the enterprise team.
    ValidationError / TransportError are turned into JSON by the app's SubmissionError handler.
    """
    return await service.submit(payload)
