# taskflow/routers/assistant.py
from fastapi import APIRouter, Depends

from taskflow.schemas import BreakdownRequest
from taskflow.services.assistant import AssistantClient, get_assistant, request_breakdown
from taskflow.utils.auth import get_current_owner

router = APIRouter(prefix="/ai", tags=["Assistant"])


@router.post("/breakdown")
def breakdown(
    request: BreakdownRequest,
    owner_id: str = Depends(get_current_owner),
    assistant: AssistantClient = Depends(get_assistant)
):
    """Step breakdown for an unsaved task; nothing is stored"""
    return request_breakdown(
        assistant, request.title, description=request.description, due_date=request.due_date, tags=request.tags
    )
