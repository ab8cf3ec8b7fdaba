"""
Chat message routes

Saving a message is the primary action. Mirroring it to a Jira comment and
running the transition rules happen afterwards as a background task and can
never fail the request.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from helpdesk.config import Settings, get_settings
from helpdesk.dependencies import get_chat_repository, get_jira_client, get_transition_engine
from helpdesk.exceptions import HelpdeskError
from helpdesk.models.schemas import ChatMessage, ChatMessageCreate
from helpdesk.repositories.chat_repository import ChatMessageRepository
from helpdesk.services.conversation import format_mirror_comment, merge_conversation
from helpdesk.services.jira import JiraClient
from helpdesk.services.transition_engine import MessageTransitionEngine
from helpdesk.utils.logger import get_logger
from helpdesk.utils.validators import sanitize_input

router = APIRouter(prefix="/api", tags=["chat"])
logger = get_logger(__name__)


async def process_saved_message(
    message: ChatMessage,
    jira: JiraClient,
    engine: MessageTransitionEngine
) -> None:
    """Comment mirror then category/status transitions, both best-effort"""
    try:
        await jira.add_comment(
            message.ticket_key,
            format_mirror_comment(message.user_email, message.message)
        )
    except HelpdeskError as e:
        logger.warning(f"Could not mirror message to {message.ticket_key}: {e}")

    outcome = await engine.process_message(message.ticket_key, message.user_email)
    if outcome.errors:
        logger.warning(f"Transition for {message.ticket_key} partially failed: {outcome.errors}")


@router.get("/chat-messages")
async def list_chat_messages(
    ticket_key: str = Query(..., alias="ticketKey", min_length=1),
    repository: ChatMessageRepository = Depends(get_chat_repository)
):
    messages = await repository.list_messages_async(ticket_key)
    return {"messages": [m.model_dump(mode="json") for m in messages]}


@router.post("/chat-messages", status_code=status.HTTP_201_CREATED)
async def create_chat_message(
    request: ChatMessageCreate,
    background_tasks: BackgroundTasks,
    repository: ChatMessageRepository = Depends(get_chat_repository),
    jira: JiraClient = Depends(get_jira_client),
    engine: MessageTransitionEngine = Depends(get_transition_engine)
):
    message = await repository.insert_message_async(
        request.ticket_key,
        request.user_email,
        sanitize_input(request.message),
        request.role,
    )
    background_tasks.add_task(process_saved_message, message, jira, engine)
    return {"success": True, "message": message.model_dump(mode="json")}


@router.get("/tickets/{ticket_key}/conversation")
async def get_conversation(
    ticket_key: str,
    repository: ChatMessageRepository = Depends(get_chat_repository),
    jira: JiraClient = Depends(get_jira_client),
    settings: Settings = Depends(get_settings)
):
    """Stored chat messages and Jira comments as one thread"""
    messages = await repository.list_messages_async(ticket_key)
    comments = await jira.get_comments(ticket_key)

    entries = merge_conversation(
        messages,
        comments,
        service_account_email=settings.jira_email,
        master_email=settings.master_email,
    )
    return {
        "ticketKey": ticket_key,
        "conversation": [entry.model_dump(mode="json") for entry in entries],
    }
