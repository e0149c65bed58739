# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Inbound chat events (messages and button presses).
Thin HTTP layer: delegates ALL logic to CommandDispatcher. A reply to a
mutating command schedules a snapshot write after the response is sent.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from chorebot.core.dependencies import get_dispatcher, get_snapshot_service
from chorebot.schemas.commands import ButtonEvent, ButtonOut, MessageEvent, ReplyResponse
from chorebot.services.commands import Reply
from chorebot.services.dispatcher import CommandDispatcher
from chorebot.services.snapshot_service import SnapshotService

router = APIRouter(prefix="/api/v1", tags=["Commands"])


def _respond(
    reply: Optional[Reply],
    background_tasks: BackgroundTasks,
    snapshot: SnapshotService,
) -> ReplyResponse:
    if reply is None:
        return ReplyResponse(handled=False)
    if reply.mutated and snapshot.enabled:
        background_tasks.add_task(snapshot.save)
    return ReplyResponse(
        handled=True,
        text=reply.text,
        buttons=[ButtonOut(label=b.label, token=b.token) for b in reply.buttons],
    )


@router.post("/messages", response_model=ReplyResponse)
def handle_message(
    payload: MessageEvent,
    background_tasks: BackgroundTasks,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
    snapshot: SnapshotService = Depends(get_snapshot_service),
):
    """Process one chat message. Non-command text is ignored (handled=false)."""
    reply = dispatcher.handle_message(payload.caller_id, payload.display_name, payload.text)
    return _respond(reply, background_tasks, snapshot)


@router.post("/buttons", response_model=ReplyResponse)
def handle_button(
    payload: ButtonEvent,
    background_tasks: BackgroundTasks,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
    snapshot: SnapshotService = Depends(get_snapshot_service),
):
    """Process one button press carrying a callback token."""
    reply = dispatcher.handle_button(payload.caller_id, payload.display_name, payload.token)
    return _respond(reply, background_tasks, snapshot)
