"""Chat endpoints: streaming WebSocket, one-shot POST and the transcript."""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from factory import ServiceFactory
from agent.orchestrator import TurnUpdate
from domain.exceptions import TurnInProgressError
from adapters.rest.dependencies import get_factory
from adapters.rest.schemas import ChatBody, MessageOut

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)


def _update_out(update: TurnUpdate) -> dict:
    return {
        "type": "update",
        "state": update.state.value,
        "settled": update.settled,
        "message": update.message.to_dict() if update.message is not None else None,
    }


@router.websocket("/ws/chat")
async def websocket_chat(ws: WebSocket):
    """
    WebSocket chat endpoint.

    Protocol:
      - Client sends: plain text message
      - Server sends one JSON object per visible change of the turn:
          {"type": "update", "state": ..., "settled": bool, "message": {id, role, text}}
        Streaming text arrives as repeated updates of the same open message
        with the cumulative text so far. The turn is over when an update
        with state "idle" arrives.
      - A message sent while a turn is in flight gets
          {"type": "error", "message": "..."}
    """
    factory = get_factory()
    orchestrator = factory.get_orchestrator()
    await ws.accept()

    try:
        while True:
            text = (await ws.receive_text()).strip()
            if not text:
                continue
            logger.info("WS chat | %s", text[:200])
            try:
                turn = orchestrator.submit(text)
            except TurnInProgressError as exc:
                await ws.send_json({"type": "error", "message": str(exc)})
                continue
            async for update in turn:
                await ws.send_json(_update_out(update))
    except WebSocketDisconnect:
        logger.info("WS chat client disconnected")


@router.post("/chat", response_model=MessageOut)
async def chat(body: ChatBody, factory: ServiceFactory = Depends(get_factory)):
    """Run a whole turn and return the message it settled with."""
    reply = await factory.get_orchestrator().run(body.message)
    if reply is None:
        return MessageOut(id="", role="assistant", text="")
    return MessageOut(**reply.to_dict())


@router.get("/chat/history", response_model=list[MessageOut])
async def get_chat_history(
    limit: int = Query(default=50, ge=1, le=1000),
    factory: ServiceFactory = Depends(get_factory),
):
    """Return the last *limit* settled transcript messages, oldest first."""
    return [MessageOut(**m.to_dict()) for m in factory.transcript.messages[-limit:]]
