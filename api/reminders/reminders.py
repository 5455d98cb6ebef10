from __future__ import annotations

from typing import Optional

from beanie.odm.fields import PydanticObjectId
from fastapi import APIRouter, Depends, Header, HTTPException

from config import PUSH_INTERNAL_TOKEN
from schemas.reminders import PushTestOut, TickRunOut
from utils.fcm import PushTransport, PushTransportError, build_transport

from .services import ReminderPreconditionError, UserNotFoundError, run_tick, send_test_push
from .store import MongoReminderStore, ReminderStore

router = APIRouter(prefix="/reminders", tags=["reminders"])


def get_store() -> ReminderStore:
    return MongoReminderStore()


def get_transport() -> PushTransport:
    try:
        return build_transport()
    except PushTransportError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


def require_internal_token(x_internal_token: Optional[str] = Header(default=None)) -> None:
    if PUSH_INTERNAL_TOKEN and (x_internal_token or "").strip() != PUSH_INTERNAL_TOKEN:
        raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/tick", response_model=TickRunOut, dependencies=[Depends(require_internal_token)])
async def tick_reminders(
    store: ReminderStore = Depends(get_store),
    transport: PushTransport = Depends(get_transport),
):
    return await run_tick(store, transport)


@router.post("/users/{user_id}/test-push", response_model=PushTestOut, dependencies=[Depends(require_internal_token)])
async def push_test(
    user_id: str,
    store: ReminderStore = Depends(get_store),
    transport: PushTransport = Depends(get_transport),
):
    try:
        PydanticObjectId(user_id)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid user_id")

    try:
        return await send_test_push(store, transport, user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except ReminderPreconditionError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except PushTransportError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
