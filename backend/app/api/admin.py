from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
from app.dependencies import get_broadcast_dispatcher
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse
from app.schemas.log import LogListOut, LogOut
from app.schemas.telegram import BroadcastRequest, ChannelResult
from app.services.broadcast import BroadcastDispatcher
from app.services.logs import LogService


router = APIRouter()
logs = LogService()


@router.post("/notifications", response_model=ApiResponse)
async def send_broadcast(
    payload: BroadcastRequest,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
    dispatcher: BroadcastDispatcher = Depends(get_broadcast_dispatcher),
) -> ApiResponse:
    result = await dispatcher.broadcast(db, payload.message, payload.audience, payload.channels)
    return ApiResponse(
        message="Broadcast enviado",
        data={channel: ChannelResult(**outcome) for channel, outcome in result.items()},
    )


@router.get("/logs", response_model=ApiResponse)
def list_logs(
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
) -> ApiResponse:
    page = logs.list(db, limit=limit, offset=offset)
    return ApiResponse(
        data=LogListOut(
            logs=[LogOut.model_validate(row) for row in page["logs"]],
            total=page["total"],
            limit=page["limit"],
            offset=page["offset"],
        )
    )
