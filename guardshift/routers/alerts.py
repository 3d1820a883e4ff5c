from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db import get_db
from ..services import alerts as alert_service
from ..services.events import EventSink, get_event_sink

router = APIRouter(prefix="/internal", tags=["alerts"])


@router.post("/alerts-tick")
def alerts_tick(
    request: Request,
    db: Session = Depends(get_db),
    sink: EventSink = Depends(get_event_sink),
):
    settings = get_settings()
    token = request.headers.get("x-alerts-token") or request.query_params.get("token")
    if settings.alerts_tick_token and token != settings.alerts_tick_token:
        return JSONResponse({"error": "unauthorized"}, status_code=401)

    reminders = alert_service.send_imminent_shift_reminders(db, sink)
    overdue = alert_service.flag_overdue_guards(db, sink)
    return JSONResponse({"reminders": reminders, "overdue": overdue})
