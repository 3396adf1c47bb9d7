from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from StatelessSession.session_metrics import get_event_metrics_snapshot
from StatelessSession.session_middleware import get_session
from StatelessSession.tracking import Session

router = APIRouter()


class UserPayload(BaseModel):
    name: str = "John Doe"
    email: str = "john@example.com"


@router.get("/session")
def read_session(session: Session = Depends(get_session)):
    return session.data


@router.post("/session", status_code=204)
def create_session(payload: UserPayload | None = None, session: Session = Depends(get_session)):
    user = payload or UserPayload()
    session.data["user"] = {"name": user.name, "email": user.email}
    return Response(status_code=204)


@router.delete("/session", status_code=204)
def delete_session(session: Session = Depends(get_session)):
    session.clear()
    return Response(status_code=204)


@router.post("/session/visits")
def count_visit(session: Session = Depends(get_session)):
    visits = session.data.setdefault("visits", [])
    visits.append(len(visits) + 1)
    return {"visits": len(visits)}


@router.post("/session/require-user")
def require_user(session: Session = Depends(get_session)):
    """Marks the attempt in the session, then rejects anonymous callers."""
    session.data["last_denied"] = "require-user"
    if "user" not in session.data:
        raise HTTPException(status_code=401, detail="Not signed in")
    return {"user": session.data["user"]}


@router.get("/session/metrics")
def session_metrics():
    return get_event_metrics_snapshot()


@router.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
