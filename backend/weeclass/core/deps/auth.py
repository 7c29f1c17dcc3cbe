# weeclass/core/deps/auth.py

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from weeclass.core.errors import AuthError
from weeclass.core.security.jwt import verify_token
from weeclass.core.security.session import GateDecision
from weeclass.core.workspace import ReviewWorkspace
from weeclass.db.client import BackendClient
from weeclass.db.store import RecordStore

admin_security = HTTPBearer(auto_error=False)


def get_client(request: Request) -> BackendClient:
    return request.app.state.client


def get_store(client: BackendClient = Depends(get_client)) -> RecordStore:
    if client.store is None:
        raise HTTPException(status_code=503, detail="Record store is not available")
    return client.store


# -----------------------------
# ADMIN AUTH GATE (session JWT)
# -----------------------------
def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(admin_security),
    client: BackendClient = Depends(get_client),
) -> dict:
    """
    Lets the request through only with a live admin session
    (Bearer token; Swagger's 'Authorize' button fills it in).
    """
    token = credentials.credentials if credentials else None
    decision = client.gate.decide(token) if client.gate else GateDecision.LOADING

    if decision == GateDecision.LOADING:
        raise HTTPException(status_code=503, detail="Session state is not available yet")
    if decision == GateDecision.REDIRECT:
        raise HTTPException(
            status_code=401,
            detail="로그인이 필요합니다.",
            headers={"WWW-Authenticate": "Bearer", "Location": client.gate.redirect_to},
        )
    return client.auth.current(token)


def get_workspace(
    request: Request,
    payload: dict = Depends(require_admin),
) -> ReviewWorkspace:
    return request.app.state.workspaces.get(payload["jti"], expires_at=payload.get("exp"))


# -----------------------------
# TEACHER FORM ACCESS (shared code -> short-lived token)
# -----------------------------
def require_teacher_access(
    x_teacher_access: str | None = Header(None),
    client: BackendClient = Depends(get_client),
) -> dict:
    if not x_teacher_access:
        raise HTTPException(status_code=403, detail="교사 인증이 필요합니다.")
    try:
        return verify_token(x_teacher_access, client.settings.SESSION_JWT_SECRET, "teacher_access")
    except AuthError:
        raise HTTPException(status_code=403, detail="교사 인증이 만료되었습니다.")
