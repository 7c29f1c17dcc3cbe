# weeclass/api/auth.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from weeclass import schemas
from weeclass.core.constants import MESSAGES
from weeclass.core.deps.auth import admin_security, get_client
from weeclass.core.errors import AuthError
from weeclass.db.client import BackendClient

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=schemas.LoginResponse)
def login(data: schemas.LoginRequest, client: BackendClient = Depends(get_client)):
    try:
        session = client.auth.sign_in(data.email, data.password)
    except AuthError:
        raise HTTPException(status_code=401, detail=MESSAGES["WRONG_CREDENTIALS"])

    return schemas.LoginResponse(
        token=session.token,
        email=session.subject,
        expires_at=session.expires_at,
        demo_mode=client.demo_mode,
    )


@router.post("/logout", status_code=204)
def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(admin_security),
    client: BackendClient = Depends(get_client),
):
    if credentials:
        client.auth.sign_out(credentials.credentials)


@router.get("/session", response_model=schemas.SessionOut)
def session_state(
    credentials: HTTPAuthorizationCredentials | None = Depends(admin_security),
    client: BackendClient = Depends(get_client),
):
    payload = client.auth.current(credentials.credentials if credentials else None)
    return schemas.SessionOut(
        authenticated=payload is not None,
        email=payload.get("sub") if payload else None,
        demo_mode=client.demo_mode,
    )
