from datetime import timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from weeclass import schemas
from weeclass.core.constants import MESSAGES
from weeclass.core.deps.auth import get_client, get_store, require_teacher_access
from weeclass.core.intake import check_teacher_code, submit_form
from weeclass.core.notifications import send_notification
from weeclass.core.security.jwt import sign_teacher_access_token
from weeclass.db.client import BackendClient
from weeclass.db.store import RecordStore
from weeclass.models import Role

router = APIRouter(prefix="/teachers", tags=["teachers"])


@router.post("/access", response_model=schemas.TeacherAccessResponse)
def teacher_access(
    data: schemas.TeacherAccessRequest,
    store: RecordStore = Depends(get_store),
    client: BackendClient = Depends(get_client),
):
    """
    Unlocks the teacher referral form with the shared access code.
    The code comes from config/teacher_auth (default when unset or unreadable).
    """
    settings = client.settings
    if not check_teacher_code(store, data.code, settings.TEACHER_ACCESS_DEFAULT):
        raise HTTPException(status_code=403, detail=MESSAGES["WRONG_TEACHER_CODE"])

    ttl = timedelta(minutes=settings.TEACHER_ACCESS_TTL_MINUTES)
    return schemas.TeacherAccessResponse(
        access_token=sign_teacher_access_token(settings.SESSION_JWT_SECRET, ttl),
        expires_in=int(ttl.total_seconds()),
    )


@router.post("/apply", response_model=schemas.SubmissionResponse, status_code=201)
def apply_teacher(
    form: schemas.TeacherForm,
    background_tasks: BackgroundTasks,
    store: RecordStore = Depends(get_store),
    client: BackendClient = Depends(get_client),
    _access = Depends(require_teacher_access),
):
    """
    Teacher referral. Required: student_name, grade_class, referral_reason, desired_change.
    Scales and severities may be left unselected.
    """
    record = submit_form(store, Role.TEACHER, form)
    background_tasks.add_task(
        send_notification, store, Role.TEACHER, record, client.settings.WEBHOOK_TIMEOUT_SECONDS
    )
    return schemas.SubmissionResponse(
        id=record["id"],
        status=record["status"],
        message=MESSAGES["SUBMITTED"],
    )
