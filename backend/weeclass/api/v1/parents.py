from fastapi import APIRouter, BackgroundTasks, Depends

from weeclass import schemas
from weeclass.core.constants import MESSAGES
from weeclass.core.deps.auth import get_client, get_store
from weeclass.core.intake import submit_form
from weeclass.core.notifications import send_notification
from weeclass.db.client import BackendClient
from weeclass.db.store import RecordStore
from weeclass.models import Role

router = APIRouter(prefix="/parents", tags=["parents"])


@router.post("/apply", response_model=schemas.SubmissionResponse, status_code=201)
def apply_parent(
    form: schemas.ParentForm,
    background_tasks: BackgroundTasks,
    store: RecordStore = Depends(get_store),
    client: BackendClient = Depends(get_client),
):
    """
    Parent counseling request about their child.
    Required: child_name, grade_class, worries, desired_change.
    """
    record = submit_form(store, Role.PARENT, form)
    background_tasks.add_task(
        send_notification, store, Role.PARENT, record, client.settings.WEBHOOK_TIMEOUT_SECONDS
    )
    return schemas.SubmissionResponse(
        id=record["id"],
        status=record["status"],
        message=MESSAGES["SUBMITTED"],
    )
