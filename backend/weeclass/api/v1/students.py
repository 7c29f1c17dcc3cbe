# weeclass/api/v1/students.py

from fastapi import APIRouter, BackgroundTasks, Depends

from weeclass import schemas
from weeclass.core.constants import MESSAGES
from weeclass.core.deps.auth import get_client, get_store
from weeclass.core.intake import submit_form, toggle_confidentiality
from weeclass.core.notifications import send_notification
from weeclass.db.client import BackendClient
from weeclass.db.store import RecordStore
from weeclass.models import Role

router = APIRouter(prefix="/students", tags=["students"])


@router.post("/apply", response_model=schemas.SubmissionResponse, status_code=201)
def apply_student(
    form: schemas.StudentForm,
    background_tasks: BackgroundTasks,
    store: RecordStore = Depends(get_store),
    client: BackendClient = Depends(get_client),
):
    """
    Student counseling request. Required: name, grade_class, reason.
    Confidentiality left empty is stored as "알리고 싶지 않음".
    """
    record = submit_form(store, Role.STUDENT, form)

    # Notification runs after the response; its failures never reach the student
    background_tasks.add_task(
        send_notification, store, Role.STUDENT, record, client.settings.WEBHOOK_TIMEOUT_SECONDS
    )

    return schemas.SubmissionResponse(
        id=record["id"],
        status=record["status"],
        message=MESSAGES["SUBMITTED"],
    )


@router.post("/confidentiality", response_model=schemas.ConfidentialityOut)
def confidentiality_toggle(data: schemas.ConfidentialityToggle):
    """
    Checkbox state after (un)checking one option: "알리고 싶지 않음" clears
    the others, any other option clears "알리고 싶지 않음".
    """
    values = toggle_confidentiality(data.current, data.option, data.checked)
    return schemas.ConfidentialityOut(confidentiality=values)
