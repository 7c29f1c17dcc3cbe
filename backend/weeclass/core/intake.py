# weeclass/core/intake.py
"""Form capture: required-field checks and the single write per submission."""

import hmac
import logging
from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel

from weeclass.core.constants import CONFIDENTIALITY_NONE, REQUIRED_FIELDS
from weeclass.core.errors import DemoModeError, FormValidationError
from weeclass.core.records import FORM_MODELS, collection_for
from weeclass.core.settings_store import get_teacher_access_code
from weeclass.db.store import RecordStore
from weeclass.models import RecordStatus, Role

logger = logging.getLogger(__name__)


def missing_required_fields(role: Union[Role, str], form: BaseModel) -> List[str]:
    """Labels of required fields left blank, in form order."""
    missing = []
    for field, label in REQUIRED_FIELDS[Role(role).value]:
        value = getattr(form, field, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(label)
    return missing


def toggle_confidentiality(current: List[str], option: str, checked: bool) -> List[str]:
    """
    Checkbox rule for the student form: "no disclosure" excludes every other
    choice, and picking any other choice clears "no disclosure".
    """
    if option == CONFIDENTIALITY_NONE:
        return [CONFIDENTIALITY_NONE] if checked else []

    values = [v for v in current if v != CONFIDENTIALITY_NONE]
    if checked:
        if option not in values:
            values.append(option)
    else:
        values = [v for v in values if v != option]
    return values


def submit_form(
    store: RecordStore, role: Union[Role, str], form: Union[BaseModel, Mapping[str, Any]]
) -> Dict[str, Any]:
    """
    Validate and write one record. Returns the stored document (with its id)
    so the caller can hand it to the notification dispatcher.

    `form` is the role's form model or raw field values; anything else
    (e.g. another role's form) fails pydantic validation.
    """
    role = Role(role)
    model = FORM_MODELS[role]
    if not isinstance(form, model):
        form = model.model_validate(form)
    missing = missing_required_fields(role, form)
    if missing:
        raise FormValidationError(missing)
    if store.read_only:
        raise DemoModeError("demo mode: submissions are not saved")

    data = form.model_dump(mode="json")
    for key, value in data.items():
        if isinstance(value, str):
            data[key] = value.strip()
    data["status"] = RecordStatus.AWAITING.value

    record_id = store.create(collection_for(role), data)
    logger.info("%s submission stored as %s", role.value, record_id)
    return {**data, "id": record_id}


def check_teacher_code(store: RecordStore, code: str, default: str) -> bool:
    expected = get_teacher_access_code(store, default)
    # exact string comparison, no trimming
    return hmac.compare_digest(expected.encode("utf-8"), (code or "").encode("utf-8"))
