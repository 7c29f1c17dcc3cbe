# weeclass/core/records.py

from typing import Any, Dict, Type, Union

from pydantic import BaseModel, TypeAdapter

from weeclass.core.constants import COLLECTIONS
from weeclass.models import Role
from weeclass.schemas import (
    ParentForm,
    ParentRecord,
    Record,
    StudentForm,
    StudentRecord,
    TeacherForm,
    TeacherRecord,
)

FORM_MODELS: Dict[Role, Type[BaseModel]] = {
    Role.STUDENT: StudentForm,
    Role.PARENT: ParentForm,
    Role.TEACHER: TeacherForm,
}

AnyRecord = Union[StudentRecord, ParentRecord, TeacherRecord]

_record_adapter: TypeAdapter = TypeAdapter(Record)


def collection_for(role: Union[Role, str]) -> str:
    return COLLECTIONS[Role(role).value]


def to_record(role: Union[Role, str], document: Dict[str, Any]) -> AnyRecord:
    """Build the typed record for a stored document; the role comes from its collection."""
    return _record_adapter.validate_python({**document, "role": Role(role).value})
