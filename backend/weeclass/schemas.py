from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal, Union, Annotated, Any, Dict
from datetime import datetime

from weeclass.core.constants import (
    CONFIDENTIALITY_NONE,
    CONFIDENTIALITY_OPTIONS,
    TEACHER_EMOTIONS,
)
from weeclass.models import RecordStatus

Severity = Literal["mild", "moderate", "severe"]


# --- Form payloads (what the applicant sends) ---
# Required text fields default to "" so the service can report every missing
# label at once instead of failing on the first one.

class StudentForm(BaseModel):
    name: str = ""
    grade_class: str = ""
    reason: str = ""
    peer_relation: int = Field(3, ge=1, le=5)
    father_relation: int = Field(3, ge=1, le=5)
    mother_relation: int = Field(3, ge=1, le=5)
    self_perception: str = ""
    current_emotion: str = ""
    desired_change: str = ""
    # default runs through the validator too: omitted means no-disclosure
    confidentiality: List[str] = Field(default_factory=list, validate_default=True)
    date: str = ""
    time: str = ""

    @field_validator("confidentiality")
    @classmethod
    def _check_confidentiality(cls, value: List[str]) -> List[str]:
        unknown = [v for v in value if v not in CONFIDENTIALITY_OPTIONS]
        if unknown:
            raise ValueError(f"unknown confidentiality option: {unknown}")
        # keep option order, drop duplicates
        chosen = [o for o in CONFIDENTIALITY_OPTIONS if o in value]
        if CONFIDENTIALITY_NONE in chosen and len(chosen) > 1:
            raise ValueError(f"'{CONFIDENTIALITY_NONE}' cannot be combined with other options")
        return chosen or [CONFIDENTIALITY_NONE]


class ParentForm(BaseModel):
    child_name: str = ""
    grade_class: str = ""
    relation: Literal["엄마", "아빠"] = "엄마"
    contact: str = ""
    desired_time: str = ""

    worries: str = ""
    examples: str = ""
    onset_and_cause: str = ""
    attempts_and_effects: str = ""
    desired_change: str = ""

    strengths: str = ""
    favorite_activities: str = ""

    medical_history: Optional[bool] = None
    medical_history_detail: str = ""
    mother_relation_score: int = Field(5, ge=1, le=10)
    father_relation_score: int = Field(5, ge=1, le=10)
    temperament: str = ""
    exceptional_situations: str = ""
    note: str = ""

    @model_validator(mode="after")
    def _drop_detail_without_history(self) -> "ParentForm":
        if not self.medical_history:
            self.medical_history_detail = ""
        return self


class TeacherForm(BaseModel):
    student_name: str = ""
    grade_class: str = ""
    referral_reason: str = ""
    desired_change: str = ""

    strengths: str = ""
    favorite_activities: str = ""

    # School life scale (1-5), may be left unselected
    peer_relation: Optional[int] = Field(None, ge=1, le=5)
    class_attitude: Optional[int] = Field(None, ge=1, le=5)
    learning_ability: Optional[int] = Field(None, ge=1, le=5)
    compliance: Optional[int] = Field(None, ge=1, le=5)

    inattention: Optional[Severity] = None
    impulsivity: Optional[Severity] = None
    aggression: Optional[Severity] = None
    behavioral_examples: str = ""

    emotions: List[str] = Field(default_factory=list)
    other_emotion_detail: str = ""

    repetitive_behavior: bool = False
    repetitive_behavior_detail: str = ""
    frequency: str = ""
    severity: str = ""

    @field_validator("emotions")
    @classmethod
    def _check_emotions(cls, value: List[str]) -> List[str]:
        unknown = [v for v in value if v not in TEACHER_EMOTIONS]
        if unknown:
            raise ValueError(f"unknown emotion: {unknown}")
        return [e for e in TEACHER_EMOTIONS if e in value]

    @model_validator(mode="after")
    def _drop_orphan_details(self) -> "TeacherForm":
        if "기타" not in self.emotions:
            self.other_emotion_detail = ""
        if not self.repetitive_behavior:
            self.repetitive_behavior_detail = ""
        return self


# --- Stored records (tagged union on `role`) ---

class _RecordMeta(BaseModel):
    id: str
    status: RecordStatus = RecordStatus.AWAITING
    created_at: Optional[datetime] = None


class StudentRecord(StudentForm, _RecordMeta):
    role: Literal["student"] = "student"

    @property
    def subject_name(self) -> str:
        return self.name


class ParentRecord(ParentForm, _RecordMeta):
    role: Literal["parent"] = "parent"

    @property
    def subject_name(self) -> str:
        return self.child_name


class TeacherRecord(TeacherForm, _RecordMeta):
    role: Literal["teacher"] = "teacher"

    @property
    def subject_name(self) -> str:
        return self.student_name


Record = Annotated[
    Union[StudentRecord, ParentRecord, TeacherRecord],
    Field(discriminator="role"),
]


# --- Request / response bodies ---

class SubmissionResponse(BaseModel):
    id: str
    status: str
    message: str
    redirect: str = "/"


class ConfidentialityToggle(BaseModel):
    current: List[str] = Field(default_factory=list)
    option: str
    checked: bool

    @field_validator("option")
    @classmethod
    def _known_option(cls, value: str) -> str:
        if value not in CONFIDENTIALITY_OPTIONS:
            raise ValueError(f"unknown confidentiality option: {value}")
        return value


class ConfidentialityOut(BaseModel):
    confidentiality: List[str]


class TeacherAccessRequest(BaseModel):
    code: str


class TeacherAccessResponse(BaseModel):
    access_token: str
    expires_in: int


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    email: str
    expires_at: datetime
    demo_mode: bool


class SessionOut(BaseModel):
    authenticated: bool
    email: Optional[str] = None
    demo_mode: bool


class StatusUpdate(BaseModel):
    status: RecordStatus


class SelectAllRequest(BaseModel):
    checked: bool


class SortRequest(BaseModel):
    key: Literal["created_at", "status", "subject_name"] = "created_at"
    descending: bool = True


class RecordRow(BaseModel):
    id: str
    role: str
    subject_name: str
    grade_class: str
    summary: str
    status: str
    created_at: Optional[datetime] = None
    selected: bool


class DetailField(BaseModel):
    key: str
    label: str
    value: str


class RecordDetail(BaseModel):
    id: str
    role: str
    title: str
    form_label: str
    status: str
    created_at: Optional[datetime] = None
    fields: List[DetailField]
    delete_pending: bool


class WorkspaceOut(BaseModel):
    role: str
    rows: List[RecordRow]
    total: int
    selected_ids: List[str]
    can_select_all: bool
    all_selected: bool
    bulk_state: str
    sort_key: str
    sort_desc: bool
    pending_delete_id: Optional[str] = None
    detail: Optional[RecordDetail] = None
    banner: Optional[str] = None
    demo_mode: bool


class DeleteOut(BaseModel):
    deleted: bool
    confirm_required: bool
    workspace: WorkspaceOut


class BulkDeleteOut(BaseModel):
    executed: bool
    deleted: List[str]
    failed: List[str]
    workspace: WorkspaceOut


class NotificationSettings(BaseModel):
    webhook_url: str = ""
    is_enabled: bool = False


class TeacherPasswordSettings(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("비밀번호를 입력해주세요.")
        return value


class HealthOut(BaseModel):
    backend: str
    store: str
    demo_mode: bool
    details: Dict[str, Any] = Field(default_factory=dict)
