# weeclass/core/export.py
"""
Detail-view fields and .docx export for one record.

Fields come out in the same fixed order as the input forms. Coded values
(scales, severities, flags) go through per-role label tables; empty fields
are left out.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Tuple

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from weeclass.core.constants import FORM_LABELS
from weeclass.core.records import AnyRecord
from weeclass.models import Role

FONT_NAME = "Malgun Gothic"
FONT_SIZE = Pt(12)
NO_DATE = "날짜 없음"

ORDERED_FIELDS = {
    Role.STUDENT: [
        "name",
        "grade_class",
        "reason",
        "peer_relation",
        "father_relation",
        "mother_relation",
        "self_perception",
        "current_emotion",
        "desired_change",
        "confidentiality",
        "date",
        "time",
    ],
    Role.PARENT: [
        "child_name",
        "grade_class",
        "relation",
        "contact",
        "desired_time",
        "worries",
        "examples",
        "onset_and_cause",
        "attempts_and_effects",
        "desired_change",
        "strengths",
        "favorite_activities",
        "medical_history",
        "medical_history_detail",
        "mother_relation_score",
        "father_relation_score",
        "temperament",
        "exceptional_situations",
        "note",
    ],
    Role.TEACHER: [
        "student_name",
        "grade_class",
        "referral_reason",
        "desired_change",
        "strengths",
        "favorite_activities",
        "peer_relation",
        "class_attitude",
        "learning_ability",
        "compliance",
        "inattention",
        "impulsivity",
        "aggression",
        "behavioral_examples",
        "emotions",
        "other_emotion_detail",
        "repetitive_behavior",
        "repetitive_behavior_detail",
        "frequency",
        "severity",
    ],
}

FIELD_LABELS = {
    "name": "이름",
    "student_name": "학생 이름",
    "child_name": "자녀 이름",
    "grade_class": "학년 / 반",
    "contact": "연락처",
    "relation": "학생과의 관계",
    # student
    "reason": "상담 신청 이유",
    "peer_relation": "친구 관계",
    "father_relation": "아빠와의 관계",
    "mother_relation": "엄마와의 관계",
    "self_perception": "나 자신에 대한 생각",
    "current_emotion": "요즘 나의 감정",
    "confidentiality": "상담 사실을 알려도 되는 사람",
    "date": "희망 날짜",
    "time": "희망 시간",
    # parent
    "desired_time": "상담 희망 시간",
    "worries": "아이에 대해서 걱정되는 것",
    "examples": "학생의 모습에 대한 실제 사례",
    "onset_and_cause": "문제의 시작 시점과 원인",
    "attempts_and_effects": "지금까지 시도해 본 해결 방법과 그 효과",
    "strengths": "학생의 강점",
    "favorite_activities": "학생이 좋아하는 활동",
    "medical_history": "병원 진료 또는 상담 경험 유무",
    "medical_history_detail": "진료 또는 상담 경험 내용",
    "mother_relation_score": "엄마와의 관계 점수",
    "father_relation_score": "아빠와의 관계 점수",
    "temperament": "아동의 기질적 특성",
    "exceptional_situations": "예외적 상황 (긍정적 자원)",
    "note": "참고",
    # teacher
    "referral_reason": "의뢰 사유",
    "class_attitude": "수업 태도",
    "learning_ability": "학습 능력",
    "compliance": "교사 지시 순응도",
    "inattention": "부주의함",
    "impulsivity": "충동성",
    "aggression": "공격성",
    "behavioral_examples": "학생의 모습에 대한 실제 사례",
    "emotions": "정서 상태 (주된 정서)",
    "other_emotion_detail": "기타 정서 내용",
    "repetitive_behavior": "교실에서 눈에 띄는 반복 행동이 있나요?",
    "repetitive_behavior_detail": "반복 행동 내용",
    "frequency": "문제 상황의 빈도",
    "severity": "문제 상황의 심각성",
}

STUDENT_SCALE = ["-", "힘들어요", "별로예요", "그저 그래요", "좋아요", "정말 좋아요"]
TEACHER_SCALE = ["-", "매우 나쁨", "나쁨", "보통", "좋음", "매우 좋음"]
SEVERITY_LABELS = {"mild": "양호함", "moderate": "조금 심함", "severe": "매우 심함"}

STUDENT_SCALE_FIELDS = {"peer_relation", "father_relation", "mother_relation"}
TEACHER_SCALE_FIELDS = {"peer_relation", "class_attitude", "learning_ability", "compliance"}
SEVERITY_FIELDS = {"inattention", "impulsivity", "aggression"}


def field_label(key: str, role: Role) -> str:
    if key == "desired_change":
        return "변화되고 싶은 점" if role == Role.STUDENT else "상담을 통해 기대하는 변화"
    return FIELD_LABELS.get(key, key)


def is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def format_value(key: str, value: Any, role: Role) -> str:
    if is_empty(value):
        return "-"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)

    if role == Role.STUDENT and key in STUDENT_SCALE_FIELDS:
        return _scale_label(STUDENT_SCALE, value)
    if role == Role.PARENT:
        if key.endswith("_score"):
            return f"{value}점"
        if key == "medical_history":
            return "예" if value else "아니오"
    if role == Role.TEACHER:
        if key in TEACHER_SCALE_FIELDS:
            return _scale_label(TEACHER_SCALE, value)
        if key in SEVERITY_FIELDS:
            return SEVERITY_LABELS.get(str(value), str(value))
        if key == "repetitive_behavior":
            return "있음" if value else "없음"
    return str(value)


def _scale_label(table: List[str], value: Any) -> str:
    try:
        index = int(value)
    except (TypeError, ValueError):
        return str(value)
    if 1 <= index < len(table):
        return table[index]
    return f"{value}점"


def detail_fields(record: AnyRecord) -> List[Tuple[str, str, str]]:
    """(key, label, formatted value) for every populated field, in form order."""
    role = Role(record.role)
    rows = []
    for key in ORDERED_FIELDS[role]:
        value = getattr(record, key, None)
        if is_empty(value):
            continue
        rows.append((key, field_label(key, role), format_value(key, value, role)))
    return rows


def format_date(created_at: Optional[datetime]) -> str:
    if created_at is None:
        return NO_DATE
    return f"{created_at.year}. {created_at.month}. {created_at.day}."


def document_title(record: AnyRecord) -> str:
    return f"{record.subject_name} - {FORM_LABELS[record.role]}"


@dataclass
class ExportedDocument:
    filename: str
    content: bytes
    media_type: str = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _styled_run(paragraph, text: str, bold: bool = False) -> None:
    run = paragraph.add_run(text)
    run.bold = bold
    run.font.size = FONT_SIZE
    run.font.name = FONT_NAME


def export_record(record: AnyRecord) -> ExportedDocument:
    doc = Document()

    heading = doc.add_heading(document_title(record), level=1)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER

    date_para = doc.add_paragraph(f"신청일: {format_date(record.created_at)}")
    date_para.alignment = WD_ALIGN_PARAGRAPH.RIGHT

    doc.add_paragraph()

    for _key, label, value in detail_fields(record):
        label_para = doc.add_paragraph()
        label_para.paragraph_format.space_before = Pt(10)
        _styled_run(label_para, f"■ {label}", bold=True)

        value_para = doc.add_paragraph()
        value_para.paragraph_format.space_after = Pt(10)
        _styled_run(value_para, value)

    buffer = io.BytesIO()
    doc.save(buffer)
    return ExportedDocument(
        filename=f"{record.subject_name}_{FORM_LABELS[record.role]}.docx",
        content=buffer.getvalue(),
    )
