"""Best-effort webhook alerts for new submissions."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

import requests

from weeclass.core.settings_store import get_notification_settings
from weeclass.db.store import RecordStore
from weeclass.models import Role

logger = logging.getLogger(__name__)

TEXT_LIMIT = 200
EMPTY_TEXT = "내용 없음"
FOOTER_TEXT = "Wee Class 알림 시스템"

# Decimal embed colors
COLORS = {
    Role.STUDENT: 3447003,
    Role.PARENT: 15844367,
    Role.TEACHER: 9327824,
}

TITLES = {
    Role.STUDENT: "😊 학생 상담 신청이 도착했습니다!",
    Role.PARENT: "🏠 학부모 상담 신청이 도착했습니다!",
    Role.TEACHER: "🏫 교사 상담 의뢰가 도착했습니다!",
}

# (label, field) lines shown in the message body
LINES = {
    Role.STUDENT: [("이름", "name"), ("학년/반", "grade_class"), ("신청 사유", "reason")],
    Role.PARENT: [
        ("자녀 이름", "child_name"),
        ("신청자", "relation"),
        ("연락처", "contact"),
        ("걱정되는 점", "worries"),
    ],
    Role.TEACHER: [
        ("학생 이름", "student_name"),
        ("학년/반", "grade_class"),
        ("의뢰 사유", "referral_reason"),
    ],
}


def truncate(value: Any, limit: int = TEXT_LIMIT) -> str:
    """Render a field for the message, cutting long free text to ``limit`` characters."""
    if value is None or value == "" or value == []:
        return EMPTY_TEXT
    text = str(value)
    return text[:limit] + "..." if len(text) > limit else text


def build_payload(
    role: Union[Role, str], data: Mapping[str, Any], now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Embed-style webhook body for one submission."""
    role = Role(role)
    description = "\n".join(f"**{label}:** {truncate(data.get(field))}" for label, field in LINES[role])
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "embeds": [
            {
                "title": TITLES[role],
                "description": description,
                "color": COLORS[role],
                "timestamp": timestamp,
                "footer": {"text": FOOTER_TEXT},
            }
        ]
    }


def send_notification(
    store: RecordStore,
    role: Union[Role, str],
    data: Mapping[str, Any],
    timeout: float = 10.0,
    session: Optional[requests.Session] = None,
) -> bool:
    """Post a new-submission alert if notifications are enabled.

    Never raises: a failed alert must not affect the submission that triggered
    it. Returns True when a request was sent. A caller-supplied session is left
    open; otherwise a session is opened and closed for this one request.
    """
    try:
        config = get_notification_settings(store)
        if config is None or not config.is_enabled or not config.webhook_url.strip():
            return False

        url = config.webhook_url.strip()
        payload = build_payload(role, data)
        # response is not inspected
        if session is not None:
            session.post(url, json=payload, timeout=timeout)
        else:
            with requests.Session() as http:
                http.post(url, json=payload, timeout=timeout)
        return True
    except Exception:
        logger.exception("Failed to send %s notification", getattr(role, "value", role))
        return False
