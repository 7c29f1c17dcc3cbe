# backend/weeclass/db/sample_data.py
# Sample submissions shown in demo mode (no DATABASE_URL configured).

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from weeclass.core.constants import (
    COLLECTIONS,
    CONFIDENTIALITY_GUARDIAN,
    CONFIDENTIALITY_HOMEROOM,
    CONFIDENTIALITY_NONE,
)
from weeclass.models import RecordStatus


def demo_records() -> Dict[str, List[Dict[str, Any]]]:
    now = datetime.now(timezone.utc)
    yesterday = now - timedelta(days=1)

    return {
        COLLECTIONS["student"]: [
            {
                "id": "demo-s-1",
                "name": "김철수",
                "grade_class": "3학년 2반",
                "reason": "친구들이 자꾸 저를 놀려서 학교 가기가 싫어요. 어떻게 해야 할지 모르겠어요.",
                "peer_relation": 1,
                "father_relation": 4,
                "mother_relation": 5,
                "confidentiality": [CONFIDENTIALITY_GUARDIAN, CONFIDENTIALITY_HOMEROOM],
                "status": RecordStatus.AWAITING.value,
                "created_at": now,
            },
            {
                "id": "demo-s-2",
                "name": "이영희",
                "grade_class": "6학년 1반",
                "reason": "중학교 올라가는 게 너무 걱정돼요. 공부도 어렵고...",
                "peer_relation": 4,
                "father_relation": 3,
                "mother_relation": 3,
                "confidentiality": [CONFIDENTIALITY_NONE],
                "status": RecordStatus.COMPLETED.value,
                "created_at": yesterday,
            },
        ],
        COLLECTIONS["parent"]: [
            {
                "id": "demo-p-1",
                "child_name": "박민수",
                "grade_class": "1학년 3반",
                "relation": "엄마",
                "worries": "아이가 너무 산만하고 집중을 못하는 것 같아요. 집에서도 가만히 있지를 못합니다.",
                "desired_change": "차분하게 앉아서 과제를 할 수 있으면 좋겠어요.",
                "contact": "010-1234-5678",
                "mother_relation_score": 5,
                "father_relation_score": 5,
                "status": RecordStatus.AWAITING.value,
                "created_at": now,
            },
        ],
        COLLECTIONS["teacher"]: [
            {
                "id": "demo-t-1",
                "student_name": "최동욱",
                "grade_class": "4학년 5반",
                "referral_reason": "수업 시간에 소리를 지르거나 돌아다니는 행동이 잦습니다. 친구들과의 다툼도 자주 발생합니다.",
                "desired_change": "수업 규칙을 지키고 친구들과 원만하게 지내기를 바랍니다.",
                "emotions": ["분노", "짜증"],
                "repetitive_behavior": False,
                "status": RecordStatus.AWAITING.value,
                "created_at": now,
            },
        ],
    }
