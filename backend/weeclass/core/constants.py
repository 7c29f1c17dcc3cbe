# weeclass/core/constants.py

COLLECTIONS = {
    "student": "counseling_student",
    "parent": "counseling_parent",
    "teacher": "counseling_teacher",
}

CONFIG_KEYS = {
    "NOTIFICATIONS": "notifications",
    "TEACHER_AUTH": "teacher_auth",
}

ADMIN_LOGIN_PATH = "/admin/login"

# Form-type labels used in the detail view and exported documents
FORM_LABELS = {
    "student": "학생 상담 신청서",
    "parent": "학부모 상담 신청서",
    "teacher": "교사 상담 의뢰서",
}

CONFIDENTIALITY_GUARDIAN = "부모님"
CONFIDENTIALITY_HOMEROOM = "담임 선생님"
CONFIDENTIALITY_NONE = "알리고 싶지 않음"
CONFIDENTIALITY_OPTIONS = [
    CONFIDENTIALITY_GUARDIAN,
    CONFIDENTIALITY_HOMEROOM,
    CONFIDENTIALITY_NONE,
]

TEACHER_EMOTIONS = [
    "불안",
    "우울",
    "분노",
    "위축",
    "무기력",
    "짜증",
    "기쁨",
    "평온",
    "예민함",
    "기타",
]

# Required fields per role, in form order, with the label shown to the user
REQUIRED_FIELDS = {
    "student": [
        ("name", "이름"),
        ("grade_class", "학년/반"),
        ("reason", "상담 신청 이유"),
    ],
    "parent": [
        ("child_name", "자녀 이름"),
        ("grade_class", "학년/반"),
        ("worries", "걱정되는 점"),
        ("desired_change", "기대하는 변화"),
    ],
    "teacher": [
        ("student_name", "학생 이름"),
        ("grade_class", "학년/반"),
        ("referral_reason", "의뢰 사유"),
        ("desired_change", "기대하는 변화"),
    ],
}

MESSAGES = {
    "SUBMITTED": "상담 신청 완료!",
    "INDEX_MISSING": "데이터베이스 인덱스 생성이 필요합니다. 서버 로그를 확인해주세요.",
    "PERMISSION_DENIED": "접근 권한이 없습니다.",
    "LOAD_FAILED": "신청 내역을 불러오지 못했습니다.",
    "STATUS_FAILED": "상태 변경에 실패했습니다.",
    "DELETE_FAILED": "삭제에 실패했습니다.",
    "WRONG_TEACHER_CODE": "비밀번호가 일치하지 않습니다.",
    "WRONG_CREDENTIALS": "이메일 또는 비밀번호가 일치하지 않습니다.",
    "DEMO_MODE": "체험 모드에서는 데이터가 저장되지 않습니다.",
    "STORE_FAILED": "오류가 발생했습니다. 잠시 후 다시 시도해주세요.",
}
