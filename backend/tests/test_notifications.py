from datetime import datetime, timezone
from unittest import mock

import requests

from weeclass.core.notifications import (
    COLORS,
    EMPTY_TEXT,
    FOOTER_TEXT,
    build_payload,
    send_notification,
    truncate,
)
from weeclass.models import Role

HOOK = "https://discord.example/api/webhooks/1/abc"


def _enable(store, url=HOOK, enabled=True):
    store.set_config("notifications", {"webhook_url": url, "is_enabled": enabled})


def test_truncate():
    assert truncate("가" * 200) == "가" * 200
    assert truncate("가" * 201) == "가" * 200 + "..."
    assert truncate("") == EMPTY_TEXT
    assert truncate(None) == EMPTY_TEXT


def test_build_payload_for_each_role():
    now = datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc)
    payload = build_payload(Role.PARENT, {"child_name": "박민수", "relation": "엄마", "worries": ""}, now=now)

    embed = payload["embeds"][0]
    assert embed["color"] == COLORS[Role.PARENT] == 15844367
    assert embed["timestamp"] == now.isoformat()
    assert embed["footer"] == {"text": FOOTER_TEXT}
    assert embed["description"].splitlines() == [
        "**자녀 이름:** 박민수",
        "**신청자:** 엄마",
        f"**연락처:** {EMPTY_TEXT}",
        f"**걱정되는 점:** {EMPTY_TEXT}",
    ]

    assert build_payload("student", {})["embeds"][0]["color"] == 3447003
    assert build_payload("teacher", {})["embeds"][0]["color"] == 9327824


def test_long_reason_is_cut_in_message():
    payload = build_payload(Role.STUDENT, {"name": "김철수", "reason": "a" * 300})
    assert "a" * 200 + "..." in payload["embeds"][0]["description"]
    assert "a" * 201 not in payload["embeds"][0]["description"]


def test_no_config_means_no_request(memory_store):
    session = mock.Mock()
    assert send_notification(memory_store, Role.STUDENT, {"name": "x"}, session=session) is False
    session.post.assert_not_called()


def test_disabled_or_blank_url_means_no_request(memory_store):
    session = mock.Mock()
    _enable(memory_store, enabled=False)
    assert not send_notification(memory_store, Role.STUDENT, {}, session=session)

    _enable(memory_store, url="   ")
    assert not send_notification(memory_store, Role.STUDENT, {}, session=session)
    session.post.assert_not_called()


def test_enabled_posts_payload(memory_store):
    session = mock.Mock()
    _enable(memory_store, url=f"  {HOOK} ")

    assert send_notification(memory_store, Role.TEACHER, {"student_name": "최동욱"}, timeout=3, session=session)

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == (HOOK,)
    assert kwargs["timeout"] == 3
    assert kwargs["json"]["embeds"][0]["color"] == COLORS[Role.TEACHER]


def test_own_session_is_closed_after_posting(memory_store):
    _enable(memory_store)
    with mock.patch("weeclass.core.notifications.requests.Session") as session_cls:
        http = session_cls.return_value.__enter__.return_value
        assert send_notification(memory_store, Role.STUDENT, {"name": "김철수"}) is True

    http.post.assert_called_once()
    session_cls.return_value.__exit__.assert_called_once()


def test_delivery_errors_are_swallowed(memory_store):
    _enable(memory_store)
    with mock.patch("weeclass.core.notifications.requests.Session") as session_cls:
        http = session_cls.return_value.__enter__.return_value
        http.post.side_effect = requests.ConnectionError("down")
        assert send_notification(memory_store, Role.STUDENT, {"name": "김철수"}) is False
        http.post.assert_called_once()
        # the session is still closed when the post fails
        session_cls.return_value.__exit__.assert_called_once()


def test_unreadable_config_is_swallowed(flaky_store):
    with mock.patch.object(flaky_store, "get_config", side_effect=RuntimeError("boom")):
        assert send_notification(flaky_store, Role.PARENT, {}) is False
