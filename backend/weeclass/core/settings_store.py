# weeclass/core/settings_store.py
# Singleton config documents kept in the `config` collection.

import logging
from typing import Optional

from weeclass.core.constants import CONFIG_KEYS
from weeclass.core.errors import StoreError
from weeclass.db.store import RecordStore
from weeclass.schemas import NotificationSettings, TeacherPasswordSettings

logger = logging.getLogger(__name__)


def get_notification_settings(store: RecordStore) -> Optional[NotificationSettings]:
    data = store.get_config(CONFIG_KEYS["NOTIFICATIONS"])
    if data is None:
        return None
    return NotificationSettings(**data)


def save_notification_settings(store: RecordStore, settings: NotificationSettings) -> NotificationSettings:
    cleaned = NotificationSettings(
        webhook_url=settings.webhook_url.strip(),
        is_enabled=settings.is_enabled,
    )
    store.set_config(CONFIG_KEYS["NOTIFICATIONS"], cleaned.model_dump())
    return cleaned


def get_teacher_access_code(store: RecordStore, default: str) -> str:
    """Shared teacher code; falls back to `default` when the config is missing or unreadable."""
    try:
        data = store.get_config(CONFIG_KEYS["TEACHER_AUTH"])
    except StoreError as exc:
        logger.warning("teacher access config unreadable, using default: %s", exc)
        return default
    if not data or not data.get("password"):
        return default
    return str(data["password"])


def save_teacher_access_code(store: RecordStore, settings: TeacherPasswordSettings) -> None:
    store.set_config(CONFIG_KEYS["TEACHER_AUTH"], {"password": settings.password})
