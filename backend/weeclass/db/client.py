# backend/weeclass/db/client.py

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from weeclass.core.config import Settings
from weeclass.core.security.encryption import PayloadCipher
from weeclass.core.security.session import AuthGate, AuthService
from weeclass.db.base import Base, make_engine, make_session_factory
from weeclass.db.sample_data import demo_records
from weeclass.db.store import MemoryRecordStore, RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Holds the store and auth handles for one running app.

    Built once in the app lifespan (or a test fixture) and handed to whatever
    needs it; nothing here lives at module level.
    """

    def __init__(self, settings: Settings, store: Optional[RecordStore] = None):
        self.settings = settings
        self._injected_store = store
        self.engine: Optional[Engine] = None
        self.store: Optional[RecordStore] = None
        self.auth = AuthService(settings, demo_mode=self.demo_mode)
        self.gate: Optional[AuthGate] = None

    @property
    def demo_mode(self) -> bool:
        if self._injected_store is not None:
            return self._injected_store.read_only
        return self.settings.demo_mode

    def open(self, create_tables: bool = False) -> "BackendClient":
        if self._injected_store is not None:
            self.store = self._injected_store
        elif self.demo_mode:
            logger.warning("DATABASE_URL not set: running in demo mode, nothing is persisted")
            self.store = MemoryRecordStore(demo_records(), read_only=True)
        else:
            self.engine = make_engine(self.settings.DATABASE_URL)
            if create_tables:
                # models register themselves on Base.metadata
                from weeclass import models  # noqa: F401

                Base.metadata.create_all(bind=self.engine)
            cipher = PayloadCipher(self.settings.RECORD_FERNET_KEY)
            self.store = SqlRecordStore(make_session_factory(self.engine), cipher=cipher)
            logger.info(
                "record store connected (payload encryption %s)", "on" if cipher.enabled else "off"
            )

        self.gate = AuthGate(self.auth)
        self.auth.start()
        return self

    def close(self) -> None:
        self.auth.stop()
        if self.gate is not None:
            self.gate.close()
            self.gate = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
        self.store = None

    def __enter__(self) -> "BackendClient":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()
