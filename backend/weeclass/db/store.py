# backend/weeclass/db/store.py
"""
Record store adapters.

Both adapters speak in plain documents: a dict of the role's form fields plus
`id`, `status` and `created_at`. `SqlRecordStore` persists through SQLAlchemy,
`MemoryRecordStore` keeps everything in process (demo mode and tests).
"""

import copy
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import NoResultFound, OperationalError, ProgrammingError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from weeclass import models
from weeclass.core.errors import (
    DemoModeError,
    RecordNotFound,
    StoreError,
    StorePermissionError,
    StoreQueryError,
)
from weeclass.core.security.encryption import PayloadCipher

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for "insufficient privilege"
_PG_PERMISSION_DENIED = "42501"

# Only status is writable after creation
UPDATABLE_FIELDS = {"status"}
SYSTEM_FIELDS = {"id", "status", "created_at"}


class RecordStore(Protocol):
    read_only: bool

    def create(self, collection: str, data: Dict[str, Any]) -> str: ...

    def list(
        self,
        collection: str,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 50,
    ) -> List[Dict[str, Any]]: ...

    def get(self, collection: str, record_id: str) -> Dict[str, Any]: ...

    def update(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None: ...

    def delete(self, collection: str, record_id: str) -> None: ...

    def get_config(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set_config(self, key: str, data: Dict[str, Any]) -> None: ...


def _check_update_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    extra = set(fields) - UPDATABLE_FIELDS
    if extra:
        raise ValueError(f"Fields are write-once: {sorted(extra)}")
    if "status" in fields:
        fields = dict(fields, status=models.RecordStatus(fields["status"]).value)
    return fields


def _translate(exc: SQLAlchemyError) -> StoreError:
    pgcode = getattr(getattr(exc, "orig", None), "pgcode", None)
    if pgcode == _PG_PERMISSION_DENIED:
        return StorePermissionError(str(exc.orig))
    if isinstance(exc, (OperationalError, ProgrammingError)):
        return StoreQueryError(str(exc.orig) if exc.orig is not None else str(exc))
    return StoreError(str(exc))


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlRecordStore:
    read_only = False

    def __init__(self, session_factory: sessionmaker, cipher: Optional[PayloadCipher] = None):
        self._session_factory = session_factory
        self._cipher = cipher or PayloadCipher()

    def _to_document(self, row: models.RecordDocument) -> Dict[str, Any]:
        doc = json.loads(self._cipher.decrypt_text(row.payload))
        doc["id"] = row.id
        doc["status"] = row.status.value if row.status else models.RecordStatus.AWAITING.value
        doc["created_at"] = _as_utc(row.created_at)
        return doc

    def create(self, collection: str, data: Dict[str, Any]) -> str:
        payload = {k: v for k, v in data.items() if k not in SYSTEM_FIELDS}
        status = models.RecordStatus(data.get("status", models.RecordStatus.AWAITING))
        row = models.RecordDocument(
            collection=collection,
            payload=self._cipher.encrypt_text(json.dumps(payload, ensure_ascii=False)),
            status=status,
        )
        try:
            with self._session_factory() as db:
                db.add(row)
                db.commit()
                db.refresh(row)
                record_id = row.id
        except SQLAlchemyError as exc:
            logger.error("create failed in %s: %s", collection, exc)
            raise _translate(exc) from exc
        logger.info("created %s/%s", collection, record_id)
        return record_id

    def list(
        self,
        collection: str,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        column = getattr(models.RecordDocument, order_by, None)
        if column is None or order_by == "payload":
            raise StoreQueryError(f"No index for ordering by {order_by!r}")
        ordering = column.desc() if descending else column.asc()
        try:
            with self._session_factory() as db:
                rows = (
                    db.query(models.RecordDocument)
                    .filter(models.RecordDocument.collection == collection)
                    .order_by(ordering)
                    .limit(limit)
                    .all()
                )
                return [self._to_document(r) for r in rows]
        except SQLAlchemyError as exc:
            logger.error("list failed in %s: %s", collection, exc)
            raise _translate(exc) from exc

    def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        try:
            with self._session_factory() as db:
                row = (
                    db.query(models.RecordDocument)
                    .filter(
                        models.RecordDocument.collection == collection,
                        models.RecordDocument.id == record_id,
                    )
                    .one()
                )
                return self._to_document(row)
        except NoResultFound:
            raise RecordNotFound(collection, record_id)
        except SQLAlchemyError as exc:
            raise _translate(exc) from exc

    def update(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        fields = _check_update_fields(fields)
        try:
            with self._session_factory() as db:
                row = (
                    db.query(models.RecordDocument)
                    .filter(
                        models.RecordDocument.collection == collection,
                        models.RecordDocument.id == record_id,
                    )
                    .first()
                )
                if row is None:
                    raise RecordNotFound(collection, record_id)
                if "status" in fields:
                    row.status = models.RecordStatus(fields["status"])
                db.commit()
        except SQLAlchemyError as exc:
            logger.error("update failed for %s/%s: %s", collection, record_id, exc)
            raise _translate(exc) from exc

    def delete(self, collection: str, record_id: str) -> None:
        # Deleting a missing record is not an error
        try:
            with self._session_factory() as db:
                (
                    db.query(models.RecordDocument)
                    .filter(
                        models.RecordDocument.collection == collection,
                        models.RecordDocument.id == record_id,
                    )
                    .delete(synchronize_session=False)
                )
                db.commit()
        except SQLAlchemyError as exc:
            logger.error("delete failed for %s/%s: %s", collection, record_id, exc)
            raise _translate(exc) from exc
        logger.info("deleted %s/%s", collection, record_id)

    def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._session_factory() as db:
                row = db.get(models.ConfigDocument, key)
                return dict(row.data or {}) if row else None
        except SQLAlchemyError as exc:
            raise _translate(exc) from exc

    def set_config(self, key: str, data: Dict[str, Any]) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(models.ConfigDocument, key)
                if row is None:
                    db.add(models.ConfigDocument(key=key, data=dict(data)))
                else:
                    row.data = dict(data)
                db.commit()
        except SQLAlchemyError as exc:
            logger.error("config write failed for %s: %s", key, exc)
            raise _translate(exc) from exc


class MemoryRecordStore:
    """
    In-process store. With read_only=True (demo mode) creates and config writes
    are refused, while status changes and deletes only touch this process.
    """

    def __init__(
        self,
        seed: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        read_only: bool = False,
    ):
        self.read_only = read_only
        self._lock = threading.Lock()
        self._docs: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._config: Dict[str, Dict[str, Any]] = {}
        for collection, docs in (seed or {}).items():
            bucket = self._docs.setdefault(collection, {})
            for doc in docs:
                doc = copy.deepcopy(doc)
                doc.setdefault("id", str(uuid.uuid4()))
                doc.setdefault("status", models.RecordStatus.AWAITING.value)
                bucket[doc["id"]] = doc

    def create(self, collection: str, data: Dict[str, Any]) -> str:
        if self.read_only:
            raise DemoModeError("demo mode: records are not persisted")
        doc = {k: copy.deepcopy(v) for k, v in data.items() if k not in SYSTEM_FIELDS}
        doc["id"] = str(uuid.uuid4())
        doc["status"] = models.RecordStatus(data.get("status", models.RecordStatus.AWAITING)).value
        doc["created_at"] = datetime.now(timezone.utc)
        with self._lock:
            self._docs.setdefault(collection, {})[doc["id"]] = doc
        return doc["id"]

    def list(
        self,
        collection: str,
        order_by: str = "created_at",
        descending: bool = True,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            docs = [copy.deepcopy(d) for d in self._docs.get(collection, {}).values()]
        # documents without the ordering field are left out, as a document store would
        docs = [d for d in docs if d.get(order_by) is not None]
        docs.sort(key=lambda d: d[order_by], reverse=descending)
        return docs[:limit]

    def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        with self._lock:
            doc = self._docs.get(collection, {}).get(record_id)
            if doc is None:
                raise RecordNotFound(collection, record_id)
            return copy.deepcopy(doc)

    def update(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        fields = _check_update_fields(fields)
        with self._lock:
            doc = self._docs.get(collection, {}).get(record_id)
            if doc is None:
                raise RecordNotFound(collection, record_id)
            doc.update(fields)

    def delete(self, collection: str, record_id: str) -> None:
        with self._lock:
            self._docs.get(collection, {}).pop(record_id, None)

    def get_config(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._config.get(key)
            return dict(data) if data is not None else None

    def set_config(self, key: str, data: Dict[str, Any]) -> None:
        if self.read_only:
            raise DemoModeError("demo mode: settings are not persisted")
        with self._lock:
            self._config[key] = dict(data)
