# weeclass/core/workspace.py
"""
Admin review workspace: one tab of recent submissions per role, with a
detail view, status changes, single and bulk delete, and export.

Local changes are applied in two phases: the list (and open detail) is
updated first, then the store call runs; if the store call fails the local
change is rolled back and a banner message is set.
"""

import enum
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from pydantic import ValidationError

from weeclass.core.constants import MESSAGES
from weeclass.core.errors import StoreError, StorePermissionError, StoreQueryError
from weeclass.core.export import ExportedDocument, export_record
from weeclass.core.records import AnyRecord, collection_for, to_record
from weeclass.db.store import RecordStore
from weeclass.models import RecordStatus, Role

logger = logging.getLogger(__name__)

MAX_BULK_WORKERS = 8


class BulkDeleteState(str, enum.Enum):
    IDLE = "idle"
    CONFIRM_PENDING = "confirm_pending"


@dataclass
class BulkDeleteResult:
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    executed: bool = True


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

SORT_KEYS: Dict[str, Callable[[AnyRecord], object]] = {
    "created_at": lambda r: r.created_at or _EPOCH,
    "status": lambda r: r.status.value,
    "subject_name": lambda r: r.subject_name,
}


class ReviewWorkspace:
    def __init__(self, store: RecordStore, fetch_limit: int = 50, role: Union[Role, str] = Role.STUDENT):
        self._store = store
        self._fetch_limit = fetch_limit
        self._lock = threading.RLock()

        self.active_role: Role = Role(role)
        self.records: List[AnyRecord] = []
        self.selected_ids: Set[str] = set()
        self.detail: Optional[AnyRecord] = None
        self.pending_delete_id: Optional[str] = None
        self.bulk_state = BulkDeleteState.IDLE
        self.banner: Optional[str] = None
        self.sort_key = "created_at"
        self.sort_desc = True
        self.loaded = False

    @property
    def collection(self) -> str:
        return collection_for(self.active_role)

    @property
    def can_select_all(self) -> bool:
        return len(self.records) > 0

    @property
    def all_selected(self) -> bool:
        return self.can_select_all and len(self.selected_ids) == len(self.records)

    def find(self, record_id: str) -> Optional[AnyRecord]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def _index_of(self, record_id: str) -> int:
        for i, record in enumerate(self.records):
            if record.id == record_id:
                return i
        return -1

    def _reset_selection(self) -> None:
        self.selected_ids = set()
        self.bulk_state = BulkDeleteState.IDLE

    # -----------------------------
    # loading
    # -----------------------------
    def load_tab(self, role: Union[Role, str]) -> List[AnyRecord]:
        with self._lock:
            self.active_role = Role(role)
            self.detail = None
            self.pending_delete_id = None
            return self._fetch()

    def refresh(self) -> List[AnyRecord]:
        with self._lock:
            return self._fetch()

    def _fetch(self) -> List[AnyRecord]:
        self.records = []
        self.sort_key, self.sort_desc = "created_at", True
        self._reset_selection()
        self.banner = None
        self.loaded = True
        try:
            documents = self._store.list(
                self.collection, order_by="created_at", descending=True, limit=self._fetch_limit
            )
        except StoreQueryError as exc:
            logger.error("loading %s failed (query/index): %s", self.collection, exc)
            self.banner = MESSAGES["INDEX_MISSING"]
            return self.records
        except StorePermissionError as exc:
            logger.error("loading %s refused: %s", self.collection, exc)
            self.banner = MESSAGES["PERMISSION_DENIED"]
            return self.records
        except StoreError as exc:
            logger.error("loading %s failed: %s", self.collection, exc)
            self.banner = MESSAGES["LOAD_FAILED"]
            return self.records

        records = []
        for doc in documents:
            try:
                records.append(to_record(self.active_role, doc))
            except ValidationError as exc:
                logger.warning("skipping malformed %s document %s: %s", self.collection, doc.get("id"), exc)
        self.records = records
        return self.records

    def sort(self, key: str = "created_at", descending: bool = True) -> List[AnyRecord]:
        if key not in SORT_KEYS:
            raise ValueError(f"cannot sort by {key!r}")
        with self._lock:
            self.records.sort(key=SORT_KEYS[key], reverse=descending)
            self.sort_key, self.sort_desc = key, descending
            return self.records

    # -----------------------------
    # detail view
    # -----------------------------
    def open_detail(self, record_id: str) -> Optional[AnyRecord]:
        with self._lock:
            self.detail = self.find(record_id)
            self.pending_delete_id = None
            return self.detail

    def close_detail(self) -> None:
        with self._lock:
            self.detail = None
            self.pending_delete_id = None

    # -----------------------------
    # status
    # -----------------------------
    def toggle_status(self, record_id: str, new_status: Union[RecordStatus, str]) -> bool:
        new_status = RecordStatus(new_status)
        with self._lock:
            index = self._index_of(record_id)
            if index < 0:
                return False
            previous = self.records[index]
            updated = previous.model_copy(update={"status": new_status})

            # phase 1: tentative local change
            self.records[index] = updated
            detail_was_open = self.detail is not None and self.detail.id == record_id
            if detail_was_open:
                self.detail = updated

            # phase 2: persist, roll back on failure
            try:
                self._store.update(self.collection, record_id, {"status": new_status.value})
            except StoreError as exc:
                logger.error("status update failed for %s/%s: %s", self.collection, record_id, exc)
                current = self._index_of(record_id)
                if current >= 0:
                    self.records[current] = previous
                if detail_was_open and self.detail is not None and self.detail.id == record_id:
                    self.detail = previous
                self.banner = (
                    MESSAGES["PERMISSION_DENIED"]
                    if isinstance(exc, StorePermissionError)
                    else MESSAGES["STATUS_FAILED"]
                )
                return False
            return True

    # -----------------------------
    # single delete (request, then confirm)
    # -----------------------------
    def delete_one(self, record_id: str) -> bool:
        """First call arms the confirmation; a second call for the same id deletes."""
        with self._lock:
            if self.pending_delete_id != record_id:
                self.pending_delete_id = record_id
                return False
            self.pending_delete_id = None

            index = self._index_of(record_id)
            removed = self.records.pop(index) if index >= 0 else None
            was_selected = record_id in self.selected_ids
            self.selected_ids.discard(record_id)
            self.bulk_state = BulkDeleteState.IDLE
            detail_was_open = self.detail is not None and self.detail.id == record_id
            if detail_was_open:
                self.detail = None

            try:
                self._store.delete(self.collection, record_id)
            except StoreError as exc:
                logger.error("delete failed for %s/%s: %s", self.collection, record_id, exc)
                if removed is not None:
                    self.records.insert(index, removed)
                    if was_selected:
                        self.selected_ids.add(record_id)
                    if detail_was_open:
                        self.detail = removed
                self.banner = (
                    MESSAGES["PERMISSION_DENIED"]
                    if isinstance(exc, StorePermissionError)
                    else MESSAGES["DELETE_FAILED"]
                )
                return False
            # clear selection after any delete
            self._reset_selection()
            return True

    def cancel_delete(self) -> None:
        with self._lock:
            self.pending_delete_id = None

    # -----------------------------
    # selection
    # -----------------------------
    def select_all(self, checked: bool) -> Set[str]:
        with self._lock:
            if not self.can_select_all:
                return self.selected_ids
            self.selected_ids = {r.id for r in self.records} if checked else set()
            self.bulk_state = BulkDeleteState.IDLE
            return self.selected_ids

    def toggle_select(self, record_id: str) -> Set[str]:
        with self._lock:
            if self.find(record_id) is None:
                return self.selected_ids
            if record_id in self.selected_ids:
                self.selected_ids.discard(record_id)
            else:
                self.selected_ids.add(record_id)
            self.bulk_state = BulkDeleteState.IDLE
            return self.selected_ids

    # -----------------------------
    # bulk delete (idle -> confirm_pending -> executed | cancelled)
    # -----------------------------
    def request_bulk_delete(self) -> BulkDeleteState:
        with self._lock:
            if self.selected_ids:
                self.bulk_state = BulkDeleteState.CONFIRM_PENDING
            return self.bulk_state

    def cancel_bulk_delete(self) -> BulkDeleteState:
        with self._lock:
            self.bulk_state = BulkDeleteState.IDLE
            return self.bulk_state

    def bulk_delete(self) -> BulkDeleteResult:
        with self._lock:
            if self.bulk_state != BulkDeleteState.CONFIRM_PENDING or not self.selected_ids:
                return BulkDeleteResult(executed=False)

            ids = [r.id for r in self.records if r.id in self.selected_ids]
            collection = self.collection
            result = BulkDeleteResult()

            def _delete(record_id: str) -> Optional[StoreError]:
                try:
                    self._store.delete(collection, record_id)
                except StoreError as exc:
                    return exc
                return None

            workers = max(1, min(MAX_BULK_WORKERS, len(ids)))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(_delete, ids))

            for record_id, error in zip(ids, outcomes):
                if error is None:
                    result.deleted.append(record_id)
                else:
                    logger.error("bulk delete failed for %s/%s: %s", collection, record_id, error)
                    result.failed.append(record_id)

            deleted = set(result.deleted)
            self.records = [r for r in self.records if r.id not in deleted]
            if self.detail is not None and self.detail.id in deleted:
                self.detail = None
            if self.pending_delete_id in deleted:
                self.pending_delete_id = None
            self._reset_selection()

            if result.failed:
                self.banner = f"{len(result.failed)}건을 삭제하지 못했습니다."
            logger.info(
                "bulk delete in %s: %d deleted, %d failed",
                collection,
                len(result.deleted),
                len(result.failed),
            )
            return result

    # -----------------------------
    # export
    # -----------------------------
    def export_one(self, record: Union[AnyRecord, str]) -> ExportedDocument:
        if isinstance(record, str):
            found = self.find(record)
            if found is None:
                raise KeyError(record)
            record = found
        return export_record(record)


class WorkspaceRegistry:
    """
    One workspace per admin session (keyed by the session token's jti).

    Entries go away on sign-out, or on the next lookup after their token's
    `exp` has passed.
    """

    def __init__(
        self,
        store_provider: Callable[[], RecordStore],
        fetch_limit: int = 50,
        clock: Callable[[], float] = time.time,
    ):
        self._store_provider = store_provider
        self._fetch_limit = fetch_limit
        self._clock = clock
        self._lock = threading.Lock()
        self._workspaces: Dict[str, Tuple[ReviewWorkspace, Optional[float]]] = {}

    def _prune(self) -> None:
        now = self._clock()
        expired = [sid for sid, (_, exp) in self._workspaces.items() if exp is not None and exp <= now]
        for sid in expired:
            del self._workspaces[sid]
        if expired:
            logger.info("dropped %d expired admin workspace(s)", len(expired))

    def get(self, session_id: str, expires_at: Optional[float] = None) -> ReviewWorkspace:
        with self._lock:
            self._prune()
            entry = self._workspaces.get(session_id)
            if entry is None:
                workspace = ReviewWorkspace(self._store_provider(), fetch_limit=self._fetch_limit)
                self._workspaces[session_id] = (workspace, expires_at)
                return workspace
            return entry[0]

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._workspaces.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._workspaces)
