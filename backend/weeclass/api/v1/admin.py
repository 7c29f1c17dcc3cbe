# backend/weeclass/api/v1/admin.py

from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response

from weeclass import schemas
from weeclass.core.constants import FORM_LABELS
from weeclass.core.deps.auth import get_client, get_store, get_workspace, require_admin
from weeclass.core.export import detail_fields, document_title
from weeclass.core.notifications import truncate
from weeclass.core.settings_store import (
    get_notification_settings,
    get_teacher_access_code,
    save_notification_settings,
    save_teacher_access_code,
)
from weeclass.core.workspace import ReviewWorkspace
from weeclass.db.client import BackendClient
from weeclass.db.store import RecordStore
from weeclass.models import Role

router = APIRouter(dependencies=[Depends(require_admin)])

SUMMARY_FIELDS = {
    "student": "reason",
    "parent": "worries",
    "teacher": "referral_reason",
}
SUMMARY_LIMIT = 80


def _detail_out(ws: ReviewWorkspace) -> schemas.RecordDetail | None:
    record = ws.detail
    if record is None:
        return None
    return schemas.RecordDetail(
        id=record.id,
        role=record.role,
        title=document_title(record),
        form_label=FORM_LABELS[record.role],
        status=record.status.value,
        created_at=record.created_at,
        fields=[
            schemas.DetailField(key=key, label=label, value=value)
            for key, label, value in detail_fields(record)
        ],
        delete_pending=ws.pending_delete_id == record.id,
    )


def _workspace_out(ws: ReviewWorkspace, client: BackendClient) -> schemas.WorkspaceOut:
    rows = [
        schemas.RecordRow(
            id=r.id,
            role=r.role,
            subject_name=r.subject_name,
            grade_class=r.grade_class,
            summary=truncate(getattr(r, SUMMARY_FIELDS[r.role], ""), SUMMARY_LIMIT),
            status=r.status.value,
            created_at=r.created_at,
            selected=r.id in ws.selected_ids,
        )
        for r in ws.records
    ]
    return schemas.WorkspaceOut(
        role=ws.active_role.value,
        rows=rows,
        total=len(rows),
        selected_ids=[r.id for r in ws.records if r.id in ws.selected_ids],
        can_select_all=ws.can_select_all,
        all_selected=ws.all_selected,
        bulk_state=ws.bulk_state.value,
        sort_key=ws.sort_key,
        sort_desc=ws.sort_desc,
        pending_delete_id=ws.pending_delete_id,
        detail=_detail_out(ws),
        banner=ws.banner,
        demo_mode=client.demo_mode,
    )


def _require_row(ws: ReviewWorkspace, record_id: str) -> None:
    if ws.find(record_id) is None:
        raise HTTPException(status_code=404, detail="Record not found in the current list")


# --------------------------------------
# 1) Tabs and list
# --------------------------------------
@router.get("/workspace", response_model=schemas.WorkspaceOut)
def get_workspace_state(
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    if not ws.loaded:
        ws.load_tab(ws.active_role)
    return _workspace_out(ws, client)


@router.post("/workspace/tab/{role}", response_model=schemas.WorkspaceOut)
def switch_tab(
    role: Role,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    """Switching tabs (or re-clicking the active one) reloads and clears the selection."""
    ws.load_tab(role)
    return _workspace_out(ws, client)


@router.post("/workspace/refresh", response_model=schemas.WorkspaceOut)
def refresh_workspace(
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    ws.refresh()
    return _workspace_out(ws, client)


@router.post("/workspace/sort", response_model=schemas.WorkspaceOut)
def sort_workspace(
    body: schemas.SortRequest,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    ws.sort(body.key, body.descending)
    return _workspace_out(ws, client)


# --------------------------------------
# 2) Detail view, status, delete
# --------------------------------------
@router.get("/records/{record_id}", response_model=schemas.WorkspaceOut)
def open_record(
    record_id: str,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    _require_row(ws, record_id)
    ws.open_detail(record_id)
    return _workspace_out(ws, client)


@router.post("/detail/close", response_model=schemas.WorkspaceOut)
def close_record(
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    ws.close_detail()
    return _workspace_out(ws, client)


@router.post("/records/{record_id}/status", response_model=schemas.WorkspaceOut)
def update_status(
    record_id: str,
    body: schemas.StatusUpdate,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    _require_row(ws, record_id)
    ws.toggle_status(record_id, body.status)
    return _workspace_out(ws, client)


@router.post("/records/{record_id}/delete", response_model=schemas.DeleteOut)
def delete_record(
    record_id: str,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    """First call asks for confirmation, the second one deletes."""
    _require_row(ws, record_id)
    armed_before = ws.pending_delete_id == record_id
    deleted = ws.delete_one(record_id)
    return schemas.DeleteOut(
        deleted=deleted,
        confirm_required=not armed_before,
        workspace=_workspace_out(ws, client),
    )


@router.post("/records/{record_id}/delete/cancel", response_model=schemas.WorkspaceOut)
def cancel_delete(
    record_id: str,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    if ws.pending_delete_id == record_id:
        ws.cancel_delete()
    return _workspace_out(ws, client)


@router.get("/records/{record_id}/export")
def export_record(
    record_id: str,
    ws: ReviewWorkspace = Depends(get_workspace),
):
    _require_row(ws, record_id)
    document = ws.export_one(record_id)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(document.filename)}"
        },
    )


# --------------------------------------
# 3) Selection and bulk delete
# --------------------------------------
@router.post("/selection/all", response_model=schemas.WorkspaceOut)
def select_all(
    body: schemas.SelectAllRequest,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    ws.select_all(body.checked)
    return _workspace_out(ws, client)


@router.post("/selection/{record_id}", response_model=schemas.WorkspaceOut)
def toggle_selection(
    record_id: str,
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    _require_row(ws, record_id)
    ws.toggle_select(record_id)
    return _workspace_out(ws, client)


@router.post("/bulk-delete/request", response_model=schemas.WorkspaceOut)
def request_bulk_delete(
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    ws.request_bulk_delete()
    return _workspace_out(ws, client)


@router.post("/bulk-delete/cancel", response_model=schemas.WorkspaceOut)
def cancel_bulk_delete(
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    ws.cancel_bulk_delete()
    return _workspace_out(ws, client)


@router.post("/bulk-delete/confirm", response_model=schemas.BulkDeleteOut)
def confirm_bulk_delete(
    ws: ReviewWorkspace = Depends(get_workspace),
    client: BackendClient = Depends(get_client),
):
    result = ws.bulk_delete()
    return schemas.BulkDeleteOut(
        executed=result.executed,
        deleted=result.deleted,
        failed=result.failed,
        workspace=_workspace_out(ws, client),
    )


# --------------------------------------
# 4) Settings (notification webhook, teacher access code)
# --------------------------------------
@router.get("/settings/notifications", response_model=schemas.NotificationSettings)
def read_notification_settings(store: RecordStore = Depends(get_store)):
    return get_notification_settings(store) or schemas.NotificationSettings()


@router.put("/settings/notifications", response_model=schemas.NotificationSettings)
def write_notification_settings(
    body: schemas.NotificationSettings,
    store: RecordStore = Depends(get_store),
):
    return save_notification_settings(store, body)


@router.get("/settings/teacher-password", response_model=schemas.TeacherPasswordSettings)
def read_teacher_password(
    store: RecordStore = Depends(get_store),
    client: BackendClient = Depends(get_client),
):
    code = get_teacher_access_code(store, client.settings.TEACHER_ACCESS_DEFAULT)
    return schemas.TeacherPasswordSettings(password=code)


@router.put("/settings/teacher-password", response_model=schemas.TeacherPasswordSettings)
def write_teacher_password(
    body: schemas.TeacherPasswordSettings,
    store: RecordStore = Depends(get_store),
):
    save_teacher_access_code(store, body)
    return body
