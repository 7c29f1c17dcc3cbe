from fastapi import APIRouter, Depends

from weeclass import schemas
from weeclass.core.deps.auth import get_client
from weeclass.core.errors import StoreError
from weeclass.core.records import collection_for
from weeclass.db.client import BackendClient
from weeclass.models import Role

router = APIRouter()


@router.get("/health", response_model=schemas.HealthOut)
def health(client: BackendClient = Depends(get_client)):
    """Checks that the record store answers a one-row query."""
    if client.store is None:
        return schemas.HealthOut(backend="running", store="not initialized", demo_mode=client.demo_mode)

    if client.demo_mode:
        return schemas.HealthOut(backend="running", store="demo (in-memory)", demo_mode=True)

    try:
        client.store.list(collection_for(Role.STUDENT), limit=1)
    except StoreError as exc:
        return schemas.HealthOut(
            backend="running",
            store="error",
            demo_mode=False,
            details={"error": str(exc)[:80]},
        )
    return schemas.HealthOut(backend="running", store="connected", demo_mode=False)
