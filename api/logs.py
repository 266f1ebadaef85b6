from fastapi import APIRouter, Depends
from api.dependencies import get_access_log_service, get_current_identity
from api.models import LogEntryResponse
from api.services.access_log_service import AccessLogService
from api.services.identity import Identity

router = APIRouter(tags=["Logs"])


@router.get("/logs", response_model=list[LogEntryResponse], response_model_exclude_unset=True)
def list_logs(
    identity: Identity = Depends(get_current_identity),
    access_log: AccessLogService = Depends(get_access_log_service),
):
    """Caller's own entries, or every entry for admins (newest first, max 100)."""
    return access_log.list_for(identity)
