import logging
from typing import Any, Optional

from prometheus_client import Counter

from api.services.api_key_service import mask_key
from api.services.identity import Identity
from db.models.api_key import ApiKey
from db.models.log_entry import LogEntry
from db.repositories.log_repository import LogRepository

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
KEY_PREFIX_LENGTH = 10

access_log_write_failures = Counter(
    "receipt_gateway_access_log_write_failures_total",
    "Access log entries that could not be written",
    ["endpoint"],
)


class AccessLogService:
    def __init__(self, log_repo: LogRepository):
        self.log_repo = log_repo

    def record(
        self,
        api_key: ApiKey,
        endpoint: str,
        status: str,
        request_data: Optional[dict[str, Any]],
        response_data: Optional[dict[str, Any]],
    ) -> Optional[LogEntry]:
        """
        Append one entry for a gated action attempt.

        A failed write is logged and counted but never raised, so the action's
        own outcome is what the caller sees. Returns None in that case.
        """
        # Plain values only past this point: a failed append rolls back the
        # session and expires api_key, so touching it again would hit the store
        api_key_id = api_key.id
        entry = LogEntry(
            api_key_id=api_key_id,
            user_id=api_key.user_id,
            key_prefix=api_key.key[:KEY_PREFIX_LENGTH],
            endpoint=endpoint,
            status=status,
            request_data=request_data,
            response_data=response_data,
        )
        try:
            return self.log_repo.append(entry)
        except Exception:
            access_log_write_failures.labels(endpoint=endpoint).inc()
            logger.exception(
                f"Failed to write access log for API key {api_key_id} on {endpoint} ({status})"
            )
            return None

    def list_for(self, identity: Identity) -> list[dict[str, Any]]:
        """Newest entries visible to the caller; admins see everything."""
        owner_filter = None if identity.is_admin else identity.subject_id
        entries = self.log_repo.list_recent(user_id=owner_filter, limit=PAGE_SIZE)
        return [self._to_view(entry, include_owner=identity.is_admin) for entry in entries]

    @staticmethod
    def _to_view(entry: LogEntry, include_owner: bool) -> dict[str, Any]:
        view = {
            "id": entry.id,
            "api_key_id": entry.api_key_id,
            "endpoint": entry.endpoint,
            "status": entry.status,
            "request_data": entry.request_data,
            "response_data": entry.response_data,
            "timestamp": entry.timestamp,
            "api_key": mask_key(entry.key_prefix, KEY_PREFIX_LENGTH),
        }
        if include_owner:
            view["user_email"] = entry.user.email if entry.user else None
        return view
