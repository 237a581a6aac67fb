"""Activity Writer - Best-effort activity log for form entries"""
from typing import Any, Dict, List, Optional

from ..domain.models import ActivityLog
from ..domain.ports import ActivityStore
from ..repositories.activity_repo import ActivityRepository
from ..utils.idgen import generate_activity_id
from ..utils.time import Clock, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActivityWriter:
    """
    Write activity log records (append-only)

    Invoked after a successful mutation. A failure to record is logged and
    never propagates to the caller: the mutation has already been persisted.
    """

    def __init__(self, repo: Optional[ActivityStore] = None, clock: Clock = utc_now):
        self.repo = repo or ActivityRepository()
        self._clock = clock

    def record(
        self,
        user_id: str,
        action: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
        resource_type: str = "form_entry",
    ) -> Optional[ActivityLog]:
        """Record one activity; returns None when the write failed"""
        activity = ActivityLog(
            activity_id=generate_activity_id(),
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            timestamp=self._clock()
        )

        try:
            return self.repo.create_activity(activity)
        except Exception as e:
            logger.warning(
                f"Failed to record activity '{action}' for {resource_type} {resource_id}: {e}",
                extra={"entry_id": resource_id, "user_id": user_id, "action": action},
                exc_info=True
            )
            return None

    def recent(self, limit: int = 10) -> List[ActivityLog]:
        """Newest records first"""
        return self.repo.get_recent_activity(limit)
