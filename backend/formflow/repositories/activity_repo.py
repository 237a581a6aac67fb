"""Activity Repository - Data access for activity logs"""
from typing import List
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection, storage_errors
from ..domain.models import ActivityLog
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActivityRepository:
    """Repository for activity log operations (append-only)"""

    def __init__(self):
        self._activity_logs: Collection = get_collection("activity_logs")

    def create_activity(self, activity: ActivityLog) -> ActivityLog:
        """Create an activity record"""
        doc = activity.model_dump()
        doc["_id"] = activity.activity_id

        with storage_errors("create_activity"):
            self._activity_logs.insert_one(doc)
        logger.info(
            f"Recorded activity: {activity.action}",
            extra={"entry_id": activity.resource_id, "user_id": activity.user_id, "action": activity.action}
        )
        return activity

    def get_recent_activity(self, limit: int = 10) -> List[ActivityLog]:
        """Most recent activity across all resources"""
        with storage_errors("get_recent_activity"):
            cursor = self._activity_logs.find({}).sort("timestamp", DESCENDING).limit(limit)
            activities = []
            for doc in cursor:
                doc.pop("_id", None)
                activities.append(ActivityLog.model_validate(doc))
        return activities
