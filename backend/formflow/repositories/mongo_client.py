"""MongoDB Client - Connection and Collection Management"""
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from ..config.settings import settings
from ..domain.errors import StorageUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        try:
            client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            client.close()
            raise StorageUnavailableError("Database is unavailable", details={"error": str(e)})
        _client = client
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into StorageUnavailableError; duplicate keys pass through"""
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"Storage failure during {operation}: {e}")
        raise StorageUnavailableError(
            f"Storage failure during {operation}",
            details={"operation": operation, "error": str(e)}
        ) from e


def to_document(values: Dict[str, Any]) -> Dict[str, Any]:
    """Replace enum members by their values so documents stay plain BSON"""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in values.items()
    }


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Form entries: folio uniqueness is enforced per template
    form_entries = db["form_entries"]
    form_entries.create_index("entry_id", unique=True)
    form_entries.create_index(
        [("template_id", ASCENDING), ("folio_number", ASCENDING)],
        unique=True
    )
    form_entries.create_index([("department", ASCENDING), ("workflow_status", ASCENDING)])
    form_entries.create_index("created_by")
    form_entries.create_index("created_at", background=True)

    # Folio counters: one document per template
    folio_counters = db["folio_counters"]
    folio_counters.create_index("template_id", unique=True)

    # Activity logs (append-only)
    activity_logs = db["activity_logs"]
    activity_logs.create_index("activity_id", unique=True)
    activity_logs.create_index([("resource_id", ASCENDING), ("timestamp", DESCENDING)])
    activity_logs.create_index("timestamp", background=True)

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
