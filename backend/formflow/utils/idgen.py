"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Examples:
        >>> generate_id('FE')
        'FE-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_form_entry_id() -> str:
    """Generate form entry ID"""
    return generate_id("FE")


def generate_activity_id() -> str:
    """Generate activity log ID"""
    return generate_id("ACT")


def generate_correlation_id() -> str:
    """Generate a correlation ID for request tracing"""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
