"""
Pytest Configuration and Fixtures

Shared clocks, principals, entries and in-memory collaborators.
"""

import pytest
from datetime import datetime
from typing import Optional

from formflow.domain.enums import UserRole, WorkflowStatus
from formflow.domain.models import ActorContext, FormEntry
from formflow.engine import (
    ActivityWriter, FolioSequencer, PermissionEvaluator, RoleCapabilityMatrix,
    TimeAccessGate, WorkflowTransitionService
)
from formflow.services.form_entry_service import FormEntryService
from formflow.utils.time import parse_iso

from tests.helpers.fakes import (
    FakeClock, InMemoryActivityRepo, InMemoryEntryStore, InMemoryFolioStore
)

PLANT_TZ = "America/Mexico_City"

# 2026-03-01 is a Sunday
MONDAY_MORNING = parse_iso("2026-03-02T10:00:00-06:00")
MONDAY_LATE_NIGHT = parse_iso("2026-03-02T23:30:00-06:00")
MONDAY_EARLY = parse_iso("2026-03-02T03:15:00-06:00")
SUNDAY_MORNING = parse_iso("2026-03-01T10:00:00-06:00")


def make_actor(role: UserRole, user_id: str = "user-1", department: Optional[str] = "produccion") -> ActorContext:
    return ActorContext(id=user_id, role=role, department=department)


def make_entry(
    status: WorkflowStatus = WorkflowStatus.INITIATED,
    created_by: str = "creator-1",
    department: str = "produccion",
    entry_id: str = "FE-test0001",
    template_id: int = 7,
    folio_number: int = 1,
    created_at: Optional[datetime] = None,
    **overrides
) -> FormEntry:
    return FormEntry(
        entry_id=entry_id,
        template_id=template_id,
        department=department,
        data={"temperature": 4.2},
        workflow_status=status,
        folio_number=folio_number,
        created_by=created_by,
        created_at=created_at or MONDAY_MORNING,
        **overrides
    )


@pytest.fixture
def clock() -> FakeClock:
    """Plant clock frozen on Monday 10:00 local time"""
    return FakeClock(MONDAY_MORNING)


@pytest.fixture
def gate(clock) -> TimeAccessGate:
    return TimeAccessGate(timezone=PLANT_TZ, clock=clock)


@pytest.fixture
def matrix() -> RoleCapabilityMatrix:
    return RoleCapabilityMatrix()


@pytest.fixture
def evaluator(gate, matrix) -> PermissionEvaluator:
    return PermissionEvaluator(time_gate=gate, matrix=matrix)


@pytest.fixture
def transitions(evaluator, clock) -> WorkflowTransitionService:
    return WorkflowTransitionService(evaluator=evaluator, clock=clock)


@pytest.fixture
def folio_store() -> InMemoryFolioStore:
    return InMemoryFolioStore()


@pytest.fixture
def entry_store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture
def activity_repo() -> InMemoryActivityRepo:
    return InMemoryActivityRepo()


@pytest.fixture
def service(entry_store, folio_store, transitions, activity_repo, clock) -> FormEntryService:
    """FormEntryService wired to in-memory collaborators"""
    return FormEntryService(
        entry_repo=entry_store,
        sequencer=FolioSequencer(store=folio_store),
        transitions=transitions,
        activity=ActivityWriter(repo=activity_repo, clock=clock),
        clock=clock
    )
