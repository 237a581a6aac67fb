"""Tests for FormEntryService against in-memory collaborators"""
import pytest

from formflow.domain.enums import UserRole, WorkflowStatus
from formflow.domain.errors import (
    ConflictingFolioError, FolioCounterNotFoundError, FormEntryNotFoundError,
    InvalidTransitionError, PermissionDeniedError, StorageUnavailableError
)
from formflow.domain.models import FolioCounter, SignaturePayload
from formflow.engine import ActivityWriter

from tests.conftest import make_actor, MONDAY_MORNING, SUNDAY_MORNING
from tests.helpers.fakes import InMemoryActivityRepo


class TestCreateEntry:

    def test_creates_initiated_entry_with_folio(self, service, activity_repo):
        actor = make_actor(UserRole.PRODUCTION)

        entry = service.create_entry(actor, template_id=7, data={"lot": "A-1"})

        assert entry.workflow_status == WorkflowStatus.INITIATED
        assert entry.folio_number == 1
        assert entry.created_by == "user-1"
        assert entry.department == "general"
        assert entry.data == {"lot": "A-1"}
        assert entry.created_at == MONDAY_MORNING
        assert entry.entry_id.startswith("FE-")

        assert [a.action for a in activity_repo.records] == ["created"]
        assert activity_repo.records[0].resource_id == entry.entry_id

    def test_folios_increase_per_template(self, service):
        actor = make_actor(UserRole.QUALITY, department="calidad")
        folios = [service.create_entry(actor, 7, {}, department="calidad").folio_number for _ in range(3)]
        assert folios == [1, 2, 3]
        assert service.create_entry(actor, 8, {}).folio_number == 1

    def test_viewer_cannot_create(self, service, entry_store, folio_store):
        with pytest.raises(PermissionDeniedError):
            service.create_entry(make_actor(UserRole.VIEWER), 7, {})
        assert entry_store.entries == {}
        assert folio_store.calls == 0

    def test_storage_failure_retried_once(self, service, folio_store, entry_store):
        folio_store.fail_times = 1

        entry = service.create_entry(make_actor(UserRole.ADMIN), 7, {})

        assert entry.folio_number == 1
        assert folio_store.calls == 2
        assert len(entry_store.entries) == 1

    def test_no_entry_without_folio(self, service, folio_store, entry_store, activity_repo):
        folio_store.fail_times = 2

        with pytest.raises(StorageUnavailableError):
            service.create_entry(make_actor(UserRole.ADMIN), 7, {})

        assert entry_store.entries == {}
        assert activity_repo.records == []

    def test_folio_conflict_surfaces_after_retry(self, service, folio_store, entry_store):
        folio_store.conflict_times = 2

        with pytest.raises(ConflictingFolioError):
            service.create_entry(make_actor(UserRole.ADMIN), 7, {})
        assert entry_store.entries == {}

    def test_insert_conflict_takes_a_fresh_folio(self, service, entry_store):
        entry_store.insert_failures.append(ConflictingFolioError("Folio 1 is already assigned"))

        entry = service.create_entry(make_actor(UserRole.ADMIN), 7, {})

        assert entry.folio_number == 2

    def test_activity_failure_does_not_fail_creation(self, service, clock):
        service.activity = ActivityWriter(repo=InMemoryActivityRepo(fail=True), clock=clock)

        entry = service.create_entry(make_actor(UserRole.PRODUCTION), 7, {})

        assert entry.folio_number == 1


class TestTransitionEntry:

    def _created(self, service, role=UserRole.PRODUCTION_MANAGER, user_id="pm-1"):
        return service.create_entry(make_actor(role, user_id=user_id), 7, {}, department="produccion")

    def test_persists_and_logs_status_change(self, service, entry_store, activity_repo):
        entry = self._created(service)

        updated = service.transition_entry(make_actor(UserRole.ADMIN, user_id="admin-1"), entry.entry_id, "IN_PROGRESS")

        assert updated.workflow_status == WorkflowStatus.IN_PROGRESS
        assert updated.last_updated_by == "admin-1"
        assert entry_store.entries[entry.entry_id].workflow_status == WorkflowStatus.IN_PROGRESS

        log = activity_repo.records[-1]
        assert log.action == "in_progress"
        assert log.details["from_status"] == "initiated"
        assert log.details["to_status"] == "in_progress"

    def test_signature_stored_once(self, service, entry_store):
        entry = self._created(service)
        manager = make_actor(UserRole.QUALITY_MANAGER, user_id="qm-1")

        service.transition_entry(manager, entry.entry_id, "completed")
        first = service.transition_entry(manager, entry.entry_id, "signed", signature="sig-A")
        second = service.transition_entry(manager, entry.entry_id, "signed", signature="sig-B")

        assert first.signature == "sig-A"
        assert second.signature == "sig-A"
        assert second.signed_at == first.signed_at

    def test_denied_transition_not_persisted(self, service, entry_store, activity_repo):
        entry = self._created(service)
        service.transition_entry(make_actor(UserRole.ADMIN), entry.entry_id, "in_progress")
        before = len(activity_repo.records)

        with pytest.raises(PermissionDeniedError) as exc_info:
            service.transition_entry(make_actor(UserRole.PRODUCTION), entry.entry_id, "pending_quality")

        assert exc_info.value.reason_code == "ADVANCEMENT_REQUIRES_ELEVATION"
        assert entry_store.entries[entry.entry_id].workflow_status == WorkflowStatus.IN_PROGRESS
        assert len(activity_repo.records) == before

    def test_unknown_status(self, service):
        entry = self._created(service)
        with pytest.raises(InvalidTransitionError):
            service.transition_entry(make_actor(UserRole.ADMIN), entry.entry_id, "archived")

    def test_missing_entry(self, service):
        with pytest.raises(FormEntryNotFoundError):
            service.transition_entry(make_actor(UserRole.ADMIN), "FE-missing", "approved")

    def test_creator_override_on_sunday(self, service, clock):
        entry = self._created(service, role=UserRole.PRODUCTION, user_id="line-1")
        clock.set_time(SUNDAY_MORNING)

        updated = service.transition_entry(make_actor(UserRole.PRODUCTION, user_id="line-1"), entry.entry_id, "approved")

        assert updated.workflow_status == WorkflowStatus.APPROVED


class TestReadsAndDelete:

    def test_get_entry_visibility(self, service):
        entry = service.create_entry(make_actor(UserRole.PRODUCTION, department="produccion"), 7, {}, department="produccion")

        assert service.get_entry(make_actor(UserRole.VIEWER, user_id="v-1", department="produccion"), entry.entry_id)
        with pytest.raises(PermissionDeniedError):
            service.get_entry(make_actor(UserRole.VIEWER, user_id="v-2", department="calidad"), entry.entry_id)

    def test_list_entries_scoped(self, service):
        service.create_entry(make_actor(UserRole.PRODUCTION, user_id="p-1"), 7, {}, department="produccion")
        service.create_entry(make_actor(UserRole.QUALITY, user_id="q-1"), 7, {}, department="calidad")

        quality = make_actor(UserRole.QUALITY, user_id="q-2", department="calidad")
        assert [e.department for e in service.list_entries(quality)] == ["calidad"]
        assert len(service.list_entries(make_actor(UserRole.ADMIN, department=None))) == 2

    def test_delete_requires_capability(self, service, entry_store, activity_repo):
        creator = make_actor(UserRole.PRODUCTION, user_id="p-1")
        entry = service.create_entry(creator, 7, {})

        with pytest.raises(PermissionDeniedError) as exc_info:
            service.delete_entry(creator, entry.entry_id)
        assert exc_info.value.reason_code == "DELETE_NOT_ALLOWED"

        service.delete_entry(make_actor(UserRole.PRODUCTION_MANAGER), entry.entry_id)
        assert entry_store.entries == {}
        assert activity_repo.records[-1].action == "deleted"

    def test_time_access(self, service, clock):
        assert service.time_access(make_actor(UserRole.QUALITY)).allowed
        clock.set_time(SUNDAY_MORNING)
        result = service.time_access(make_actor(UserRole.QUALITY))
        assert not result.allowed
        assert result.allowed_hours_description == "Monday-Saturday, 07:00-19:59"


class TestFoliosAndActivity:

    def test_next_folio_preview(self, service):
        preview = service.next_folio_preview(7, template_name="CA-RE-01-01 - Temperature log")
        assert preview == {"template_id": 7, "next_folio": 1, "formatted_folio": "CA-RE-01-01-F1"}

        service.create_entry(make_actor(UserRole.ADMIN), 7, {})
        assert service.next_folio_preview(7)["next_folio"] == 2

    def test_next_folio_preview_with_stored_prefix(self, service, folio_store):
        folio_store.seed_counter(FolioCounter(template_id=7, last_folio_number=9, prefix="PR-LI-02-01"))

        preview = service.next_folio_preview(7, template_name="CA-RE-01-01 - Temperature log")

        assert preview["formatted_folio"] == "PR-LI-02-01-F10"

    def test_folio_counter(self, service):
        with pytest.raises(FolioCounterNotFoundError):
            service.folio_counter(7)
        service.create_entry(make_actor(UserRole.ADMIN), 7, {})
        assert service.folio_counter(7).last_folio_number == 1

    def test_recent_activity_admin_only(self, service):
        service.create_entry(make_actor(UserRole.PRODUCTION), 7, {})

        assert len(service.recent_activity(make_actor(UserRole.ADMIN), limit=5)) == 1
        with pytest.raises(PermissionDeniedError):
            service.recent_activity(make_actor(UserRole.PRODUCTION_MANAGER))


class TestOverlappingTransitions:
    """Field sets computed from the same loaded entry, persisted one after the other"""

    def test_second_signature_does_not_replace_first(self, service, entry_store, transitions, clock):
        entry = service.create_entry(make_actor(UserRole.ADMIN), 7, {})
        service.transition_entry(make_actor(UserRole.ADMIN), entry.entry_id, "completed")
        loaded = entry_store.get_form_entry(entry.entry_id)

        first = transitions.apply_transition(
            make_actor(UserRole.QUALITY_MANAGER, user_id="mgr-a"), loaded, WorkflowStatus.SIGNED,
            payload=SignaturePayload(signature="sig-A")
        )
        clock.advance(minutes=5)
        second = transitions.apply_transition(
            make_actor(UserRole.QUALITY_MANAGER, user_id="mgr-b"), loaded, WorkflowStatus.SIGNED,
            payload=SignaturePayload(signature="sig-B")
        )
        entry_store.persist_form_entry_fields(entry.entry_id, first)
        stored = entry_store.persist_form_entry_fields(entry.entry_id, second)

        assert stored.signature == "sig-A"
        assert stored.signed_by == "mgr-a"
        assert stored.signed_at == MONDAY_MORNING
        assert stored.stage_completed_at["signed"] == MONDAY_MORNING

    def test_stage_keys_are_never_dropped(self, service, entry_store, transitions):
        entry = service.create_entry(make_actor(UserRole.ADMIN), 7, {})
        loaded = entry_store.get_form_entry(entry.entry_id)
        manager = make_actor(UserRole.PRODUCTION_MANAGER)

        entry_store.persist_form_entry_fields(
            entry.entry_id, transitions.apply_transition(manager, loaded, WorkflowStatus.IN_PROGRESS)
        )
        stored = entry_store.persist_form_entry_fields(
            entry.entry_id, transitions.apply_transition(manager, loaded, WorkflowStatus.PENDING_QUALITY)
        )

        assert set(stored.stage_completed_at) == {"in_progress", "pending_quality"}
        assert stored.workflow_status == WorkflowStatus.PENDING_QUALITY

    def test_second_approval_keeps_first_approver(self, service, entry_store, transitions, clock):
        entry = service.create_entry(make_actor(UserRole.ADMIN), 7, {})
        service.transition_entry(make_actor(UserRole.ADMIN), entry.entry_id, "signed")
        loaded = entry_store.get_form_entry(entry.entry_id)

        first = transitions.apply_transition(make_actor(UserRole.ADMIN, user_id="a-1"), loaded, WorkflowStatus.APPROVED)
        clock.advance(hours=1)
        second = transitions.apply_transition(make_actor(UserRole.ADMIN, user_id="a-2"), loaded, WorkflowStatus.APPROVED)
        entry_store.persist_form_entry_fields(entry.entry_id, first)
        stored = entry_store.persist_form_entry_fields(entry.entry_id, second)

        assert stored.approved_by == "a-1"
        assert stored.approved_at == MONDAY_MORNING
