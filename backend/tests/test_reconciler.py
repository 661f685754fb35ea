"""
Tests for the project reconciler.

Runs against a throwaway SQLite database (aiosqlite) with the real models.
"""

from datetime import date

import pytest
from sqlalchemy import func, select

from fakes import make_record
from portal_sync.core.interfaces.crm import RemoteCompany, RemoteOwner, RemoteRecord
from portal_sync.models import Client, Project, ProjectStatus
from portal_sync.services.crm_sync import EnrichedRecord, ErrorTracker, ProjectReconciler, map_status
from portal_sync.services.crm_sync.reconciler import parse_remote_date


def enriched(record_id: str, company_id: str = "c1", company_name: str = "Acme", **record_kwargs) -> EnrichedRecord:
    return EnrichedRecord(
        record=make_record(record_id, company_ids=[company_id], **record_kwargs),
        company=RemoteCompany(id=company_id, name=company_name, domain="acme.io"),
        owner=RemoteOwner(id="o-1", first_name="Ada", last_name="Lovelace", email="ada@acme.io"),
    )


async def count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def load_project(session_factory, service_id: str) -> Project:
    async with session_factory() as session:
        result = await session.execute(select(Project).where(Project.hubspot_service_id == service_id))
        return result.scalar_one()


class TestStatusMapping:
    """Remote status -> Open/Closed/None."""

    def test_closed_value(self):
        assert map_status("COMPLETED") is ProjectStatus.CLOSED

    def test_any_other_text_is_open(self):
        for value in ("IN_PROGRESS", "ON_HOLD", "completed", "Something new"):
            assert map_status(value) is ProjectStatus.OPEN

    def test_absent_is_none(self):
        assert map_status(None) is None
        assert map_status("") is None
        assert map_status("   ") is None

    def test_configured_closed_value(self):
        assert map_status("DONE", closed_status="DONE") is ProjectStatus.CLOSED
        assert map_status("COMPLETED", closed_status="DONE") is ProjectStatus.OPEN


class TestDateParsing:
    def test_plain_date(self):
        assert parse_remote_date("2024-05-01") == date(2024, 5, 1)

    def test_iso_datetime(self):
        assert parse_remote_date("2024-05-01T00:00:00.000Z") == date(2024, 5, 1)

    def test_epoch_millis(self):
        assert parse_remote_date("1714521600000") == date(2024, 5, 1)

    def test_basic_iso_date_is_not_epoch(self):
        assert parse_remote_date("20240115") == date(2024, 1, 15)

    def test_out_of_range_timestamp_is_none(self):
        assert parse_remote_date("9" * 30) is None

    def test_garbage_is_none(self):
        assert parse_remote_date("next tuesday") is None
        assert parse_remote_date(None) is None


@pytest.mark.asyncio
class TestProjectReconciler:
    """Client find-or-create and project upsert."""

    async def test_creates_client_and_project(self, session_factory):
        reconciler = ProjectReconciler(session_factory)

        result = await reconciler.reconcile([enriched("s1", status="COMPLETED")])

        assert result.updated == 1
        assert result.failed_ids == []
        project = await load_project(session_factory, "s1")
        assert project.status is ProjectStatus.CLOSED
        assert project.start_date == date(2024, 1, 15)
        assert project.owner_email == "ada@acme.io"
        assert await count(session_factory, Client) == 1

    async def test_second_run_updates_in_place(self, session_factory):
        """
        SCENARIO: The same record is reconciled twice, the second time with
        new status and name.

        EXPECTED: Still one client and one project; the project carries the
        latest values and keeps its id.
        """
        reconciler = ProjectReconciler(session_factory)

        await reconciler.reconcile([enriched("s1", status="IN_PROGRESS", name="Kickoff")])
        first = await load_project(session_factory, "s1")

        await reconciler.reconcile([enriched("s1", status="COMPLETED", name="Wrap-up")])
        second = await load_project(session_factory, "s1")

        assert await count(session_factory, Client) == 1
        assert await count(session_factory, Project) == 1
        assert second.id == first.id
        assert second.client_id == first.client_id
        assert second.name == "Wrap-up"
        assert second.status is ProjectStatus.CLOSED

    async def test_absent_status_overwrites_previous(self, session_factory):
        """Last sync wins, including when the CRM clears the status."""
        reconciler = ProjectReconciler(session_factory)

        await reconciler.reconcile([enriched("s1", status="COMPLETED")])
        await reconciler.reconcile([enriched("s1", status=None)])

        assert (await load_project(session_factory, "s1")).status is None

    async def test_unusable_date_stored_as_null(self, session_factory):
        """An absurd timestamp blanks the column instead of failing the record."""
        reconciler = ProjectReconciler(session_factory)
        item = EnrichedRecord(
            record=RemoteRecord(
                id="s1",
                name="Odd dates",
                start_date="9" * 30,
                target_end_date="20240630",
                company_ids=["c1"],
            ),
            company=RemoteCompany(id="c1", name="Acme"),
        )

        result = await reconciler.reconcile([item])

        assert result.failed_ids == []
        project = await load_project(session_factory, "s1")
        assert project.start_date is None
        assert project.target_end_date == date(2024, 6, 30)

    async def test_existing_client_not_updated(self, session_factory):
        """A renamed CRM company leaves the stored client untouched."""
        reconciler = ProjectReconciler(session_factory)

        await reconciler.reconcile([enriched("s1", company_name="Acme")])
        await reconciler.reconcile([enriched("s2", company_name="Acme Renamed")])

        async with session_factory() as session:
            clients = (await session.execute(select(Client))).scalars().all()
        assert len(clients) == 1
        assert clients[0].name == "Acme"
        assert await count(session_factory, Project) == 2

    async def test_projects_share_client_by_company(self, session_factory):
        reconciler = ProjectReconciler(session_factory)

        await reconciler.reconcile([enriched("s1", "c1"), enriched("s2", "c1"), enriched("s3", "c2")])

        assert await count(session_factory, Client) == 2
        first = await load_project(session_factory, "s1")
        second = await load_project(session_factory, "s2")
        assert first.client_id == second.client_id

    async def test_constraint_error_isolated(self, session_factory):
        """
        SCENARIO: The middle record has no name (NOT NULL column).

        WHY THIS MATTERS: One malformed CRM record must not roll back the
        rest of the run.

        EXPECTED: Records around it are written; the failure is tracked
        under reconciliation with the record's id.
        """
        tracker = ErrorTracker()
        reconciler = ProjectReconciler(session_factory, tracker)
        nameless = EnrichedRecord(
            record=RemoteRecord(id="s2", name=None, status="IN_PROGRESS", company_ids=["c9"]),
            company=RemoteCompany(id="c9", name="Orphan Co"),
        )

        result = await reconciler.reconcile([enriched("s1"), nameless, enriched("s3")])

        assert result.updated == 2
        assert result.failed_ids == ["s2"]
        errors = tracker.errors_for("reconciliation")
        assert [e.record_id for e in errors] == ["s2"]
        assert await count(session_factory, Project) == 2
        # The failed record's client insert was rolled back with it
        assert await count(session_factory, Client) == 1
