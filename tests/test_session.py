"""Integration tests for GridSession: store, sync flow and editor together."""

import asyncio
from decimal import Decimal

import httpx

from finance_grid.config import Settings
from finance_grid.editing import CommitResult, CommitTrigger, EditState
from finance_grid.models import PROJECTS
from finance_grid.models.sync import RemovalResponse, SyncStatus
from finance_grid.services.cache import JsonFileCacheMirror
from finance_grid.session import create_grid_session


class TestOfflineWork:
    """Working with the remote store unreachable."""

    def test_add_row_offline_updates_cache(self, make_session, offline_remote, mirror):
        session = make_session(PROJECTS, offline_remote)
        asyncio.run(session.load())

        outcome = asyncio.run(session.add_row())

        assert outcome.status == SyncStatus.OFFLINE
        assert len(session.records) == 3
        assert session.records[-1].sr_no == 3
        rows = mirror.read("projectData")
        assert len(rows) == 3
        assert rows[-1]["srNo"] == 3
        assert session.error is None

    def test_offline_edits_survive_reload_from_cache(self, make_session, offline_remote):
        session = make_session(PROJECTS, offline_remote)
        asyncio.run(session.load())
        asyncio.run(session.start_edit(0, "projectName"))
        session.input("Offline edit")
        asyncio.run(session.commit_edit(CommitTrigger.ENTER))

        fresh = make_session(PROJECTS, offline_remote)
        asyncio.run(fresh.load())
        assert fresh.records[0].project_name == "Offline edit"

    def test_draft_text_stable_after_cache_reload(self, make_session, offline_remote):
        session = make_session(PROJECTS, offline_remote)
        asyncio.run(session.load())
        asyncio.run(session.add_row())

        fresh = make_session(PROJECTS, offline_remote)
        asyncio.run(fresh.load())
        assert asyncio.run(fresh.start_edit(0, "dev"))
        assert fresh.editor.draft == "360000"


class TestEditingWithRemote:
    """Cell edits are pushed once committed."""

    def test_commit_pushes_update(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())

        asyncio.run(session.start_edit(0, "dev"))
        session.input("1500.555")
        result = asyncio.run(session.commit_edit(CommitTrigger.ENTER))

        assert result == CommitResult.COMMITTED
        assert session.records[0].dev == Decimal("1500.56")
        assert remote.rows[0]["dev"] == 1500.56
        assert remote.rows[0]["yetToBeRecovered"] == 1500.56

    def test_switching_cells_pushes_previous_edit(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())

        asyncio.run(session.start_edit(0, "projectName"))
        session.input("Alpha Two")
        assert asyncio.run(session.start_edit(1, "status"))

        assert session.editor.editing_cell == (1, "status")
        assert remote.rows[0]["projectName"] == "Alpha Two"

    def test_failed_push_keeps_local_value(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())
        remote.fail_on.add("update")

        asyncio.run(session.start_edit(2, "extra"))
        session.input("50")
        asyncio.run(session.commit_edit())

        assert session.records[2].extra == Decimal("50")
        assert session.error is not None
        assert session.editor.state == EditState.IDLE

    def test_cancel_edit(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())
        asyncio.run(session.start_edit(0, "dev"))
        session.input("9")
        assert session.cancel_edit()
        assert session.records[0].dev == Decimal("1000")
        assert "update" not in remote.operations()


class TestRowLifecycle:
    """Add, remove and submit through the session."""

    def test_add_then_remove(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())

        added = asyncio.run(session.add_row({"projectName": "Delta"}))
        request = session.request_removal(3)
        removed = asyncio.run(
            session.remove_row(RemovalResponse(request=request, confirmed=True))
        )

        assert added.record_id == removed.record_id == "remote-1"
        assert len(session.records) == 3
        assert [row["_id"] for row in remote.rows] == ["p-1", "p-2", "p-3"]

    def test_totals_follow_records(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())
        assert session.totals["dev"] == Decimal("6000")
        asyncio.run(session.update_cell(0, "dev", Decimal("0")))
        assert session.totals["dev"] == Decimal("5000")

    def test_in_flight_empty_when_idle(self, make_session, remote):
        session = make_session(PROJECTS, remote)
        asyncio.run(session.load())
        asyncio.run(session.submit())
        assert session.in_flight == frozenset()


class TestCreateGridSession:
    """Building a session from settings."""

    def test_create_with_mock_transport(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FINANCE_GRID_CACHE_DIRECTORY", str(tmp_path))
        monkeypatch.setenv("FINANCE_GRID_REMOTE_BASE_URL", "http://grid.test/api/")

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/health"):
                return httpx.Response(200, json={"status": "ok"})
            return httpx.Response(200, json=[
                {"_id": "s-1", "srNo": 1, "revenueSource": "Pro", "projectedMonthlyRevenue": 10},
            ])

        client = httpx.AsyncClient(
            base_url="http://grid.test/api",
            transport=httpx.MockTransport(handler),
        )
        session = create_grid_session(
            "subscription-revenue", settings=Settings(), client=client
        )

        async def scenario():
            await session.load()
            await session.close()
            await client.aclose()

        asyncio.run(scenario())

        assert session.dataset.name == "subscription-revenue"
        assert session.records[0].revenue_source == "Pro"
        assert (tmp_path / "subscriptionRevenueData.json").exists()
        assert JsonFileCacheMirror(tmp_path).read("subscriptionRevenueData")[0]["id"] == "s-1"
