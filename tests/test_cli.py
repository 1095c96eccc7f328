# Tests for the command-line front end

from unittest.mock import AsyncMock, MagicMock

import pytest

from searchsession.__main__ import _run, build_parser
from searchsession.session.models import ActiveSearch, SearchStatus


@pytest.fixture
def coordinator():
    coordinator = MagicMock()
    coordinator.groups.active_group_id = "g1"
    return coordinator


class TestParser:
    """Tests for argument parsing."""

    def test_search_arguments(self):
        args = build_parser().parse_args(
            ["search", "what is ecash?", "--url", "https://a", "--url", "https://b"]
        )
        assert args.command == "search"
        assert args.url == ["https://a", "https://b"]
        assert args.model is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    """Tests for command dispatch."""

    @pytest.mark.asyncio
    async def test_search_prints_answer(self, coordinator, capsys):
        record = ActiveSearch(id="s1", query="q", group_id="g1")
        done = ActiveSearch(
            id="s1",
            query="q",
            group_id="g1",
            status=SearchStatus.COMPLETED,
            partial_results={"response": {"message": "the answer", "sources": None}},
        )
        coordinator.start_search = AsyncMock(return_value=record)
        coordinator.wait_for_search = AsyncMock(return_value=done)

        code = await _run(build_parser().parse_args(["search", "q"]), coordinator)

        assert code == 0
        assert "the answer" in capsys.readouterr().out
        coordinator.start_search.assert_awaited_once_with("q", urls=None, model_id=None)

    @pytest.mark.asyncio
    async def test_failed_search_exits_nonzero(self, coordinator):
        failed = ActiveSearch(
            id="s1", query="q", group_id="g1", status=SearchStatus.FAILED, error="timed out"
        )
        coordinator.start_search = AsyncMock(return_value=failed)
        coordinator.wait_for_search = AsyncMock(return_value=failed)

        assert await _run(build_parser().parse_args(["search", "q"]), coordinator) == 1

    @pytest.mark.asyncio
    async def test_use_selects_group(self, coordinator):
        assert await _run(build_parser().parse_args(["use", "g7"]), coordinator) == 0
        coordinator.select_group.assert_called_once_with("g7")

    @pytest.mark.asyncio
    async def test_clear_completed(self, coordinator, capsys):
        coordinator.clear_completed_searches.return_value = 3
        assert await _run(build_parser().parse_args(["clear-completed"]), coordinator) == 0
        assert "Removed 3" in capsys.readouterr().out
