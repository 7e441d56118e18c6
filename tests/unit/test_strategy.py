"""Tests for platform dispatch and the two sweep algorithms."""

import signal
from subprocess import CompletedProcess
from unittest.mock import AsyncMock, patch

import pytest

from tree_reaper.core.config import ReaperConfig
from tree_reaper.core.strategy import (
    EnumeratingStrategy,
    NativeTreeKillStrategy,
    default_strategy,
    select_strategy,
)

ROOT, A, B, C = 1, 2, 3, 4


class TestBlockingSweep:
    def test_leaves_before_ancestors(self, table):
        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        order = table.signalled
        assert order.index(C) < order.index(A)
        assert order.index(A) < order.index(ROOT)
        assert order.index(B) < order.index(ROOT)
        assert order[-1] == ROOT
        assert sorted(order) == [ROOT, A, B, C]

    def test_same_signal_for_every_process(self, table):
        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        assert {sig for _, sig in table.signals} == {signal.SIGTERM}

    def test_every_node_discovers_its_own_children(self, table):
        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        assert sorted(table.child_queries) == [ROOT, A, B, C]

    def test_failed_discovery_degrades_to_leaf(self, table):
        table.failing_listers.add(A)

        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        # C is unreachable once A's listing fails, but A, B and root still die
        assert table.signalled == [A, B, ROOT]

    def test_failed_discovery_at_root_still_signals_root(self, table):
        table.failing_listers.add(ROOT)

        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        assert table.signalled == [ROOT]

    def test_signal_failures_do_not_stop_sweep(self, make_table):
        sent = []

        def flaky_sender(pid, sig):
            sent.append(pid)
            if pid == C:
                raise PermissionError("not allowed")

        strategy = EnumeratingStrategy(
            child_lister=make_table({ROOT: [A, B], A: [C]}).list_children,
            signal_sender=flaky_sender,
        )
        strategy.kill_tree(ROOT, signal.SIGTERM)

        assert sent[-1] == ROOT
        assert set(sent) == {ROOT, A, B, C}

    def test_unknown_pid_does_not_raise(self, make_table):
        table = make_table({})

        table.strategy().kill_tree(4242, signal.SIGKILL)

        assert table.signalled == [4242]

    def test_deep_chain_does_not_hit_recursion_limit(self):
        depth = 5000
        sent = []
        strategy = EnumeratingStrategy(
            child_lister=lambda pid: [pid + 1] if pid < depth else [],
            signal_sender=lambda pid, sig: sent.append(pid),
        )

        strategy.kill_tree(1, signal.SIGTERM)

        assert sent == list(range(depth, 0, -1))

    def test_cyclic_table_terminates(self, make_table):
        table = make_table({ROOT: [A], A: [B], B: [ROOT, A]})

        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        assert table.signalled == [B, A, ROOT]
        assert sorted(table.child_queries) == [ROOT, A, B]

    def test_shared_child_is_signalled_once(self, make_table):
        table = make_table({ROOT: [A, B], A: [C], B: [C]})

        table.strategy().kill_tree(ROOT, signal.SIGTERM)

        assert table.signalled == [C, A, B, ROOT]


class TestSuspendingSweep:
    @pytest.mark.asyncio
    async def test_reverse_of_enumerated_order_then_root(self):
        sent = []
        strategy = EnumeratingStrategy(
            child_lister=lambda pid: [],
            descendant_lister=AsyncMock(return_value=[ROOT, A, B, C]),
            signal_sender=lambda pid, sig: sent.append(pid),
        )

        await strategy.kill_tree_async(ROOT, signal.SIGTERM)

        # Root is signalled once, last, even though the enumerator listed it
        assert sent == [C, B, A, ROOT]

    @pytest.mark.asyncio
    async def test_preorder_listing_kills_leaves_first(self, table):
        await table.strategy().kill_tree_async(ROOT, signal.SIGTERM)

        # Pre-order is [A, C, B]; reversed gives B, C, A
        assert table.signalled == [B, C, A, ROOT]

    @pytest.mark.asyncio
    async def test_enumeration_failure_still_signals_root(self):
        sent = []
        strategy = EnumeratingStrategy(
            child_lister=lambda pid: [],
            descendant_lister=AsyncMock(side_effect=ProcessLookupError(ROOT)),
            signal_sender=lambda pid, sig: sent.append(pid),
        )

        await strategy.kill_tree_async(ROOT, signal.SIGTERM)

        assert sent == [ROOT]

    @pytest.mark.asyncio
    async def test_each_send_guarded_independently(self):
        sent = []

        def sender(pid, sig):
            sent.append(pid)
            raise ProcessLookupError(pid)

        strategy = EnumeratingStrategy(
            child_lister=lambda pid: [],
            descendant_lister=AsyncMock(return_value=[A, B, C]),
            signal_sender=sender,
        )

        await strategy.kill_tree_async(ROOT, signal.SIGKILL)

        assert sent == [C, B, A, ROOT]


class TestNativeTreeKill:
    def test_runs_taskkill_for_tree(self):
        strategy = NativeTreeKillStrategy(taskkill_executable="taskkill.exe", timeout=5)

        with patch("tree_reaper.core.strategy.run_command") as mock_run:
            mock_run.return_value = CompletedProcess(args=[], returncode=0, stdout="", stderr="")
            strategy.kill_tree(1234, signal.SIGTERM)

        mock_run.assert_called_once_with(
            ["taskkill.exe", "/pid", "1234", "/t", "/f"], check=False, timeout=5
        )

    def test_missing_taskkill_is_swallowed(self):
        strategy = NativeTreeKillStrategy()

        with patch("tree_reaper.core.strategy.run_command", side_effect=FileNotFoundError("taskkill")):
            strategy.kill_tree(1234, signal.SIGTERM)

    def test_nonzero_exit_is_swallowed(self):
        strategy = NativeTreeKillStrategy()

        with patch("tree_reaper.core.strategy.run_command") as mock_run:
            mock_run.return_value = CompletedProcess(
                args=[], returncode=128, stdout="", stderr="ERROR: process not found"
            )
            strategy.kill_tree(1234, signal.SIGTERM)

    @pytest.mark.asyncio
    async def test_async_runs_taskkill(self):
        strategy = NativeTreeKillStrategy()

        with patch("tree_reaper.core.strategy.run_command_async", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CompletedProcess(args=[], returncode=0, stdout="", stderr="")
            await strategy.kill_tree_async(99, signal.SIGTERM)

        mock_run.assert_awaited_once_with(
            ["taskkill", "/pid", "99", "/t", "/f"], check=False, timeout=None
        )

    @pytest.mark.asyncio
    async def test_async_failure_is_swallowed(self):
        strategy = NativeTreeKillStrategy()

        with patch(
            "tree_reaper.core.strategy.run_command_async",
            new_callable=AsyncMock,
            side_effect=OSError("no such file"),
        ):
            await strategy.kill_tree_async(99, signal.SIGTERM)


class TestSelectStrategy:
    def test_windows_uses_native(self):
        strategy = select_strategy(system="Windows")
        assert isinstance(strategy, NativeTreeKillStrategy)

    @pytest.mark.parametrize("system", ["Linux", "Darwin", "FreeBSD"])
    def test_posix_uses_enumeration(self, system):
        strategy = select_strategy(system=system)
        assert isinstance(strategy, EnumeratingStrategy)

    def test_config_flows_into_native(self):
        config = ReaperConfig(taskkill_executable="C:/tools/taskkill.exe", command_timeout=3)

        strategy = select_strategy(system="Windows", config=config)

        assert strategy.taskkill_executable == "C:/tools/taskkill.exe"
        assert strategy.timeout == 3

    def test_config_flows_into_enumerating(self):
        config = ReaperConfig(pgrep_executable="/opt/bin/pgrep", ps_executable="/opt/bin/ps")

        strategy = select_strategy(system="Linux", config=config)

        assert strategy.child_lister.keywords["pgrep_executable"] == "/opt/bin/pgrep"
        assert strategy.descendant_lister.keywords["ps_executable"] == "/opt/bin/ps"

    def test_default_strategy_is_chosen_once(self):
        default_strategy.cache_clear()
        try:
            with patch("tree_reaper.core.strategy.platform.system", return_value="Linux") as mock_system:
                first = default_strategy()
                second = default_strategy()
            assert first is second
            assert mock_system.call_count == 1
        finally:
            default_strategy.cache_clear()
