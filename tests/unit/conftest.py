"""Shared test fixtures for unit tests.

FakeProcessTable stands in for the OS process table so the sweep order can be
asserted without spawning anything.
"""

from typing import Dict, List, Set, Tuple

import pytest

from tree_reaper.core.strategy import EnumeratingStrategy
from tree_reaper.utils.subprocess_utils import SubprocessError


class FakeProcessTable:
    """In-memory parent -> children table that records every signal sent."""

    def __init__(self, tree: Dict[int, List[int]]):
        self.children = {pid: list(kids) for pid, kids in tree.items()}
        self.alive: Set[int] = set(tree) | {kid for kids in tree.values() for kid in kids}
        self.signals: List[Tuple[int, int]] = []
        self.failing_listers: Set[int] = set()
        self.child_queries: List[int] = []

    @property
    def signalled(self) -> List[int]:
        return [pid for pid, _ in self.signals]

    def list_children(self, pid: int) -> List[int]:
        self.child_queries.append(pid)
        if pid in self.failing_listers:
            raise SubprocessError(cmd=f"pgrep -P {pid}", returncode=2, stderr="boom")
        return [kid for kid in self.children.get(pid, []) if kid in self.alive]

    async def list_descendants(self, pid: int) -> List[int]:
        if pid not in self.alive:
            raise ProcessLookupError(pid)
        ordered = []
        stack = list(reversed(self.children.get(pid, [])))
        while stack:
            current = stack.pop()
            if current not in self.alive:
                continue
            ordered.append(current)
            stack.extend(reversed(self.children.get(current, [])))
        return ordered

    def send_signal(self, pid: int, sig: int) -> None:
        self.signals.append((pid, sig))
        if pid not in self.alive:
            raise ProcessLookupError(pid)
        self.alive.discard(pid)

    def strategy(self) -> EnumeratingStrategy:
        return EnumeratingStrategy(
            child_lister=self.list_children,
            descendant_lister=self.list_descendants,
            signal_sender=self.send_signal,
        )


# root(1) -> {A(2), B(3)}, A(2) -> {C(4)}
ROOT, A, B, C = 1, 2, 3, 4
SIMPLE_TREE = {ROOT: [A, B], A: [C]}


@pytest.fixture
def make_table():
    """Factory for a FakeProcessTable built from a parent -> children mapping."""
    return FakeProcessTable


@pytest.fixture
def table():
    return FakeProcessTable(SIMPLE_TREE)
