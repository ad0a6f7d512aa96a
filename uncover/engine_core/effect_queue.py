"""
Pending Effect Queue - FIFO backlog of effects waiting to run.

Effects land here when they cannot run right away: on-play effects of a
card, effects exposed by an uncover, reactive effects fired by an action.
The engine drains the queue front to back; a drain that stops for a
decision picks up where it left off on the next run.

Outside callers can look (snapshot, len, iteration) but not reorder. The
only non-FIFO insertion is push_front(), which the engine uses to continue
the chain an effect has already started (its then-branch).
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import Iterator

from ..catalog.effect_dsl import BoxPosition, EffectDefinition
from .perspective import Perspective
from .state import Side


@dataclass(frozen=True)
class QueuedEffect:
    """
    One effect awaiting execution, with the context it runs in.

    ``origins`` holds the (card, effect) pairs whose execution led to this
    entry; the reactive dispatcher uses it to stop an effect re-firing
    from its own consequences.
    """
    seq: int
    effect: EffectDefinition
    source_card_id: str
    owner: Side
    cause: str
    box: BoxPosition | None = None
    origins: frozenset[tuple[str, str]] = field(default_factory=frozenset)

    @property
    def perspective(self) -> Perspective:
        return Perspective.of(self.owner)

    @property
    def key(self) -> tuple[str, str]:
        return (self.source_card_id, self.effect.effect_id)

    @property
    def lineage(self) -> frozenset[tuple[str, str]]:
        """Origins of anything this entry causes."""
        return self.origins | {self.key}

    def describe(self) -> str:
        return f"{self.effect.effect_id}@{self.source_card_id} ({self.cause})"


class PendingEffectQueue:
    """
    Ordered backlog of QueuedEffect entries.

    Usage:
        queue = PendingEffectQueue()
        queue.enqueue(effect, "Psychic-3#4", Side.OPPONENT, cause="uncover")
        entry = queue.pop()
    """

    def __init__(self):
        self._entries: deque[QueuedEffect] = deque()
        self._seq = count(1)

    def enqueue(
        self,
        effect: EffectDefinition,
        source_card_id: str,
        owner: Side,
        cause: str,
        box: BoxPosition | None = None,
        origins: frozenset[tuple[str, str]] = frozenset(),
    ) -> QueuedEffect:
        """Create an entry and append it to the back."""
        entry = self.make_entry(effect, source_card_id, owner, cause, box, origins)
        self._entries.append(entry)
        return entry

    def make_entry(
        self,
        effect: EffectDefinition,
        source_card_id: str,
        owner: Side,
        cause: str,
        box: BoxPosition | None = None,
        origins: frozenset[tuple[str, str]] = frozenset(),
    ) -> QueuedEffect:
        """Create a numbered entry without queueing it."""
        return QueuedEffect(
            seq=next(self._seq),
            effect=effect,
            source_card_id=source_card_id,
            owner=owner,
            cause=cause,
            box=box,
            origins=origins,
        )

    def extend(self, entries: list[QueuedEffect]):
        self._entries.extend(entries)

    def push_front(self, entry: QueuedEffect):
        """Put a chain continuation ahead of everything already waiting."""
        self._entries.appendleft(entry)

    def pop(self) -> QueuedEffect:
        """Remove and return the oldest entry. Raises IndexError when empty."""
        return self._entries.popleft()

    def clear(self) -> list[QueuedEffect]:
        """Discard every entry, returning what was dropped."""
        dropped = list(self._entries)
        self._entries.clear()
        return dropped

    def snapshot(self) -> tuple[QueuedEffect, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[QueuedEffect]:
        return iter(self.snapshot())
