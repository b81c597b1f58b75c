"""Decide how a freshly captured conversation relates to the stored record.

Only position and content-identity equality (role + content) are used; there
are no conversation ids to lean on. The possible outcomes:

    noop       nothing was captured
    create     no record yet, or the capture is an unrelated conversation
    duplicate  the capture equals the stored record
    append     the capture extends the stored record
    replace    the leading prompt was edited and re-sent

All functions here are pure.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from .models import Message


class MergeAction(str, Enum):
    NOOP = "noop"
    CREATE = "create"
    DUPLICATE = "duplicate"
    APPEND = "append"
    REPLACE = "replace"


@dataclass(frozen=True)
class MergePlan:
    action: MergeAction
    new_messages: Tuple[Message, ...] = ()

    @property
    def writes(self) -> bool:
        return self.action not in (MergeAction.NOOP, MergeAction.DUPLICATE)


def _same_run(a: Sequence[Message], b: Sequence[Message]) -> bool:
    return len(a) == len(b) and all(x.same_as(y) for x, y in zip(a, b))


def is_continuation(stored: Sequence[Message], incoming: Sequence[Message]) -> bool:
    """True if ``incoming`` starts with every stored message, in order.

    An empty ``stored`` is continued by anything. Equal sequences count as a
    continuation with nothing new.
    """
    if len(incoming) < len(stored):
        return False
    return _same_run(stored, incoming[: len(stored)])


def is_edited_prompt(stored: Sequence[Message], incoming: Sequence[Message]) -> bool:
    """True if only the leading message was edited and the rest of the record matches.

    The leading message differs by role or content. For a one-message record
    the rest is empty, so any different first message is an edit. Edits
    anywhere else are not recognised.
    """
    if not stored or len(incoming) < len(stored):
        return False
    if is_continuation(stored, incoming):
        return False
    if stored[0].same_as(incoming[0]):
        return False
    return _same_run(stored[1:], incoming[1 : len(stored)])


def new_messages(stored: Sequence[Message], incoming: Sequence[Message]) -> Tuple[Message, ...]:
    return tuple(incoming[len(stored) :])


def plan_merge(stored: Optional[Sequence[Message]], incoming: Sequence[Message]) -> MergePlan:
    """Pick the write for ``incoming`` given the current record's messages.

    ``stored`` is None when there is no record at all.
    """
    if not incoming:
        return MergePlan(MergeAction.NOOP)
    if stored is None:
        return MergePlan(MergeAction.CREATE, tuple(incoming))

    if is_continuation(stored, incoming):
        suffix = new_messages(stored, incoming)
        if not suffix:
            return MergePlan(MergeAction.DUPLICATE)
        return MergePlan(MergeAction.APPEND, suffix)

    if is_edited_prompt(stored, incoming):
        return MergePlan(MergeAction.REPLACE, tuple(incoming))

    return MergePlan(MergeAction.CREATE, tuple(incoming))
