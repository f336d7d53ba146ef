"""
Undo/Redo Document Store

Keeps an editable scratch value plus a linear history of immutable commits.
History is stored as a flat, append-only list of commits and two index stacks
(undo and redo) pointing into it; the head is the commit the scratch value was
last synchronised with.
"""

import copy
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Generic, List, Optional, TypeVar

from ..errors import IndexOutOfRange

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_INITIAL_MESSAGE = "created document"


def _default_id_generator() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Commit(Generic[T]):
    """Immutable snapshot of the document plus metadata"""
    id: str
    parent_id: Optional[str]
    timestamp: datetime
    message: str
    snapshot: T


class UndoRedoStore(Generic[T]):
    """
    Undoable store for a value-semantic document.

    Mutations made through `scratch` are not tracked until `commit_scratch`
    is called. Undo and redo always reseed the scratch value from the new head.
    """

    def __init__(self,
                 initial: T,
                 initial_message: str = DEFAULT_INITIAL_MESSAGE,
                 clock: Optional[Callable[[], datetime]] = None,
                 id_generator: Optional[Callable[[], str]] = None,
                 copy_fn: Optional[Callable[[T], T]] = None):
        """
        Args:
            initial: Initial document value (copied)
            initial_message: Message of the synthetic first commit
            clock: Returns commit timestamps (default: datetime.now)
            id_generator: Returns unique commit ids (default: uuid4 hex)
            copy_fn: Produces an independent copy of a document (default: deepcopy)
        """
        self._clock = clock or datetime.now
        self._id_generator = id_generator or _default_id_generator
        self._copy = copy_fn or copy.deepcopy

        self._commits: List[Commit[T]] = []
        self._undo: List[int] = []
        self._redo: List[int] = []

        self._head = self._append_commit(None, initial_message, initial)
        self._scratch: T = self._copy(initial)

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------

    def _append_commit(self, parent_id: Optional[str], message: str, value: T) -> int:
        commit = Commit(
            id=self._id_generator(),
            parent_id=parent_id,
            timestamp=self._clock(),
            message=message,
            snapshot=self._copy(value),
        )
        self._commits.append(commit)
        return len(self._commits) - 1

    def _detached(self, commit: Commit[T]) -> Commit[T]:
        # callers get their own snapshot so history cannot be edited through it
        return replace(commit, snapshot=self._copy(commit.snapshot))

    def _reseed_scratch(self) -> None:
        self._scratch = self._copy(self._commits[self._head].snapshot)

    @staticmethod
    def _entry(stack: List[int], i: int) -> int:
        # stacks keep their most recent entry at the end
        if not 0 <= i < len(stack):
            raise IndexOutOfRange(f"History entry {i} out of range (size {len(stack)})")
        return stack[len(stack) - 1 - i]

    # ------------------------------------------------------------------
    # scratch
    # ------------------------------------------------------------------

    @property
    def scratch(self) -> T:
        """Mutable head document"""
        return self._scratch

    def set_scratch(self, value: T) -> None:
        """Replace the whole scratch document with a copy of `value` (not committed)"""
        self._scratch = self._copy(value)

    def is_dirty(self) -> bool:
        """`True` when scratch has uncommitted changes"""
        return self._scratch != self._commits[self._head].snapshot

    def rollback(self) -> None:
        """Discard uncommitted changes"""
        self._reseed_scratch()

    def commit_scratch(self, message: str) -> Commit[T]:
        """
        Snapshot the scratch document as a new commit on top of the head.

        Args:
            message: Human-readable description of the change

        Returns:
            The new head commit
        """
        parent = self._commits[self._head]
        new_head = self._append_commit(parent.id, message, self._scratch)
        self._undo.append(self._head)
        self._redo.clear()
        self._head = new_head
        logger.debug("Committed '%s' (%d undo entries)", message, len(self._undo))
        return self._detached(self._commits[new_head])

    # ------------------------------------------------------------------
    # undo / redo
    # ------------------------------------------------------------------

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> None:
        if not self._undo:
            return
        self._redo.append(self._head)
        self._head = self._undo.pop()
        self._reseed_scratch()

    def undo_to(self, n: int) -> None:
        """
        Undo `n + 1` steps at once (so `undo_to(0)` is `undo()`).
        Out-of-range values are ignored.
        """
        if not 0 <= n < len(self._undo):
            return
        for _ in range(n + 1):
            self._redo.append(self._head)
            self._head = self._undo.pop()
        self._reseed_scratch()

    def redo(self) -> None:
        if not self._redo:
            return
        self._undo.append(self._head)
        self._head = self._redo.pop()
        self._reseed_scratch()

    def redo_to(self, n: int) -> None:
        """
        Redo `n + 1` steps at once (so `redo_to(0)` is `redo()`).
        Out-of-range values are ignored.
        """
        if not 0 <= n < len(self._redo):
            return
        for _ in range(n + 1):
            self._undo.append(self._head)
            self._head = self._redo.pop()
        self._reseed_scratch()

    # ------------------------------------------------------------------
    # read-only history access
    # ------------------------------------------------------------------

    def get_head(self) -> Commit[T]:
        """Head commit (its snapshot is a copy)"""
        return self._detached(self._commits[self._head])

    @property
    def head(self) -> Commit[T]:
        return self.get_head()

    def num_undo_entries(self) -> int:
        return len(self._undo)

    def num_redo_entries(self) -> int:
        return len(self._redo)

    def get_undo_entry(self, i: int) -> Commit[T]:
        """Undo entry `i`, where 0 is the commit `undo()` would restore"""
        return self._detached(self._commits[self._entry(self._undo, i)])

    def get_redo_entry(self, i: int) -> Commit[T]:
        """Redo entry `i`, where 0 is the commit `redo()` would restore"""
        return self._detached(self._commits[self._entry(self._redo, i)])

    def get_commit(self, commit_id: str) -> Optional[Commit[T]]:
        for commit in self._commits:
            if commit.id == commit_id:
                return self._detached(commit)
        return None

    def __repr__(self) -> str:
        return (f"UndoRedoStore(head='{self._commits[self._head].message}', undo={len(self._undo)}, "
                f"redo={len(self._redo)})")
