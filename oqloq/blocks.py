"""Today's live block-set: CRUD, checklist edits and persistence.

Each mutation writes the full resulting list before returning.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import secrets
from typing import Any, Callable

from oqloq.geometry import find_block_at
from oqloq.models import RoutineBlock, Todo, blocks_from_list, blocks_to_list, clone_blocks
from oqloq.storage import BLOCKS_KEY, StoragePort, read_record, write_record
from oqloq.timemath import MINUTES_PER_DAY

logger = logging.getLogger(__name__)


COLOR_PALETTE = [
    "#FFB4D6",  # pink
    "#A8D8FF",  # light blue
    "#FFD6A5",  # peach
    "#CAFFBF",  # light green
    "#E0D5FF",  # lavender
    "#FFF4B0",  # pale yellow
    "#B4E3FF",  # cyan
    "#FFD1DC",  # light pink
]

EDITABLE_FIELDS = {"title", "color", "start_minute", "end_minute", "todos"}


class BlockNotFoundError(LookupError):
    def __init__(self, block_id: str) -> None:
        super().__init__(f"Block not found: {block_id}")
        self.block_id = block_id


def _new_id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(6)}"


# ── Validation (edit boundary) ────────────────────────────────


def validate_block(title: str, start_minute: int, end_minute: int) -> list[str]:
    """Validate editor input and return list of errors (empty if valid).

    The store does not call this; editors must, before add/update.
    """
    errors = []
    if not (title or "").strip():
        errors.append("Title is required")
    if not 0 <= start_minute < MINUTES_PER_DAY:
        errors.append(f"Start minute out of range: {start_minute}")
    if not 0 < end_minute <= MINUTES_PER_DAY:
        errors.append(f"End minute out of range: {end_minute}")
    if end_minute <= start_minute:
        errors.append("End time must be after start time")
    return errors


def new_block(title: str, color: str, start_minute: int, end_minute: int) -> RoutineBlock:
    return RoutineBlock(
        id=_new_id("block"),
        title=title.strip(),
        color=color,
        start_minute=start_minute,
        end_minute=end_minute,
    )


# ── Store ─────────────────────────────────────────────────────


class BlockStore:
    """Owns the current block-set.

    With nothing stored, the set starts as a copy of *default_blocks()*
    (the first built-in template).
    """

    def __init__(self, storage: StoragePort, default_blocks: Callable[[], list[RoutineBlock]]) -> None:
        self._storage = storage
        self._blocks: list[RoutineBlock] = read_record(
            storage, BLOCKS_KEY, blocks_from_list, lambda: clone_blocks(default_blocks())
        )

    def _persist(self) -> None:
        write_record(self._storage, BLOCKS_KEY, blocks_to_list(self._blocks))
        logger.debug("Saved %d blocks", len(self._blocks))

    # Readers get copies; only the methods below change (and persist) the set.

    def list_blocks(self) -> list[RoutineBlock]:
        return clone_blocks(self._blocks)

    def _find(self, block_id: str) -> RoutineBlock | None:
        for b in self._blocks:
            if b.id == block_id:
                return b
        return None

    def get(self, block_id: str) -> RoutineBlock | None:
        block = self._find(block_id)
        return copy.deepcopy(block) if block is not None else None

    def active_block(self, minute: int) -> RoutineBlock | None:
        block = find_block_at(minute, self._blocks)
        return copy.deepcopy(block) if block is not None else None

    def add(self, block: RoutineBlock) -> RoutineBlock:
        if self._find(block.id) is not None:
            raise ValueError(f"Block ID already exists: {block.id}")
        self._blocks.append(copy.deepcopy(block))
        self._persist()
        return block

    def update(self, block_id: str, fields: dict[str, Any]) -> RoutineBlock:
        """Apply a partial update. Raises BlockNotFoundError for unknown ids."""
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown block fields: {', '.join(sorted(unknown))}")
        for i, b in enumerate(self._blocks):
            if b.id == block_id:
                updated = dataclasses.replace(b, **copy.deepcopy(fields))
                self._blocks[i] = updated
                self._persist()
                return copy.deepcopy(updated)
        raise BlockNotFoundError(block_id)

    def upsert(self, block: RoutineBlock) -> RoutineBlock:
        """Editor save: replace the block with the same id, or append it."""
        if self._find(block.id) is None:
            return self.add(block)
        fields = {f: getattr(block, f) for f in EDITABLE_FIELDS}
        return self.update(block.id, fields)

    def delete(self, block_id: str) -> bool:
        remaining = [b for b in self._blocks if b.id != block_id]
        if len(remaining) == len(self._blocks):
            return False
        self._blocks = remaining
        self._persist()
        return True

    def replace_all(self, blocks: list[RoutineBlock]) -> None:
        """Swap in a whole block-set (template switch, schedule load)."""
        self._blocks = clone_blocks(blocks)
        self._persist()

    # ── Checklist ─────────────────────────────────────────────

    def _require(self, block_id: str) -> RoutineBlock:
        block = self._find(block_id)
        if block is None:
            raise BlockNotFoundError(block_id)
        return block

    def add_todo(self, block_id: str, text: str) -> Todo:
        text = (text or "").strip()
        if not text:
            raise ValueError("Todo text is required")
        block = self._require(block_id)
        todo = Todo(id=_new_id("todo"), text=text)
        self.update(block_id, {"todos": [*block.todos, todo]})
        return todo

    def toggle_todo(self, block_id: str, todo_id: str) -> Todo | None:
        block = self._require(block_id)
        toggled = None
        todos = []
        for t in block.todos:
            if t.id == todo_id:
                t = Todo(id=t.id, text=t.text, completed=not t.completed)
                toggled = t
            todos.append(t)
        if toggled is not None:
            self.update(block_id, {"todos": todos})
        return toggled

    def delete_todo(self, block_id: str, todo_id: str) -> bool:
        block = self._require(block_id)
        todos = [t for t in block.todos if t.id != todo_id]
        if len(todos) == len(block.todos):
            return False
        self.update(block_id, {"todos": todos})
        return True
