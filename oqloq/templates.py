"""Named reusable block-sets: built-in defaults merged with user templates.

Built-in templates are never removed from storage. Deleting one records it
as HIDDEN so it drops out of listings and can be restored later. Custom
templates are stored as a list in creation order.
"""

from __future__ import annotations

import copy
import enum
import logging
import secrets

from oqloq.blocks import BlockStore
from oqloq.models import RoutineBlock, Template, clone_blocks
from oqloq.storage import (
    CURRENT_TEMPLATE_KEY,
    DELETED_DEFAULT_TEMPLATES_KEY,
    TEMPLATES_KEY,
    StoragePort,
    read_record,
    write_record,
)

logger = logging.getLogger(__name__)


def _block(block_id: str, title: str, color: str, start: int, end: int) -> RoutineBlock:
    return RoutineBlock(id=block_id, title=title, color=color, start_minute=start, end_minute=end)


DEFAULT_TEMPLATES: tuple[Template, ...] = (
    Template(
        id="student",
        name="Student",
        blocks=[
            _block("student-sleep-1", "Sleep", "#A8D8FF", 0, 480),
            _block("student-school", "School", "#FFD6A5", 480, 960),
            _block("student-study", "Study", "#CAFFBF", 960, 1200),
            _block("student-free", "Free Time", "#E0D5FF", 1200, 1440),
        ],
    ),
    Template(
        id="professional",
        name="Professional",
        blocks=[
            _block("pro-sleep", "Sleep", "#A8D8FF", 0, 420),
            _block("pro-deepwork", "Deep Work", "#FFD6A5", 420, 840),
            _block("pro-meetings", "Meetings", "#CAFFBF", 840, 1080),
            _block("pro-personal", "Personal Time", "#E0D5FF", 1080, 1440),
        ],
    ),
)

FALLBACK_TEMPLATE_ID = DEFAULT_TEMPLATES[0].id
BUILT_IN_IDS = tuple(t.id for t in DEFAULT_TEMPLATES)


def default_blocks() -> list[RoutineBlock]:
    """A fresh copy of the first built-in template's blocks."""
    return clone_blocks(DEFAULT_TEMPLATES[0].blocks)


class Visibility(enum.Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


def _parse_templates(data: object) -> list[Template]:
    if not isinstance(data, list):
        raise TypeError("custom templates must be a list")
    return [Template.from_dict(t) for t in data]


def _parse_hidden(data: object) -> dict[str, Visibility]:
    if not isinstance(data, list):
        raise TypeError("hidden template ids must be a list")
    hidden = {str(x) for x in data}
    return {tid: Visibility.HIDDEN if tid in hidden else Visibility.VISIBLE for tid in BUILT_IN_IDS}


def _all_visible() -> dict[str, Visibility]:
    return {tid: Visibility.VISIBLE for tid in BUILT_IN_IDS}


def _parse_current(data: object) -> str:
    if not isinstance(data, str) or not data:
        raise TypeError("current template id must be a non-empty string")
    return data


class TemplateStore:
    def __init__(self, storage: StoragePort, blocks: BlockStore) -> None:
        self._storage = storage
        self._blocks = blocks

    # ── Persisted records ─────────────────────────────────────

    def _custom(self) -> list[Template]:
        return read_record(self._storage, TEMPLATES_KEY, _parse_templates, list)

    def _save_custom(self, templates: list[Template]) -> None:
        write_record(self._storage, TEMPLATES_KEY, [t.to_dict() for t in templates])

    def _visibility_map(self) -> dict[str, Visibility]:
        return read_record(self._storage, DELETED_DEFAULT_TEMPLATES_KEY, _parse_hidden, _all_visible)

    def _save_visibility(self, states: dict[str, Visibility]) -> None:
        hidden = [tid for tid in BUILT_IN_IDS if states.get(tid) is Visibility.HIDDEN]
        write_record(self._storage, DELETED_DEFAULT_TEMPLATES_KEY, hidden)

    # ── Queries ───────────────────────────────────────────────

    @staticmethod
    def is_built_in(template_id: str) -> bool:
        return template_id in BUILT_IN_IDS

    def visibility(self, template_id: str) -> Visibility | None:
        """Visibility of a built-in template; None for any other id."""
        return self._visibility_map().get(template_id)

    def list_built_ins(self) -> list[Template]:
        states = self._visibility_map()
        return [copy.deepcopy(t) for t in DEFAULT_TEMPLATES if states[t.id] is Visibility.VISIBLE]

    def list_all(self) -> list[Template]:
        """Visible built-ins first, then custom templates in creation order."""
        return self.list_built_ins() + self._custom()

    def get_by_id(self, template_id: str) -> Template | None:
        for t in self.list_all():
            if t.id == template_id:
                return t
        return None

    def current_template_id(self) -> str:
        return read_record(self._storage, CURRENT_TEMPLATE_KEY, _parse_current, lambda: FALLBACK_TEMPLATE_ID)

    def current_template(self) -> Template:
        return self.get_by_id(self.current_template_id()) or copy.deepcopy(DEFAULT_TEMPLATES[0])

    # ── Mutations ─────────────────────────────────────────────

    def switch_to(self, template_id: str) -> list[RoutineBlock]:
        """Load a template's blocks as the live block-set.

        An unknown (or hidden) id loads the first built-in's blocks and
        leaves the stored current-template id unchanged.
        """
        template = self.get_by_id(template_id)
        if template is None:
            logger.warning("Template %s not found, loading %s blocks", template_id, FALLBACK_TEMPLATE_ID)
            blocks = default_blocks()
        else:
            write_record(self._storage, CURRENT_TEMPLATE_KEY, template.id)
            blocks = clone_blocks(template.blocks)
        self._blocks.replace_all(blocks)
        return blocks

    def create_from_blocks(self, name: str, blocks: list[RoutineBlock]) -> Template:
        template = Template(
            id=f"custom_{secrets.token_hex(6)}",
            name=name.strip(),
            blocks=clone_blocks(blocks),
        )
        custom = self._custom()
        custom.append(template)
        self._save_custom(custom)
        logger.info("Created template %s (%s)", template.id, template.name)
        return template

    def remove(self, template_id: str) -> bool:
        """Hide a built-in or delete a custom template.

        Hiding is idempotent. Returns False only for an unknown custom id.
        The caller must switch away if *template_id* was the current one.
        """
        if self.is_built_in(template_id):
            states = self._visibility_map()
            if states[template_id] is not Visibility.HIDDEN:
                states[template_id] = Visibility.HIDDEN
                self._save_visibility(states)
                logger.info("Hid built-in template %s", template_id)
            return True
        custom = self._custom()
        remaining = [t for t in custom if t.id != template_id]
        if len(remaining) == len(custom):
            return False
        self._save_custom(remaining)
        logger.info("Deleted template %s", template_id)
        return True

    def restore(self, template_id: str) -> bool:
        """Make a hidden built-in visible again."""
        if not self.is_built_in(template_id):
            return False
        states = self._visibility_map()
        if states[template_id] is Visibility.HIDDEN:
            states[template_id] = Visibility.VISIBLE
            self._save_visibility(states)
        return True
