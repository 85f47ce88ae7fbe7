"""Annular-sector geometry for the 24-hour dial.

Blocks are drawn as ring segments between an inner and an outer radius.
Screen coordinates follow SVG conventions: y grows downward, so a positive
angle sweeps clockwise. Minute 0 sits at the top of the dial.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import NamedTuple, Sequence

from oqloq.models import RoutineBlock
from oqloq.timemath import MINUTES_PER_DAY, degrees_to_minutes, minutes_to_radians

HALF_DAY = MINUTES_PER_DAY // 2


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class ArcPath:
    """Boundary of one block's ring segment."""

    outer_start: Point
    outer_end: Point
    inner_end: Point
    inner_start: Point
    outer_radius: float
    inner_radius: float
    large_arc: bool
    # Set only for a whole-day block, whose start and end points coincide.
    outer_mid: Point | None = None
    inner_mid: Point | None = None

    @property
    def full_circle(self) -> bool:
        return self.outer_mid is not None

    def to_svg(self) -> str:
        """SVG path data: outer arc clockwise, edge line, inner arc back, close."""
        R, r = self.outer_radius, self.inner_radius
        large = 1 if self.large_arc else 0
        if self.outer_mid is not None and self.inner_mid is not None:
            return " ".join([
                f"M {_fmt(self.outer_start)}",
                f"A {R:g} {R:g} 0 0 1 {_fmt(self.outer_mid)}",
                f"A {R:g} {R:g} 0 0 1 {_fmt(self.outer_end)}",
                f"L {_fmt(self.inner_end)}",
                f"A {r:g} {r:g} 0 0 0 {_fmt(self.inner_mid)}",
                f"A {r:g} {r:g} 0 0 0 {_fmt(self.inner_start)}",
                "Z",
            ])
        return " ".join([
            f"M {_fmt(self.outer_start)}",
            f"A {R:g} {R:g} 0 {large} 1 {_fmt(self.outer_end)}",
            f"L {_fmt(self.inner_end)}",
            f"A {r:g} {r:g} 0 {large} 0 {_fmt(self.inner_start)}",
            "Z",
        ])


def _fmt(p: Point) -> str:
    return f"{round(p.x, 4):g} {round(p.y, 4):g}"


def point_on_ring(minute: float, radius: float, center: Point) -> Point:
    theta = minutes_to_radians(minute)
    return Point(center.x + radius * math.cos(theta), center.y + radius * math.sin(theta))


def arc_path(block: RoutineBlock, outer_radius: float, thickness: float, center: Point) -> ArcPath:
    """Corner points and arc flags for *block* on a ring of the given size.

    large_arc is set when the block spans more than half the day, which
    picks the longer of the two arcs joining its endpoints.
    """
    inner_radius = outer_radius - thickness
    start, end = block.start_minute, block.end_minute
    span = end - start
    path = ArcPath(
        outer_start=point_on_ring(start, outer_radius, center),
        outer_end=point_on_ring(end, outer_radius, center),
        inner_end=point_on_ring(end, inner_radius, center),
        inner_start=point_on_ring(start, inner_radius, center),
        outer_radius=outer_radius,
        inner_radius=inner_radius,
        large_arc=span > HALF_DAY,
    )
    if span >= MINUTES_PER_DAY:
        mid = start + HALF_DAY
        path = dataclasses.replace(
            path,
            outer_mid=point_on_ring(mid, outer_radius, center),
            inner_mid=point_on_ring(mid, inner_radius, center),
        )
    return path


# ── Hit-testing ───────────────────────────────────────────────


@dataclass(frozen=True)
class BlockHit:
    block_id: str


@dataclass(frozen=True)
class EmptySlot:
    """A ring position not covered by any block; a creation anchor."""

    minute: int


def point_to_minute(point: Point, center: Point) -> int | None:
    """Minute under *point*, or None at the exact center where no angle exists."""
    dx = point.x - center.x
    dy = point.y - center.y
    if dx == 0 and dy == 0:
        return None
    angle = math.degrees(math.atan2(dy, dx))
    angle = (angle + 90 + 360) % 360
    return degrees_to_minutes(angle)


def find_block_at(minute: int, blocks: Sequence[RoutineBlock]) -> RoutineBlock | None:
    """First block in list order whose [start, end) contains *minute*.

    Blocks may overlap; list order decides which one is reported.
    """
    for block in blocks:
        if block.start_minute <= minute < block.end_minute:
            return block
    return None


def hit_test(
    point: Point,
    center: Point,
    inner_radius: float,
    outer_radius: float,
    blocks: Sequence[RoutineBlock],
) -> BlockHit | EmptySlot | None:
    """Resolve a click on the dial.

    Returns None when the point is off the ring (or the ring is degenerate),
    BlockHit for a covered minute and EmptySlot otherwise.
    """
    if outer_radius <= 0 or inner_radius > outer_radius:
        return None
    distance = math.hypot(point.x - center.x, point.y - center.y)
    if distance < inner_radius or distance > outer_radius:
        return None
    minute = point_to_minute(point, center)
    if minute is None:
        return None
    block = find_block_at(minute, blocks)
    if block is not None:
        return BlockHit(block.id)
    return EmptySlot(minute)
