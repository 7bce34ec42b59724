"""Course reserve browse trees.

Catalog records carry their reserve associations as flat tags of the form
``courseID|courseName|instructorName``. A search by instructor folds the
matching tags into instructor -> course -> items; a search by course folds
them into course -> instructor -> items. Both are the same two-level fold
with the outer and inner axes swapped.

Every level is sorted after folding so the output does not depend on the
order the index returned the records in.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple, Optional

from verticals.reserves.models.schemas import (
    CourseGroup,
    CourseItems,
    InstructorGroup,
    InstructorItems,
    ReserveItem,
    ReserveRecord,
)

logger = logging.getLogger(__name__)

TAG_SEPARATOR = "|"


class ReserveTag(NamedTuple):
    course_id: str
    course_name: str
    instructor: str


def parse_reserve_tag(raw: str) -> Optional[ReserveTag]:
    """Split a raw reserve tag; None when it has fewer than three fields."""
    parts = raw.split(TAG_SEPARATOR)
    if len(parts) < 3:
        logger.warning("Skipping malformed reserve tag %r", raw)
        return None
    course_id, course_name, instructor = (p.strip() for p in parts[:3])
    if not course_id or not instructor:
        logger.warning("Skipping reserve tag without course or instructor %r", raw)
        return None
    return ReserveTag(course_id, course_name, instructor)


def matches_prefix(value: str, prefix: str) -> bool:
    """Case-insensitive match anchored at the start of *value*."""
    return value.lower().startswith(prefix.replace("*", "").strip().lower())


def reserve_item(record: ReserveRecord) -> ReserveItem:
    return ReserveItem(
        id=record.id,
        title=record.title[0] if record.title else "",
        author="; ".join(record.author),
        call_number=", ".join(record.call_number),
    )


# ---------------------------------------------------------------------------
# Generic two-level fold
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Axis:
    """One level of the tree: how to key a tag and what to call the group."""

    key: Callable[[ReserveTag], str]
    label: Callable[[ReserveTag], str]


INSTRUCTOR_AXIS = Axis(key=lambda t: t.instructor, label=lambda t: t.instructor)
COURSE_AXIS = Axis(key=lambda t: t.course_id, label=lambda t: t.course_name)


@dataclass
class Branch:
    key: str
    label: str
    items: dict[str, ReserveItem]


@dataclass
class Trunk:
    key: str
    label: str
    branches: dict[str, Branch]


def _pick_label(current: str, candidate: str) -> str:
    # same key, different labels: keep the first non-empty one alphabetically
    return min(current, candidate, key=lambda s: (s == "", s))


def fold_reserves(
    query: str,
    records: Iterable[ReserveRecord],
    outer: Axis,
    inner: Axis,
) -> list[Trunk]:
    """Fold matching tags into outer -> inner -> items, sorted at every level.

    A tag matches when its outer key starts with *query*. A record appears
    at most once under a given (outer, inner) pair however many of its tags
    point there.
    """
    trunks: dict[str, Trunk] = {}
    for record in records:
        item = None
        for raw in record.reserve_info:
            tag = parse_reserve_tag(raw)
            if tag is None or not matches_prefix(outer.key(tag), query):
                continue
            if item is None:
                item = reserve_item(record)

            outer_key, inner_key = outer.key(tag), inner.key(tag)
            trunk = trunks.setdefault(outer_key, Trunk(outer_key, outer.label(tag), {}))
            trunk.label = _pick_label(trunk.label, outer.label(tag))
            branch = trunk.branches.setdefault(inner_key, Branch(inner_key, inner.label(tag), {}))
            branch.label = _pick_label(branch.label, inner.label(tag))
            branch.items.setdefault(item.id, item)

    out = []
    for trunk in sorted(trunks.values(), key=lambda t: t.key):
        branches = {}
        for branch in sorted(trunk.branches.values(), key=lambda b: b.key):
            ordered = sorted(branch.items.values(), key=lambda i: (i.title, i.id))
            branches[branch.key] = Branch(branch.key, branch.label, {i.id: i for i in ordered})
        out.append(Trunk(trunk.key, trunk.label, branches))
    return out


# ---------------------------------------------------------------------------
# Public search shapes
# ---------------------------------------------------------------------------

def group_by_instructor(query: str, records: Iterable[ReserveRecord]) -> list[InstructorGroup]:
    logger.info("Extract instructor course reserves for %s", query)
    return [
        InstructorGroup(
            instructor_name=trunk.label,
            courses=[
                CourseItems(course_id=b.key, course_name=b.label, items=list(b.items.values()))
                for b in trunk.branches.values()
            ],
        )
        for trunk in fold_reserves(query, records, INSTRUCTOR_AXIS, COURSE_AXIS)
    ]


def group_by_course(query: str, records: Iterable[ReserveRecord]) -> list[CourseGroup]:
    logger.info("Extract course reserves for %s", query)
    return [
        CourseGroup(
            course_id=trunk.key,
            course_name=trunk.label,
            instructors=[
                InstructorItems(instructor_name=b.label, items=list(b.items.values()))
                for b in trunk.branches.values()
            ],
        )
        for trunk in fold_reserves(query, records, COURSE_AXIS, INSTRUCTOR_AXIS)
    ]
