"""Reconciliation of two snapshots into a change plan.

The source snapshot is authoritative for the whole run: records are
matched by ``id`` only, and any difference in any attribute (nested
mappings and sequences included) makes the source version replace the
target version.  Nothing is merged and no conflicts are resolved.

Structural equality is computed by ``values_equal``, an explicit
recursive comparator.  Mapping key order never affects the result, so a
record that went through a database round trip with reordered keys in
``stages`` is not reported as changed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .models import (
    RECORD_FIELDS,
    ChangePlan,
    Record,
    RecordUpdate,
    Snapshot,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Structural equality
# ------------------------------------------------------------------


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def values_equal(left: Any, right: Any) -> bool:
    """Return ``True`` if *left* and *right* are structurally equal.

    Rules:

    * Mappings: same key set, and equal values per key.  Insertion order
      is irrelevant.
    * Sequences (other than strings): same length, element-wise equal,
      order significant.
    * ``bool`` is distinct from numbers, so ``True`` never equals ``1``.
    * Everything else falls back to ``==`` (``1 == 1.0`` holds).
    """
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)

    if _is_sequence(left) or _is_sequence(right):
        if not (_is_sequence(left) and _is_sequence(right)):
            return False
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right

    return left == right


def ordered_keys(keys: set[str] | Any, canonical: Sequence[str]) -> list[str]:
    """Order *keys* with the canonical ones first, then the rest sorted."""
    keys = set(keys)
    known = [key for key in canonical if key in keys]
    extra = sorted(key for key in keys if key not in canonical)
    return known + extra


def changed_fields(source: Record, target: Record) -> list[str]:
    """List top-level attributes whose values differ between two records.

    An attribute present on one side only counts as changed.
    """
    _missing = object()
    keys = set(source) | set(target)
    return [
        key
        for key in ordered_keys(keys, RECORD_FIELDS)
        if not values_equal(source.get(key, _missing), target.get(key, _missing))
    ]


# ------------------------------------------------------------------
# Plan computation
# ------------------------------------------------------------------


def compute_plan(
    source: Snapshot,
    target: Snapshot,
    *,
    include_deletes: bool = True,
) -> ChangePlan:
    """Classify every record id across *source* and *target*.

    Args:
        source: Authoritative snapshot (its content should prevail).
        target: Receiving-side snapshot.
        include_deletes: When ``False``, records that exist only in the
            target are left alone and reported as unchanged instead of
            being scheduled for deletion.

    Returns:
        A ``ChangePlan``.  Creates keep source order; deletes keep target
        order.  Neither snapshot is modified.
    """
    source_map = source.by_id()
    target_map = target.by_id()

    to_create: list[Record] = []
    to_update: list[RecordUpdate] = []
    to_delete: list[Record] = []
    unchanged: list[str] = []

    for record_id, source_record in source_map.items():
        target_record = target_map.get(record_id)
        if target_record is None:
            to_create.append(source_record)
        elif values_equal(source_record, target_record):
            unchanged.append(record_id)
        else:
            to_update.append(
                RecordUpdate(
                    source=source_record,
                    target=target_record,
                    changed_fields=changed_fields(source_record, target_record),
                )
            )

    for record_id, target_record in target_map.items():
        if record_id in source_map:
            continue
        if include_deletes:
            to_delete.append(target_record)
        else:
            unchanged.append(record_id)

    settings_changed = not values_equal(source.settings, target.settings)
    settings_changes = (
        settings_differences(source.settings, target.settings)
        if settings_changed
        else []
    )

    logger.debug(
        "Plan: %d create, %d update, %d delete, %d unchanged, settings_changed=%s",
        len(to_create),
        len(to_update),
        len(to_delete),
        len(unchanged),
        settings_changed,
    )

    return ChangePlan(
        to_create=to_create,
        to_update=to_update,
        to_delete=to_delete,
        unchanged_ids=unchanged,
        settings_changed=settings_changed,
        settings_changes=settings_changes,
    )


def settings_differences(source: dict[str, Any], target: dict[str, Any]) -> list[str]:
    """Describe how *target* settings would change to match *source*.

    Returns one human-readable line per differing area (year range, colour
    map, project type colours, other keys).  Empty when equal.
    """
    lines: list[str] = []

    if not (
        values_equal(source.get("startYear"), target.get("startYear"))
        and values_equal(source.get("endYear"), target.get("endYear"))
    ):
        lines.append(
            f"Year range: {target.get('startYear')}-{target.get('endYear')}"
            f" -> {source.get('startYear')}-{source.get('endYear')}"
        )

    for key, label in (("colorMap", "Color map"), ("projectTypeColors", "Project type colors")):
        if not values_equal(source.get(key), target.get(key)):
            before = len(target.get(key) or {})
            after = len(source.get(key) or {})
            lines.append(f"{label}: {before} -> {after} colors")

    known = {"startYear", "endYear", "colorMap", "projectTypeColors"}
    for key in sorted((set(source) | set(target)) - known):
        if not values_equal(source.get(key), target.get(key)):
            lines.append(f"{key}: changed")

    return lines
