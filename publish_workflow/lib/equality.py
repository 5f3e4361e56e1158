"""
Structural comparison of a document against its live copy.

A document is considered unchanged if everything the live copy has is also
present, and equal, in the current document. The current document is allowed
to carry extra keys (e.g. fields added since the last publish that have not
been mirrored yet), and a few bookkeeping fields such as modification
timestamps are ignored at every level.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Iterable

DEFAULT_EXCLUDED_FIELDS = frozenset({"updated", "updated_at"})


def _same_kind(x: Any, y: Any) -> bool:
    # bool is a subclass of int, but True and 1 are different values here.
    if isinstance(x, bool) or isinstance(y, bool):
        return type(x) is type(y)
    return isinstance(x, type(y)) or isinstance(y, type(x))


def object_equals(current: Any, live: Any, excluded: Iterable[str] = DEFAULT_EXCLUDED_FIELDS) -> bool:
    """
    Return True if ``current`` is structurally equal to ``live``.

    Rules, in order:

    * ``None`` is only equal to ``None``.
    * Values of unrelated types are never equal.
    * Callables and compiled regular expressions are only equal to themselves.
    * Values that compare ``==`` are equal.
    * Lists/tuples must have the same length and pairwise equal items.
    * Mappings are equal if every key of ``live`` that is not in ``excluded``
      exists in ``current`` with a (recursively) equal value.
    * Anything else that isn't ``==`` (dates, numbers, strings...) differs.
    """
    excluded = frozenset(excluded)
    return _equals(current, live, excluded)


def _equals(current: Any, live: Any, excluded: frozenset[str]) -> bool:
    if current is None or live is None:
        return current is live

    if not _same_kind(current, live):
        return False

    if callable(current) or isinstance(current, re.Pattern):
        return current is live

    if current is live or current == live:
        return True

    if isinstance(current, (list, tuple)):
        if len(current) != len(live):
            return False
        return all(_equals(item, live_item, excluded) for item, live_item in zip(current, live))

    if isinstance(current, Mapping):
        live_keys = [key for key in live if key not in excluded]
        if not all(key in current for key in live_keys):
            return False
        return all(_equals(current[key], live[key], excluded) for key in live_keys)

    return False


def objects_differ(current: Any, live: Any, excluded: Iterable[str] = DEFAULT_EXCLUDED_FIELDS) -> bool:
    """
    Inverse of ``object_equals``.
    """
    return not object_equals(current, live, excluded)
