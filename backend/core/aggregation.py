"""Group flat joined rows (one row per parent/child pair) into parent aggregates."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Optional, TypeVar

R = TypeVar("R")
G = TypeVar("G")
C = TypeVar("C")


def group_rows(
    rows: Iterable[R],
    key: Callable[[R], Hashable],
    make_group: Callable[[R], G],
    make_child: Callable[[R], Optional[C]],
    children: Callable[[G], list],
) -> dict[Hashable, G]:
    """
    Fold `rows` into an ordered mapping of `key(row) -> group`.

    The group is built from the first row seen for its key. `make_child` may
    return None for rows whose child columns are NULL (LEFT JOIN with no
    match); those rows contribute the group only.
    """
    out: dict[Hashable, G] = {}
    for row in rows:
        k = key(row)
        group = out.get(k)
        if group is None:
            group = make_group(row)
            out[k] = group
        child = make_child(row)
        if child is not None:
            children(group).append(child)
    return out
