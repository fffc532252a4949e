"""Per-practice memo of group layouts keyed by group count."""

from __future__ import annotations

import copy
from collections.abc import Sequence

from teamride.practices.models import Group


class LayoutCache:
    """Remembers each group layout a practice has had, one per group count.

    Stored and returned layouts are copies.
    """

    def __init__(self):
        self._layouts: dict[str, dict[int, list[Group]]] = {}

    def store(self, practice_id: str, groups: Sequence[Group]) -> None:
        if not groups:
            return
        self._layouts.setdefault(practice_id, {})[len(groups)] = copy.deepcopy(list(groups))

    def get(self, practice_id: str, group_count: int) -> list[Group] | None:
        layout = self._layouts.get(practice_id, {}).get(group_count)
        return copy.deepcopy(layout) if layout is not None else None

    def discard(self, practice_id: str, group_count: int) -> None:
        self._layouts.get(practice_id, {}).pop(group_count, None)

    def clear(self, practice_id: str | None = None) -> None:
        """Forget one practice's layouts, or every layout when no id is given."""
        if practice_id is None:
            self._layouts.clear()
        else:
            self._layouts.pop(practice_id, None)

    def group_counts(self, practice_id: str) -> list[int]:
        return sorted(self._layouts.get(practice_id, {}))
