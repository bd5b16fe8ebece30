"""In-memory store of the locally active activities.

Layout is ``element -> group -> activity type``. Both levels are plain
dicts, so iteration follows insertion order and snapshots are
deterministic for a given sequence of updates.
"""

from __future__ import annotations

import logging

from pyuseractivity.models.activity import ElementActivities

_logger = logging.getLogger(__name__)


class ActivityStore:
    """Per-element, per-group active activity types.

    Within one group an element has at most one active type. Empty groups
    and elements without any group are pruned eagerly, so a snapshot never
    lists an element without activities.
    """

    def __init__(self) -> None:
        self._elements: dict[str, dict[str, str]] = {}

    def __contains__(self, element: object) -> bool:
        return element in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def set_group_activity(self, element: str, group: str, activity_type: str) -> None:
        """Make *activity_type* the active type of *group*, replacing any other."""
        groups = self._elements.setdefault(element, {})
        previous = groups.get(group)
        groups[group] = activity_type
        if previous is not None and previous != activity_type:
            _logger.debug("%s: group %s switched %s -> %s", element, group, previous, activity_type)

    def clear_activity(self, element: str, activity_type: str) -> bool:
        """Remove *activity_type* from whichever group holds it.

        Returns ``True`` when something was removed.
        """
        groups = self._elements.get(element)
        if groups is None:
            return False
        for group, active_type in groups.items():
            if active_type == activity_type:
                del groups[group]
                break
        else:
            return False
        if not groups:
            del self._elements[element]
        return True

    def rename_element(self, old: str, new: str) -> None:
        """Move every activity of *old* to *new*."""
        if old == new:
            return
        groups = self._elements.pop(old, None)
        if groups is None:
            return
        self._elements[new] = groups

    def group_activity(self, element: str, group: str) -> str | None:
        groups = self._elements.get(element)
        if groups is None:
            return None
        return groups.get(group)

    def activities(self, element: str) -> list[str]:
        return list(self._elements.get(element, {}).values())

    def snapshot(self) -> list[ElementActivities]:
        """Current activities, shaped as the poll request body."""
        return [
            ElementActivities(element=element, activities=list(groups.values()))
            for element, groups in self._elements.items()
            if groups
        ]

    def clear(self) -> None:
        self._elements.clear()
