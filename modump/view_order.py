"""
Ordering of creation statements so views follow what they reference.
"""

import logging
from typing import Callable, Optional, Sequence

from .models import TableDefinition

ReferenceDetector = Callable[[str, str], bool]


def substring_reference(definition: str, name: str) -> bool:
    """True if ``name`` appears anywhere in ``definition``.

    Names that are substrings of other identifiers produce false positives.
    """
    return name in definition


class ViewDependencyResolver:
    """Puts tables first, then views in dependency order."""

    def __init__(self, detector: Optional[ReferenceDetector] = None):
        self.detector = detector if detector is not None else substring_reference

    def order(self, definitions: Sequence[TableDefinition]) -> list[TableDefinition]:
        """Return a new list: non-views in catalog order, then sorted views."""
        tables = [d for d in definitions if not d.table.is_view]
        views = [d for d in definitions if d.table.is_view]
        return tables + self.sort_views(views)

    def sort_views(self, views: Sequence[TableDefinition]) -> list[TableDefinition]:
        count = len(views)
        in_degree = [0] * count
        dependents: list[list[int]] = [[] for _ in range(count)]

        for i, view in enumerate(views):
            for j, other in enumerate(views):
                if i != j and self.detector(view.create_sql, other.table.name):
                    in_degree[i] += 1
                    dependents[j].append(i)

        visited = [False] * count
        ordered: list[int] = []
        while len(ordered) < count:
            placed = False
            for i in range(count):
                if visited[i] or in_degree[i] != 0:
                    continue
                visited[i] = True
                placed = True
                ordered.append(i)
                for dependent in dependents[i]:
                    in_degree[dependent] -= 1
            if not placed:
                remaining = [i for i in range(count) if not visited[i]]
                logging.warning(
                    "Circular view references, keeping catalog order for: "
                    + ", ".join(views[i].table.name for i in remaining)
                )
                ordered.extend(remaining)

        return [views[i] for i in ordered]
