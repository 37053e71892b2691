"""
Group resolution — turns the operator's group argument (object ID or display
name) into exactly one Group. Any failure here ends the run.
"""

from __future__ import annotations

import logging

from ..config import GUID_PATTERN
from ..graph.client import GraphAPIError, GraphClient
from .models import Group

logger = logging.getLogger("intune_assignment_checker.groups")


class GroupResolutionError(Exception):
    """Raised when the group argument does not identify exactly one group."""
    def __init__(self, identifier: str, message: str):
        self.identifier = identifier
        super().__init__(message)


class GroupNotFoundError(GroupResolutionError):
    def __init__(self, identifier: str):
        super().__init__(identifier, f"No group found for '{identifier}'")


class AmbiguousGroupError(GroupResolutionError):
    """Several groups share the display name; the caller should retry with an ID."""
    def __init__(self, identifier: str, matches: list[Group]):
        self.matches = matches
        super().__init__(
            identifier,
            f"{len(matches)} groups are named '{identifier}'; re-run with the group ID",
        )


def is_object_id(identifier: str) -> bool:
    return bool(GUID_PATTERN.match(identifier.strip()))


def _odata_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class GroupResolver:
    def __init__(self, graph: GraphClient):
        self.graph = graph

    async def resolve(self, identifier: str) -> Group:
        identifier = identifier.strip()
        if not identifier:
            raise GroupNotFoundError(identifier)
        if is_object_id(identifier):
            return await self._resolve_by_id(identifier)
        return await self._resolve_by_name(identifier)

    async def _resolve_by_id(self, group_id: str) -> Group:
        logger.debug(f"Resolving group by ID {group_id}")
        try:
            data = await self.graph.get(
                f"groups/{group_id}",
                params={"$select": "id,displayName"},
            )
        except GraphAPIError as e:
            if e.is_not_found:
                raise GroupNotFoundError(group_id) from e
            raise
        return Group.from_graph(data)

    async def _resolve_by_name(self, name: str) -> Group:
        logger.debug(f"Resolving group by display name '{name}'")
        data = await self.graph.get(
            "groups",
            params={
                "$filter": f"displayName eq {_odata_literal(name)}",
                "$select": "id,displayName",
            },
        )
        matches = [Group.from_graph(g) for g in data.get("value", [])]
        if not matches:
            raise GroupNotFoundError(name)
        if len(matches) > 1:
            raise AmbiguousGroupError(name, matches)
        return matches[0]
