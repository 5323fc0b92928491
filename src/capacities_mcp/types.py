"""
Type Definitions

TypedDict classes for the Capacities API request and response bodies.
These are read-only projections of the API's JSON; keys keep the API's
camelCase spelling.
"""

from typing import Any, TypedDict


class Space(TypedDict, total=False):
    """A space the API token has access to."""

    id: str
    title: str
    icon: Any


class StructureInfo(TypedDict, total=False):
    """
    A structure (object type) defined in a space.

    The API returns additional free-form metadata such as ``pluralName``,
    ``labelColor`` and ``propertyDefinitions``; those keys are passed through.
    """

    id: str
    title: str
    pluralName: str


class LookupResult(TypedDict):
    """A single match from the /lookup endpoint."""

    id: str
    structureId: str
    title: str


class SpacesResponse(TypedDict):
    """Response from GET /spaces."""

    spaces: list[Space]


class SpaceInfoResponse(TypedDict):
    """Response from GET /space-info."""

    structures: list[StructureInfo]


class LookupResponse(TypedDict):
    """Response from POST /lookup."""

    results: list[LookupResult]


class SaveWeblinkBody(TypedDict, total=False):
    """Request body for POST /save-weblink."""

    spaceId: str
    url: str
    titleOverwrite: str
    descriptionOverwrite: str
    tags: list[str]
    mdText: str


class SaveToDailyNoteBody(TypedDict, total=False):
    """Request body for POST /save-to-daily-note."""

    spaceId: str
    mdText: str
    origin: str
    noTimeStamp: bool
