"""
Value types shared by the filter catalog, reader, executor and reconciler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

ToggleMode = Literal["enable", "disable"]
RangeRole = Literal["min", "max"]
ActionKind = Literal["toggle", "dropdown", "range"]


class FilterKind(str, Enum):
    """UI idiom of a filter; selects the reader, executor and diff builder."""

    RANGE = "range"
    SINGLE_DROPDOWN = "single_dropdown"
    MULTI_TOGGLE = "multi_toggle"
    SINGLE_TOGGLE = "single_toggle"


@dataclass(frozen=True)
class FilterDefinition:
    """One addressable facet of the filter panel."""

    name: str
    locator: str
    kind: FilterKind


@dataclass
class FilterState:
    """
    Observed or declared state of one filter.

    Toggle and dropdown kinds use available_options/selected_options; the
    range kind uses the min/max fields. Option lists keep first-occurrence
    order and hold no duplicates.
    """

    available_options: list[str] = field(default_factory=list)
    selected_options: list[str] = field(default_factory=list)
    available_min: list[str] = field(default_factory=list)
    available_max: list[str] = field(default_factory=list)
    selected_min: Optional[str] = None
    selected_max: Optional[str] = None


@dataclass(frozen=True)
class PageSection:
    """A heading+body block scraped from the live filter panel."""

    index: int
    name: str
    normalized_name: str


@dataclass(frozen=True)
class PanelScan:
    found: bool
    sections: tuple[PageSection, ...] = ()


@dataclass(frozen=True)
class FilterAction:
    """A single mutation the executor can apply to a filter."""

    kind: ActionKind
    label: str
    mode: Optional[ToggleMode] = None
    role: Optional[RangeRole] = None


@dataclass(frozen=True)
class FilterDiff:
    """
    Difference between declared and observed state.

    actions is already in apply order. to_enable/to_disable are reported for
    toggle and dropdown kinds; a dropdown's to_disable yields no action.
    """

    actions: tuple[FilterAction, ...] = ()
    to_enable: tuple[str, ...] = ()
    to_disable: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.actions


def unique_strings(values: object) -> list[str]:
    """Keep string items only, drop duplicates, keep first-occurrence order."""
    if not isinstance(values, list):
        return []
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if isinstance(value, str) and value not in seen:
            seen.add(value)
            out.append(value)
    return out
