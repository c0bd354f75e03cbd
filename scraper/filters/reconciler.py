"""
Filter reconciliation: drive the live filter panel to the declared state.

For every catalog filter, in catalog order: read the live state, diff it
against the declared state, apply every action of the diff in order (waiting
for the page to settle after each effective click), then read again. A page
that does not settle is reloaded and the whole pass restarts from the first
filter. Both loops are bounded:

- MAX_FULL_RECONCILIATION_PASSES full passes over the catalog
- MAX_RECONCILIATION_ATTEMPTS_PER_FILTER read/act rounds per filter and pass

A filter that does not converge, or an exhausted pass budget, is logged and
is not an error. Only evaluation exceptions raised while acting propagate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Literal, Mapping, Optional, Sequence

from scraper.filters.catalog import definition_key
from scraper.filters.constants import (
    MAX_FULL_RECONCILIATION_PASSES,
    MAX_RECONCILIATION_ATTEMPTS_PER_FILTER,
    RANGE_MAX_PLACEHOLDER,
    RANGE_MIN_PLACEHOLDER,
)
from scraper.filters.executor import execute_action
from scraper.filters.models import (
    FilterAction,
    FilterDefinition,
    FilterDiff,
    FilterKind,
    FilterState,
    PageSection,
)
from scraper.filters.panel import find_unsupported_sections, is_present_by_selector, match_section, scan_panel
from scraper.filters.reader import read_filter_state
from scraper.filters.runtime import RuntimeClient
from scraper.filters.stability import StabilityDetector
from scraper.filters.text import normalize
from shared.config import AppConfig
from shared.logging import get_logger

logger = get_logger(__name__)

DiffBuilder = Callable[[FilterState, FilterState], FilterDiff]


def _same_bound(declared: Optional[str], observed: Optional[str]) -> bool:
    if declared is None or observed is None:
        return declared is None and observed is None
    return normalize(declared) == normalize(observed)


def diff_range(declared: FilterState, observed: FilterState) -> FilterDiff:
    """
    Min before max. An unset declared bound is reached by selecting the
    picker's own placeholder option.
    """
    actions: list[FilterAction] = []
    if not _same_bound(declared.selected_min, observed.selected_min):
        actions.append(FilterAction("range", declared.selected_min or RANGE_MIN_PLACEHOLDER, role="min"))
    if not _same_bound(declared.selected_max, observed.selected_max):
        actions.append(FilterAction("range", declared.selected_max or RANGE_MAX_PLACEHOLDER, role="max"))
    return FilterDiff(actions=tuple(actions))


def _selection_delta(declared: Sequence[str], observed: Sequence[str]) -> tuple[list[str], list[str]]:
    declared_keys = {normalize(option) for option in declared}
    observed_keys = {normalize(option) for option in observed}
    to_enable = [option for option in declared if normalize(option) not in observed_keys]
    to_disable = [option for option in observed if normalize(option) not in declared_keys]
    return to_enable, to_disable


def diff_toggle(declared: FilterState, observed: FilterState) -> FilterDiff:
    """Enable actions first, then disable actions. No declared options: no diff."""
    if not declared.selected_options:
        return FilterDiff()
    to_enable, to_disable = _selection_delta(declared.selected_options, observed.selected_options)
    actions = [FilterAction("toggle", option, mode="enable") for option in to_enable]
    actions += [FilterAction("toggle", option, mode="disable") for option in to_disable]
    return FilterDiff(actions=tuple(actions), to_enable=tuple(to_enable), to_disable=tuple(to_disable))


def diff_dropdown(declared: FilterState, observed: FilterState) -> FilterDiff:
    """
    Choosing the declared option replaces the current one; nothing to disable.
    Only the first declared option counts.
    """
    if not declared.selected_options:
        return FilterDiff()
    to_enable, to_disable = _selection_delta(declared.selected_options[:1], observed.selected_options)
    actions = [FilterAction("dropdown", option) for option in to_enable]
    return FilterDiff(actions=tuple(actions), to_enable=tuple(to_enable), to_disable=tuple(to_disable))


DIFF_BUILDERS: dict[FilterKind, DiffBuilder] = {
    FilterKind.RANGE: diff_range,
    FilterKind.SINGLE_DROPDOWN: diff_dropdown,
    FilterKind.MULTI_TOGGLE: diff_toggle,
    FilterKind.SINGLE_TOGGLE: diff_toggle,
}


def compute_diff(kind: FilterKind, declared: FilterState, observed: FilterState) -> FilterDiff:
    return DIFF_BUILDERS[kind](declared, observed)


@dataclass(frozen=True)
class ReconcilerSettings:
    max_full_passes: int = MAX_FULL_RECONCILIATION_PASSES
    max_attempts_per_filter: int = MAX_RECONCILIATION_ATTEMPTS_PER_FILTER

    @classmethod
    def from_config(cls, config: AppConfig) -> "ReconcilerSettings":
        return cls(
            max_full_passes=config.filter_max_full_passes,
            max_attempts_per_filter=config.filter_max_attempts,
        )


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation run; returned whether or not it converged."""

    converged: bool
    passes: int
    actions_issued: int
    unreconciled: list[str] = field(default_factory=list)
    unsupported_sections: list[str] = field(default_factory=list)
    panel_found: bool = True


FilterStatus = Literal["done", "unreconciled", "restart"]


@dataclass(frozen=True)
class _FilterOutcome:
    status: FilterStatus
    actions: int


class FilterReconciler:
    """Reconciles one filter panel, on one page, against a declared configuration."""

    def __init__(
        self,
        client: RuntimeClient,
        catalog: Sequence[FilterDefinition],
        declared: Mapping[str, FilterState],
        *,
        detector: Optional[StabilityDetector] = None,
        settings: Optional[ReconcilerSettings] = None,
    ) -> None:
        self._client = client
        self._catalog = tuple(catalog)
        self._declared = dict(declared)
        self._detector = detector or StabilityDetector(client)
        self._settings = settings or ReconcilerSettings()

    def declared_state(self, definition: FilterDefinition) -> Optional[FilterState]:
        key = definition_key(definition.name)
        return self._declared.get(key) if key is not None else None

    async def run(self) -> ReconciliationResult:
        """Scan the panel, report unmodeled sections, then reconcile."""
        scan = await scan_panel(self._client)
        if not scan.found:
            logger.warning("filter_panel_not_found")
            return ReconciliationResult(converged=False, passes=0, actions_issued=0, panel_found=False)

        await self._log_snapshot(scan.sections)

        unsupported = find_unsupported_sections(self._catalog, scan.sections)
        for section in unsupported:
            logger.info("filter_section_unsupported", section_name=section.name, section_index=section.index)

        result = await self.reconcile()
        result.unsupported_sections = [section.name for section in unsupported]
        return result

    async def _log_snapshot(self, sections: Sequence[PageSection]) -> None:
        for definition in self._catalog:
            present = await is_present_by_selector(self._client, definition.locator)
            if not present and match_section(definition, sections) is None:
                logger.debug("filter_absent", filter_name=definition.name)
                continue
            observed = await read_filter_state(self._client, definition)
            logger.debug(
                "filter_observed",
                filter_name=definition.name,
                kind=definition.kind.value,
                available_options=len(observed.available_options),
                selected_options=observed.selected_options,
                selected_min=observed.selected_min,
                selected_max=observed.selected_max,
            )

    async def reconcile(self) -> ReconciliationResult:
        declared_count = sum(1 for d in self._catalog if self.declared_state(d) is not None)
        logger.info("filter_reconciliation_started", filters=len(self._catalog), declared=declared_count)

        actions_issued = 0
        max_passes = self._settings.max_full_passes
        for pass_number in range(1, max_passes + 1):
            restart = False
            unreconciled: list[str] = []
            for definition in self._catalog:
                outcome = await self._reconcile_filter(definition, pass_number)
                actions_issued += outcome.actions
                if outcome.status == "restart":
                    restart = True
                    break
                if outcome.status == "unreconciled":
                    unreconciled.append(definition.name)

            if not restart:
                logger.info(
                    "filter_reconciliation_completed",
                    passes=pass_number,
                    actions_issued=actions_issued,
                    unreconciled=unreconciled,
                )
                return ReconciliationResult(
                    converged=not unreconciled,
                    passes=pass_number,
                    actions_issued=actions_issued,
                    unreconciled=unreconciled,
                )

            logger.warning("filter_reconciliation_restart", pass_number=pass_number, max_passes=max_passes)

        logger.warning("filter_reconciliation_passes_exhausted", max_passes=max_passes, actions_issued=actions_issued)
        return ReconciliationResult(converged=False, passes=max_passes, actions_issued=actions_issued)

    async def _reconcile_filter(self, definition: FilterDefinition, pass_number: int) -> _FilterOutcome:
        declared = self.declared_state(definition)
        if declared is None:
            return _FilterOutcome("done", 0)

        actions = 0
        max_attempts = self._settings.max_attempts_per_filter
        for attempt in range(1, max_attempts + 1):
            observed = await read_filter_state(self._client, definition)
            diff = compute_diff(definition.kind, declared, observed)
            if diff.is_empty:
                if actions:
                    logger.info("filter_reconciled", filter_name=definition.name, actions=actions)
                return _FilterOutcome("done", actions)

            clicked = False
            for action in diff.actions:
                if not await execute_action(self._client, definition, action):
                    continue
                actions += 1
                clicked = True
                logger.info(
                    "filter_action_applied",
                    filter_name=definition.name,
                    action=action.kind,
                    label=action.label,
                    mode=action.mode,
                    role=action.role,
                    attempt=attempt,
                    pass_number=pass_number,
                )
                if not await self._detector.settle():
                    return _FilterOutcome("restart", actions)

            if not clicked:
                logger.debug("filter_attempt_no_progress", filter_name=definition.name, attempt=attempt)

        logger.warning("filter_not_reconciled", filter_name=definition.name, attempts=max_attempts)
        return _FilterOutcome("unreconciled", actions)
