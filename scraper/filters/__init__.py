"""
Filter panel reconciliation for the listing search page.

Public API: re-exports the symbols used by run_filters.py and tests so that
`from scraper.filters import ...` stays valid.
"""

from __future__ import annotations

from scraper.filters.catalog import (
    DEFINITION_KEYS,
    FILTER_CATALOG,
    definition_key,
    flatten_definitions,
    load_declared_configuration,
    read_configuration_document,
)
from scraper.filters.constants import (
    FILTER_PANEL_SELECTOR,
    MAX_FULL_RECONCILIATION_PASSES,
    MAX_RECONCILIATION_ATTEMPTS_PER_FILTER,
    RANGE_MAX_PLACEHOLDER,
    RANGE_MIN_PLACEHOLDER,
)
from scraper.filters.executor import (
    choose_single_dropdown_option,
    execute_action,
    set_range_bound,
    toggle_plain_option,
)
from scraper.filters.models import (
    FilterAction,
    FilterDefinition,
    FilterDiff,
    FilterKind,
    FilterState,
    PageSection,
    PanelScan,
)
from scraper.filters.panel import (
    find_unsupported_sections,
    is_present_by_selector,
    match_section,
    scan_panel,
)
from scraper.filters.reader import read_filter_state
from scraper.filters.reconciler import (
    FilterReconciler,
    ReconcilerSettings,
    ReconciliationResult,
    compute_diff,
)
from scraper.filters.runtime import (
    CdpRuntimeClient,
    EvaluationResult,
    PageSyncTimeoutError,
    RemoteEvaluationError,
    RuntimeClient,
    evaluate_value,
    wait_for_expression,
)
from scraper.filters.stability import StabilityDetector, StabilitySettings
from scraper.filters.text import normalize

__all__ = [
    # catalog
    "FILTER_CATALOG",
    "DEFINITION_KEYS",
    "definition_key",
    "flatten_definitions",
    "load_declared_configuration",
    "read_configuration_document",
    # constants
    "FILTER_PANEL_SELECTOR",
    "MAX_FULL_RECONCILIATION_PASSES",
    "MAX_RECONCILIATION_ATTEMPTS_PER_FILTER",
    "RANGE_MIN_PLACEHOLDER",
    "RANGE_MAX_PLACEHOLDER",
    # models
    "FilterKind",
    "FilterDefinition",
    "FilterState",
    "FilterAction",
    "FilterDiff",
    "PageSection",
    "PanelScan",
    # runtime
    "RuntimeClient",
    "CdpRuntimeClient",
    "EvaluationResult",
    "RemoteEvaluationError",
    "PageSyncTimeoutError",
    "evaluate_value",
    "wait_for_expression",
    # reader / executor
    "read_filter_state",
    "execute_action",
    "toggle_plain_option",
    "choose_single_dropdown_option",
    "set_range_bound",
    # panel
    "scan_panel",
    "is_present_by_selector",
    "match_section",
    "find_unsupported_sections",
    # stability
    "StabilityDetector",
    "StabilitySettings",
    # reconciler
    "FilterReconciler",
    "ReconcilerSettings",
    "ReconciliationResult",
    "compute_diff",
    # text
    "normalize",
]
