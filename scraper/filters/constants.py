"""
Filter panel constants: selectors, placeholder labels, timeouts and budgets.
"""

from __future__ import annotations

# Filter panel root and its form wrapper
FILTER_PANEL_SELECTOR = "#aside-filters"
FILTER_FORM_SELECTOR = "#filter-form"

# Min/max pickers: first container is the minimum, second the maximum.
RANGE_CONTAINER_SELECTOR = ":scope > .dropdown-list"
RANGE_OPTION_SELECTOR = "ul.dropdown-list.dropdown-insertion > li, ul.dropdown > li, ul.dropdown-list > li"
DROPDOWN_OPTION_SELECTOR = "ul.dropdown-list-refresh > li, ul.dropdown-list > li, ul.dropdown > li"
DROPDOWN_BUTTON_SELECTOR = "button.dropdown-wrapper"
DROPDOWN_PLACEHOLDER_SELECTOR = "button.dropdown-wrapper > span.placeholder, .dropdown-wrapper > span.placeholder"
TOGGLE_INPUT_SELECTOR = 'input[type="checkbox"], input[type="radio"]'
TOGGLE_CHECKED_SELECTOR = 'input[type="checkbox"]:checked, input[type="radio"]:checked'

# Placeholder labels shown when a range bound is unset. Selecting them clears the bound.
RANGE_MIN_PLACEHOLDER = "Mín"
RANGE_MAX_PLACEHOLDER = "Máx"

# UI affordance text that leaks into scraped labels
NOISE_TOKEN = "Desplegar"

# Section names longer than this are truncated by the panel scan
SECTION_NAME_MAX_LENGTH = 140

# Timeouts (ms)
SETTLE_DELAY_MS = 2000  # Wait after a click before polling the loading overlay
LOADING_TIMEOUT_MS = 10000  # Max time for the loading overlay to clear
LOADING_POLL_INTERVAL_MS = 200
RELOAD_TIMEOUT_MS = 30000  # Max time for the reloaded page to show the panel again
RELOAD_POLL_INTERVAL_MS = 500

# Reconciliation budgets
MAX_FULL_RECONCILIATION_PASSES = 4
MAX_RECONCILIATION_ATTEMPTS_PER_FILTER = 4
