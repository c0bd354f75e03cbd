"""
Filter action executor: clicks in the live filter panel.

Every primitive is a no-op when the desired state already holds and returns
whether a DOM mutation happened. "Not found" and "already satisfied" both
return False. Evaluation exceptions are not caught here.
"""

from __future__ import annotations

import json
from typing import Awaitable, Callable

from scraper.filters.constants import (
    DROPDOWN_BUTTON_SELECTOR,
    DROPDOWN_OPTION_SELECTOR,
    DROPDOWN_PLACEHOLDER_SELECTOR,
    RANGE_CONTAINER_SELECTOR,
    RANGE_OPTION_SELECTOR,
)
from scraper.filters.models import FilterAction, FilterDefinition, FilterKind, RangeRole, ToggleMode
from scraper.filters.runtime import RuntimeClient, evaluate_value
from scraper.filters.text import NORMALIZE_JS

ActionExecutor = Callable[[RuntimeClient, str, FilterAction], Awaitable[bool]]


def _toggle_script(selector: str, label: str, mode: ToggleMode) -> str:
    return f"""(() => {{
  const normalize = {NORMALIZE_JS};
  const root = document.querySelector({json.dumps(selector)});
  if (!root) {{
    return false;
  }}
  const target = normalize({json.dumps(label)});
  const mode = {json.dumps(mode)};
  for (const label of Array.from(root.querySelectorAll('label'))) {{
    const input = label.querySelector('input[type="checkbox"], input[type="radio"]');
    if (!input) {{
      continue;
    }}
    const content = label.querySelector('span > span');
    if (normalize(content ? content.textContent : label.textContent) !== target) {{
      continue;
    }}
    const isChecked = Boolean(input.checked);
    if (mode === 'enable' && !isChecked) {{
      label.click();
      return true;
    }}
    if (mode === 'disable' && isChecked && input.type === 'checkbox') {{
      label.click();
      return true;
    }}
    return false;
  }}
  return false;
}})()"""


def _dropdown_script(selector: str, label: str) -> str:
    return f"""(() => {{
  const normalize = {NORMALIZE_JS};
  const root = document.querySelector({json.dumps(selector)});
  if (!root) {{
    return false;
  }}
  const target = normalize({json.dumps(label)});
  const items = Array.from(root.querySelectorAll({json.dumps(DROPDOWN_OPTION_SELECTOR)}));
  const hiddenInput = root.querySelector('input[type="hidden"]');
  const hiddenValue = hiddenInput && typeof hiddenInput.value === 'string' ? hiddenInput.value.trim() : '';
  if (hiddenValue.length > 0) {{
    const current = items.find((node) => node.getAttribute('data-value') === hiddenValue);
    if (current && normalize(current.textContent) === target) {{
      return false;
    }}
  }}
  const placeholder = root.querySelector({json.dumps(DROPDOWN_PLACEHOLDER_SELECTOR)});
  if (normalize(placeholder ? placeholder.textContent : '') === target) {{
    return false;
  }}
  const match = items.find((node) => normalize(node.textContent) === target);
  if (!match) {{
    return false;
  }}
  const button = root.querySelector({json.dumps(DROPDOWN_BUTTON_SELECTOR)});
  if (button) {{
    button.click();
  }}
  (match.querySelector('a') || match).click();
  return true;
}})()"""


def _range_script(selector: str, role: RangeRole, value: str) -> str:
    index = 0 if role == "min" else 1
    return f"""(() => {{
  const normalize = {NORMALIZE_JS};
  const root = document.querySelector({json.dumps(selector)});
  if (!root) {{
    return false;
  }}
  const container = Array.from(root.querySelectorAll({json.dumps(RANGE_CONTAINER_SELECTOR)}))[{index}];
  if (!container) {{
    return false;
  }}
  const target = normalize({json.dumps(value)});
  const placeholder = container.querySelector({json.dumps(DROPDOWN_PLACEHOLDER_SELECTOR)});
  if (normalize(placeholder ? placeholder.textContent : '') === target) {{
    return false;
  }}
  const options = Array.from(container.querySelectorAll({json.dumps(RANGE_OPTION_SELECTOR)}));
  const match = options.find((node) => normalize(node.textContent) === target);
  if (!match) {{
    return false;
  }}
  const button = container.querySelector({json.dumps(DROPDOWN_BUTTON_SELECTOR)});
  if (button) {{
    button.click();
  }}
  (match.querySelector('a') || match).click();
  return true;
}})()"""


async def toggle_plain_option(client: RuntimeClient, selector: str, label: str, mode: ToggleMode) -> bool:
    """
    Check (enable) or uncheck (disable) the option whose label matches.

    Radios cannot be disabled, only replaced by enabling another radio.
    """
    return await evaluate_value(client, _toggle_script(selector, label, mode)) is True


async def choose_single_dropdown_option(client: RuntimeClient, selector: str, label: str) -> bool:
    """Open the dropdown and click the matching option unless it is already chosen."""
    return await evaluate_value(client, _dropdown_script(selector, label)) is True


async def set_range_bound(client: RuntimeClient, selector: str, role: RangeRole, value: str) -> bool:
    """Pick value in the min (container 0) or max (container 1) picker."""
    return await evaluate_value(client, _range_script(selector, role, value)) is True


async def _execute_toggle(client: RuntimeClient, selector: str, action: FilterAction) -> bool:
    return await toggle_plain_option(client, selector, action.label, action.mode or "enable")


async def _execute_dropdown(client: RuntimeClient, selector: str, action: FilterAction) -> bool:
    return await choose_single_dropdown_option(client, selector, action.label)


async def _execute_range(client: RuntimeClient, selector: str, action: FilterAction) -> bool:
    return await set_range_bound(client, selector, action.role or "min", action.label)


ACTION_EXECUTORS: dict[FilterKind, ActionExecutor] = {
    FilterKind.RANGE: _execute_range,
    FilterKind.SINGLE_DROPDOWN: _execute_dropdown,
    FilterKind.MULTI_TOGGLE: _execute_toggle,
    FilterKind.SINGLE_TOGGLE: _execute_toggle,
}


async def execute_action(client: RuntimeClient, definition: FilterDefinition, action: FilterAction) -> bool:
    """Apply one action to a filter; True when the page was mutated."""
    return await ACTION_EXECUTORS[definition.kind](client, definition.locator, action)
