"""
Filter state reader: available and selected options per filter kind.

One in-page script per kind reads options and selection in a single
evaluation. A missing filter root yields an empty FilterState. Evaluation
exceptions raise RemoteEvaluationError.
"""

from __future__ import annotations

import json
from typing import Awaitable, Callable, Optional

from scraper.filters.constants import (
    DROPDOWN_OPTION_SELECTOR,
    DROPDOWN_PLACEHOLDER_SELECTOR,
    RANGE_CONTAINER_SELECTOR,
    RANGE_MAX_PLACEHOLDER,
    RANGE_MIN_PLACEHOLDER,
    RANGE_OPTION_SELECTOR,
    TOGGLE_CHECKED_SELECTOR,
    TOGGLE_INPUT_SELECTOR,
)
from scraper.filters.models import FilterDefinition, FilterKind, FilterState, unique_strings
from scraper.filters.runtime import RuntimeClient, evaluate_value
from scraper.filters.text import CLEAN_LABEL_JS, normalize

StateReader = Callable[[RuntimeClient, str], Awaitable[FilterState]]


def _range_script(selector: str) -> str:
    return f"""(() => {{
  const clean = {CLEAN_LABEL_JS};
  const root = document.querySelector({json.dumps(selector)});
  if (!root) {{
    return null;
  }}
  const containers = Array.from(root.querySelectorAll({json.dumps(RANGE_CONTAINER_SELECTOR)}));
  const readOptions = (container) => {{
    if (!container) {{
      return [];
    }}
    const values = Array.from(container.querySelectorAll({json.dumps(RANGE_OPTION_SELECTOR)}))
      .map((node) => clean(node.textContent))
      .filter((value) => value.length > 0);
    return Array.from(new Set(values));
  }};
  const readSelected = (container) => {{
    if (!container) {{
      return null;
    }}
    const node = container.querySelector({json.dumps(DROPDOWN_PLACEHOLDER_SELECTOR)});
    const value = clean(node ? node.textContent : '');
    return value.length > 0 ? value : null;
  }};
  return {{
    minOptions: readOptions(containers[0]),
    maxOptions: readOptions(containers[1]),
    selectedMin: readSelected(containers[0]),
    selectedMax: readSelected(containers[1])
  }};
}})()"""


def _dropdown_script(selector: str) -> str:
    return f"""(() => {{
  const clean = {CLEAN_LABEL_JS};
  const root = document.querySelector({json.dumps(selector)});
  if (!root) {{
    return null;
  }}
  const items = Array.from(root.querySelectorAll({json.dumps(DROPDOWN_OPTION_SELECTOR)}));
  const options = Array.from(new Set(
    items.map((node) => clean(node.textContent)).filter((value) => value.length > 0)
  ));
  const hiddenInput = root.querySelector('input[type="hidden"]');
  const hiddenValue = hiddenInput && typeof hiddenInput.value === 'string' ? hiddenInput.value.trim() : '';
  if (hiddenValue.length > 0) {{
    const match = items.find((node) => node.getAttribute('data-value') === hiddenValue);
    const fromHidden = clean(match ? match.textContent : '');
    if (fromHidden.length > 0) {{
      return {{ options, selected: [fromHidden] }};
    }}
  }}
  const placeholder = root.querySelector({json.dumps(DROPDOWN_PLACEHOLDER_SELECTOR)});
  const shown = clean(placeholder ? placeholder.textContent : '');
  return {{ options, selected: shown ? [shown] : [] }};
}})()"""


def _toggle_script(selector: str) -> str:
    return f"""(() => {{
  const clean = {CLEAN_LABEL_JS};
  const root = document.querySelector({json.dumps(selector)});
  if (!root) {{
    return null;
  }}
  const labelText = (input) => {{
    const label = input.closest('label');
    if (!label) {{
      return '';
    }}
    const content = label.querySelector('span > span');
    return clean(content ? content.textContent : label.textContent);
  }};
  const collect = (query) => Array.from(new Set(
    Array.from(root.querySelectorAll(query)).map(labelText).filter((value) => value.length > 0)
  ));
  return {{
    options: collect({json.dumps(TOGGLE_INPUT_SELECTOR)}),
    selected: collect({json.dumps(TOGGLE_CHECKED_SELECTOR)})
  }};
}})()"""


def _bound_or_none(value: object, placeholder: str) -> Optional[str]:
    """A bound showing its own placeholder is unset."""
    if not isinstance(value, str) or not value.strip():
        return None
    if normalize(value) == normalize(placeholder):
        return None
    return value


async def read_range_state(client: RuntimeClient, selector: str) -> FilterState:
    """Positional contract: container 0 is the minimum, container 1 the maximum."""
    value = await evaluate_value(client, _range_script(selector))
    if not isinstance(value, dict):
        return FilterState()
    return FilterState(
        available_min=unique_strings(value.get("minOptions")),
        available_max=unique_strings(value.get("maxOptions")),
        selected_min=_bound_or_none(value.get("selectedMin"), RANGE_MIN_PLACEHOLDER),
        selected_max=_bound_or_none(value.get("selectedMax"), RANGE_MAX_PLACEHOLDER),
    )


async def read_dropdown_state(client: RuntimeClient, selector: str) -> FilterState:
    value = await evaluate_value(client, _dropdown_script(selector))
    if not isinstance(value, dict):
        return FilterState()
    return FilterState(
        available_options=unique_strings(value.get("options")),
        selected_options=unique_strings(value.get("selected")),
    )


async def read_toggle_state(client: RuntimeClient, selector: str) -> FilterState:
    value = await evaluate_value(client, _toggle_script(selector))
    if not isinstance(value, dict):
        return FilterState()
    return FilterState(
        available_options=unique_strings(value.get("options")),
        selected_options=unique_strings(value.get("selected")),
    )


STATE_READERS: dict[FilterKind, StateReader] = {
    FilterKind.RANGE: read_range_state,
    FilterKind.SINGLE_DROPDOWN: read_dropdown_state,
    FilterKind.MULTI_TOGGLE: read_toggle_state,
    FilterKind.SINGLE_TOGGLE: read_toggle_state,
}


async def read_filter_state(client: RuntimeClient, definition: FilterDefinition) -> FilterState:
    """Read the live state of one filter."""
    return await STATE_READERS[definition.kind](client, definition.locator)
