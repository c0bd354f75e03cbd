"""
Filter panel scan: which sections the live panel shows and which of them
the catalog does not model.
"""

from __future__ import annotations

import json
from typing import Iterable, Optional, Sequence

from scraper.filters.constants import FILTER_FORM_SELECTOR, FILTER_PANEL_SELECTOR, SECTION_NAME_MAX_LENGTH
from scraper.filters.models import FilterDefinition, PageSection, PanelScan
from scraper.filters.runtime import RemoteEvaluationError, RuntimeClient, evaluate_value
from scraper.filters.text import matches_bidirectionally, normalize, normalize_whitespace
from shared.logging import get_logger

logger = get_logger(__name__)

# Direct children of the form that carry a heading are filter sections.
_PANEL_SCAN_JS = f"""(() => {{
  const root = document.querySelector({json.dumps(FILTER_PANEL_SELECTOR)});
  if (!root) {{
    return {{ found: false, sections: [] }};
  }}
  const form = root.querySelector(':scope > {FILTER_FORM_SELECTOR}') || root.querySelector({json.dumps(FILTER_FORM_SELECTOR)});
  const container = form || root;
  const headingOf = (element) => element.matches('legend, h1, h2, h3, h4')
    ? element
    : element.querySelector(':scope > legend, :scope > .title-label, :scope > span.title-label, legend, .title-label, h1, h2, h3, h4');
  const sections = [];
  Array.from(container.children).forEach((element, index) => {{
    const hasHeading = element.matches('fieldset.item-form, div.item-form')
      || Boolean(element.querySelector(':scope > legend, :scope > .title-label, :scope > span.title-label'));
    if (!hasHeading) {{
      return;
    }}
    const source = headingOf(element) || element;
    const name = (source.textContent || '').replace(/\\s+/g, ' ').trim();
    if (name.length > 0) {{
      sections.push({{ index, name }});
    }}
  }});
  return {{ found: true, sections }};
}})()"""


def _parse_sections(raw: object) -> tuple[PageSection, ...]:
    if not isinstance(raw, list):
        return ()
    sections: list[PageSection] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        index = item.get("index")
        name = item.get("name")
        if not isinstance(index, int) or not isinstance(name, str):
            continue
        name = normalize_whitespace(name)[:SECTION_NAME_MAX_LENGTH]
        if not name:
            continue
        sections.append(PageSection(index=index, name=name, normalized_name=normalize(name)))
    return tuple(sections)


async def scan_panel(client: RuntimeClient) -> PanelScan:
    """Scan the filter panel for heading+body sections."""
    value = await evaluate_value(client, _PANEL_SCAN_JS)
    if not isinstance(value, dict) or value.get("found") is not True:
        return PanelScan(found=False)
    return PanelScan(found=True, sections=_parse_sections(value.get("sections")))


async def is_present_by_selector(client: RuntimeClient, selector: str) -> bool:
    """Presence check used for diagnostics only; failures read as absent."""
    try:
        value = await evaluate_value(client, f"Boolean(document.querySelector({json.dumps(selector)}))")
    except RemoteEvaluationError as e:
        logger.debug("filter_presence_check_failed", selector=selector, error=str(e))
        return False
    return value is True


def match_section(definition: FilterDefinition, sections: Sequence[PageSection]) -> Optional[PageSection]:
    """First scraped section whose name matches the filter name."""
    for section in sections:
        if matches_bidirectionally(section.normalized_name, definition.name):
            return section
    return None


def find_unsupported_sections(
    catalog: Iterable[FilterDefinition],
    sections: Sequence[PageSection],
) -> list[PageSection]:
    """Sections no catalog filter matches, in panel order."""
    matched: set[int] = set()
    for definition in catalog:
        section = match_section(definition, sections)
        if section is not None:
            matched.add(section.index)
    return [section for section in sections if section.index not in matched]
