"""
Unit tests for the filter panel scan.

Covers: scan result parsing and sanitizing, missing panel, section to
catalog matching, unsupported section detection, tolerant presence check.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from scraper.filters.catalog import FILTER_CATALOG
from scraper.filters.models import FilterDefinition, FilterKind, PageSection
from scraper.filters.panel import find_unsupported_sections, is_present_by_selector, match_section, scan_panel
from scraper.filters.runtime import EvaluationResult
from scraper.filters.text import normalize


def _client(value=None, exception=None) -> MagicMock:
    client = MagicMock()
    client.evaluate = AsyncMock(return_value=EvaluationResult(value=value, exception=exception))
    return client


def _section(index: int, name: str) -> PageSection:
    return PageSection(index=index, name=name, normalized_name=normalize(name))


@pytest.mark.asyncio
async def test_scan_panel_parses_sections():
    client = _client(
        {
            "found": True,
            "sections": [
                {"index": 0, "name": "Tipo de inmueble"},
                {"index": 2, "name": "  Precio \n Desplegar "},
            ],
        }
    )
    scan = await scan_panel(client)

    assert scan.found is True
    assert scan.sections == (
        PageSection(index=0, name="Tipo de inmueble", normalized_name="tipo de inmueble"),
        PageSection(index=2, name="Precio Desplegar", normalized_name="precio"),
    )


@pytest.mark.asyncio
async def test_scan_panel_drops_malformed_sections_and_truncates_names():
    client = _client(
        {
            "found": True,
            "sections": [
                {"index": "0", "name": "Precio"},
                {"index": 1},
                "Tamaño",
                {"index": 3, "name": "   "},
                {"index": 4, "name": "x" * 300},
            ],
        }
    )
    scan = await scan_panel(client)
    assert [s.index for s in scan.sections] == [4]
    assert len(scan.sections[0].name) == 140


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [None, {"found": False, "sections": []}, "found", {"sections": []}])
async def test_scan_panel_reports_missing_panel(value):
    scan = await scan_panel(_client(value))
    assert scan.found is False
    assert scan.sections == ()


@pytest.mark.asyncio
async def test_is_present_by_selector():
    assert await is_present_by_selector(_client(True), "#price-filter-container") is True
    assert await is_present_by_selector(_client(False), "#price-filter-container") is False


@pytest.mark.asyncio
async def test_is_present_by_selector_treats_errors_as_absent():
    """Invalid selectors throw in the page; the diagnostic check reads them as absent."""
    client = _client(exception="SyntaxError: ':has(' is not a valid selector")
    assert await is_present_by_selector(client, "div:has(") is False


def test_match_section_is_bidirectional_and_accent_insensitive():
    sections = [_section(0, "Tipo de inmueble"), _section(1, "Eficiencia energetica"), _section(2, "Baños")]
    energy = FilterDefinition("Eficiencia Energética", "#energy", FilterKind.MULTI_TOGGLE)
    baths = FilterDefinition("Baños", "#baths", FilterKind.MULTI_TOGGLE)

    assert match_section(energy, sections) == sections[1]
    assert match_section(baths, sections) == sections[2]


def test_match_section_returns_none_when_nothing_matches():
    sections = [_section(0, "Alquiler vacacional")]
    price = FilterDefinition("Precio", "#price", FilterKind.RANGE)
    assert match_section(price, sections) is None


def test_find_unsupported_sections_keeps_panel_order():
    sections = [
        _section(0, "Tipo de inmueble"),
        _section(1, "Alquiler vacacional"),
        _section(2, "Precio"),
        _section(3, "Accesibilidad"),
    ]
    unsupported = find_unsupported_sections(FILTER_CATALOG, sections)
    assert [s.name for s in unsupported] == ["Alquiler vacacional", "Accesibilidad"]


def test_find_unsupported_sections_empty_when_all_modeled():
    sections = [_section(i, d.name) for i, d in enumerate(FILTER_CATALOG)]
    assert find_unsupported_sections(FILTER_CATALOG, sections) == []
