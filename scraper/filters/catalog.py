"""
Filter catalog and declared configuration loader.

The catalog order is the reconciliation order: every pass walks it from
index 0, and a restart always starts again from the first entry.

The declared configuration document looks like:

    {
      "filters": {
        "definitions": [
          {"price": {"selectedMin": "500", "selectedMax": "1.000"}},
          {"rooms": {"selectedPlainOptions": ["2", "3"]}}
        ]
      }
    }

Keys are internal keys (see DEFINITION_KEYS), never display names.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from shared.logging import get_logger
from scraper.filters.models import FilterDefinition, FilterKind, FilterState, unique_strings
from scraper.filters.text import normalize

logger = get_logger(__name__)


def _input_section(attribute: str, value: str) -> str:
    return f'div.item-form:has(input[{attribute}="{value}"])'


FILTER_CATALOG: tuple[FilterDefinition, ...] = (
    FilterDefinition(
        "Tipo de inmueble", "#filter-form > .item-form.typology-filter-container", FilterKind.SINGLE_DROPDOWN
    ),
    FilterDefinition("Precio", "#price-filter-container", FilterKind.RANGE),
    FilterDefinition("Tipo de alquiler", _input_section("name", "adfilter_longTermRental"), FilterKind.SINGLE_TOGGLE),
    FilterDefinition("Tamaño", "#area-filter-container", FilterKind.RANGE),
    FilterDefinition("Tipo de vivienda", _input_section("data-qa", "adfilter_homes"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Otras denominaciones", "div.item-form:has(#otherDenominationsGroup)", FilterKind.MULTI_TOGGLE),
    FilterDefinition("Equipamiento", "div.item-form:has(#qa_adfilter_amenity)", FilterKind.SINGLE_TOGGLE),
    FilterDefinition("Habitaciones", _input_section("name", "adfilter_rooms_0"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Baños", _input_section("name", "adfilter_baths_1"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Estado", _input_section("name", "adfilter_newconstruction"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Características", _input_section("name", "adfilter_housingpetsallowed"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Planta", _input_section("name", "adfilter_top_floor"), FilterKind.MULTI_TOGGLE),
    FilterDefinition(
        "Eficiencia Energética", _input_section("name", "adfilter_energyCertificateHigh"), FilterKind.MULTI_TOGGLE
    ),
    FilterDefinition("Multimedia", _input_section("name", "adfilter_hasplan"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Tipo de anuncio", _input_section("name", "adfilter_agencyisabank"), FilterKind.MULTI_TOGGLE),
    FilterDefinition("Fecha de publicación", "fieldset.item-form.publication-date", FilterKind.SINGLE_TOGGLE),
)

DEFINITION_KEYS: dict[str, str] = {
    "Tipo de inmueble": "propertyType",
    "Precio": "price",
    "Tipo de alquiler": "rentalType",
    "Tamaño": "size",
    "Tipo de vivienda": "housingType",
    "Otras denominaciones": "otherDenominations",
    "Equipamiento": "equipment",
    "Habitaciones": "rooms",
    "Baños": "bathrooms",
    "Estado": "condition",
    "Características": "features",
    "Planta": "floor",
    "Eficiencia Energética": "energyEfficiency",
    "Multimedia": "multimedia",
    "Tipo de anuncio": "listingType",
    "Fecha de publicación": "publicationDate",
}

_KEYS_BY_NORMALIZED_NAME = {normalize(name): key for name, key in DEFINITION_KEYS.items()}


def definition_key(filter_name: str) -> Optional[str]:
    """Internal configuration key for a catalog filter name, or None."""
    return _KEYS_BY_NORMALIZED_NAME.get(normalize(filter_name))


def read_configuration_document(path: str | Path) -> Optional[dict[str, Any]]:
    """
    Read the declared configuration JSON document.

    A missing or unparsable file yields None; the reconciler then has no
    declared state and leaves the panel untouched.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("filters_config_unreadable", path=str(path), error=str(e))
        return None
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("filters_config_invalid_json", path=str(path), error=str(e))
        return None
    if not isinstance(document, dict):
        logger.warning("filters_config_not_an_object", path=str(path))
        return None
    return document


def flatten_definitions(raw: Any) -> dict[str, Any]:
    """
    Merge the list of single-key definition objects into one mapping.

    A mapping is accepted as-is. Entries that are not objects are skipped;
    only the first key of each entry is read.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    flattened: dict[str, Any] = {}
    if not isinstance(raw, list):
        return flattened
    for entry in raw:
        if not isinstance(entry, Mapping) or not entry:
            continue
        key = next(iter(entry))
        flattened[key] = entry[key]
    return flattened


def _declared_state(kind: FilterKind, definition: Mapping[str, Any]) -> FilterState:
    if kind is FilterKind.RANGE:
        selected_min = definition.get("selectedMin")
        selected_max = definition.get("selectedMax")
        return FilterState(
            available_min=unique_strings(definition.get("minOptions")),
            available_max=unique_strings(definition.get("maxOptions")),
            selected_min=selected_min if isinstance(selected_min, str) else None,
            selected_max=selected_max if isinstance(selected_max, str) else None,
        )
    return FilterState(
        available_options=unique_strings(definition.get("plainOptions")),
        selected_options=unique_strings(definition.get("selectedPlainOptions")),
    )


def load_declared_configuration(
    document: Optional[Mapping[str, Any]],
    catalog: Iterable[FilterDefinition] = FILTER_CATALOG,
) -> dict[str, FilterState]:
    """
    Build the declared state per internal key from the configuration document.

    Filters without a key, without a definition, or whose definition is not
    an object are left out: absent means "no preference", not "clear".
    """
    filters_section = document.get("filters") if isinstance(document, Mapping) else None
    raw_definitions = filters_section.get("definitions") if isinstance(filters_section, Mapping) else None
    definitions = flatten_definitions(raw_definitions or [])

    declared: dict[str, FilterState] = {}
    for filter_definition in catalog:
        key = definition_key(filter_definition.name)
        if key is None:
            continue
        definition = definitions.get(key)
        if not isinstance(definition, Mapping):
            continue
        state = _declared_state(filter_definition.kind, definition)
        if filter_definition.kind is FilterKind.SINGLE_DROPDOWN and len(state.selected_options) > 1:
            logger.warning(
                "declared_dropdown_has_multiple_options",
                filter_name=filter_definition.name,
                selected_options=state.selected_options,
                kept=state.selected_options[0],
            )
            state.selected_options = state.selected_options[:1]
        declared[key] = state

    logger.info(
        "declared_filters_loaded",
        declared_count=len(declared),
        declared_keys=sorted(declared),
    )
    return declared
