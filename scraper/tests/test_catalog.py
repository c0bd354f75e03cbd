"""
Unit tests for the filter catalog and the declared configuration loader.

Covers: catalog order and kinds, name to key table, document flattening,
shape validation (wrong shapes dropped, never raised), file reading.
"""

from __future__ import annotations

import json

from scraper.filters.catalog import (
    DEFINITION_KEYS,
    FILTER_CATALOG,
    definition_key,
    flatten_definitions,
    load_declared_configuration,
    read_configuration_document,
)
from scraper.filters.models import FilterDefinition, FilterKind, FilterState

EXPECTED_ORDER = [
    "Tipo de inmueble",
    "Precio",
    "Tipo de alquiler",
    "Tamaño",
    "Tipo de vivienda",
    "Otras denominaciones",
    "Equipamiento",
    "Habitaciones",
    "Baños",
    "Estado",
    "Características",
    "Planta",
    "Eficiencia Energética",
    "Multimedia",
    "Tipo de anuncio",
    "Fecha de publicación",
]


def _document(*definitions: dict) -> dict:
    return {"filters": {"definitions": list(definitions)}}


# --- Catalog ---


def test_catalog_order_is_fixed():
    """Reconciliation order is the catalog order."""
    assert [d.name for d in FILTER_CATALOG] == EXPECTED_ORDER


def test_catalog_range_filters_are_price_and_size():
    ranges = [d.name for d in FILTER_CATALOG if d.kind is FilterKind.RANGE]
    assert ranges == ["Precio", "Tamaño"]


def test_catalog_locators_match_site_markup():
    locators = {d.name: d.locator for d in FILTER_CATALOG}
    assert locators["Tipo de inmueble"] == "#filter-form > .item-form.typology-filter-container"
    assert locators["Precio"] == "#price-filter-container"
    assert locators["Tipo de alquiler"] == 'div.item-form:has(input[name="adfilter_longTermRental"])'
    assert locators["Tamaño"] == "#area-filter-container"
    assert locators["Tipo de vivienda"] == 'div.item-form:has(input[data-qa="adfilter_homes"])'
    assert locators["Otras denominaciones"] == "div.item-form:has(#otherDenominationsGroup)"
    assert locators["Equipamiento"] == "div.item-form:has(#qa_adfilter_amenity)"
    assert locators["Habitaciones"] == 'div.item-form:has(input[name="adfilter_rooms_0"])'
    assert locators["Características"] == 'div.item-form:has(input[name="adfilter_housingpetsallowed"])'
    assert locators["Fecha de publicación"] == "fieldset.item-form.publication-date"


def test_catalog_locators_are_unique_and_non_empty():
    locators = [d.locator for d in FILTER_CATALOG]
    assert all(locators)
    assert len(set(locators)) == len(locators)


def test_every_catalog_filter_has_a_key():
    """The explicit name to key table covers the whole catalog."""
    assert set(DEFINITION_KEYS) == {d.name for d in FILTER_CATALOG}
    assert len(set(DEFINITION_KEYS.values())) == len(DEFINITION_KEYS)


def test_definition_key_uses_normalized_names():
    assert definition_key("Fecha de publicación") == "publicationDate"
    assert definition_key("  fecha DE publicacion ") == "publicationDate"
    assert definition_key("Baños") == "bathrooms"
    assert definition_key("Alquiler vacacional") is None


# --- Flattening ---


def test_flatten_definitions_merges_single_key_entries():
    raw = [{"price": {"selectedMin": "500"}}, {"rooms": {"selectedPlainOptions": ["2"]}}]
    assert flatten_definitions(raw) == {
        "price": {"selectedMin": "500"},
        "rooms": {"selectedPlainOptions": ["2"]},
    }


def test_flatten_definitions_skips_junk_and_accepts_mapping():
    assert flatten_definitions([{}, "price", None, {"size": {}}]) == {"size": {}}
    assert flatten_definitions({"price": {"selectedMin": "1"}}) == {"price": {"selectedMin": "1"}}
    assert flatten_definitions(None) == {}


# --- Loader ---


def test_load_range_definition():
    document = _document(
        {
            "price": {
                "minOptions": ["Mín", "500", "500", 3],
                "maxOptions": ["Máx", "1.000"],
                "selectedMin": "500",
                "selectedMax": None,
            }
        }
    )
    declared = load_declared_configuration(document)
    assert declared["price"] == FilterState(
        available_min=["Mín", "500"],
        available_max=["Máx", "1.000"],
        selected_min="500",
        selected_max=None,
    )


def test_load_toggle_definition_drops_non_strings():
    document = _document(
        {"rooms": {"plainOptions": ["1", "2", "3"], "selectedPlainOptions": ["2", 3, None, "3"]}}
    )
    declared = load_declared_configuration(document)
    assert declared["rooms"].available_options == ["1", "2", "3"]
    assert declared["rooms"].selected_options == ["2", "3"]


def test_load_wrong_shapes_are_dropped_not_raised():
    """Wrong-typed values fall back to empty/None."""
    document = _document(
        {"price": {"selectedMin": 500, "selectedMax": ["1000"], "minOptions": "500"}},
        {"rooms": {"selectedPlainOptions": "2"}},
        {"floor": "top"},
    )
    declared = load_declared_configuration(document)
    assert declared["price"] == FilterState()
    assert declared["rooms"] == FilterState()
    assert "floor" not in declared


def test_load_missing_declarations_are_left_out():
    """Absent keys mean no preference: nothing is declared for them."""
    declared = load_declared_configuration(_document({"price": {"selectedMin": "500"}}))
    assert set(declared) == {"price"}


def test_load_tolerates_missing_document_parts():
    assert load_declared_configuration(None) == {}
    assert load_declared_configuration({}) == {}
    assert load_declared_configuration({"filters": []}) == {}
    assert load_declared_configuration({"filters": {"definitions": None}}) == {}


def test_load_keeps_first_option_of_single_dropdown():
    document = _document({"propertyType": {"selectedPlainOptions": ["Viviendas", "Oficinas"]}})
    declared = load_declared_configuration(document)
    assert declared["propertyType"].selected_options == ["Viviendas"]


def test_load_ignores_unknown_keys_and_uses_given_catalog():
    catalog = [FilterDefinition("Habitaciones", "#rooms", FilterKind.MULTI_TOGGLE)]
    document = _document(
        {"rooms": {"selectedPlainOptions": ["2"]}},
        {"price": {"selectedMin": "500"}},
        {"pool": {"selectedPlainOptions": ["yes"]}},
    )
    declared = load_declared_configuration(document, catalog)
    assert set(declared) == {"rooms"}


# --- File reading ---


def test_read_configuration_document_valid(tmp_path):
    path = tmp_path / "environment.json"
    path.write_text(json.dumps(_document({"price": {"selectedMin": "500"}})), encoding="utf-8")
    assert read_configuration_document(path) == _document({"price": {"selectedMin": "500"}})


def test_read_configuration_document_missing_file(tmp_path):
    assert read_configuration_document(tmp_path / "missing.json") is None


def test_read_configuration_document_invalid_json(tmp_path):
    path = tmp_path / "environment.json"
    path.write_text("{not json", encoding="utf-8")
    assert read_configuration_document(path) is None


def test_read_configuration_document_non_object(tmp_path):
    path = tmp_path / "environment.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert read_configuration_document(path) is None
