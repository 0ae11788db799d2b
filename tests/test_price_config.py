"""Tests for price configuration import and export."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from printprep.price_config import (
    DEFAULT_PRICE_CONFIG,
    load_price_config,
    price_config_from_dict,
    price_config_to_dict,
    save_price_config,
)


def test_exported_defaults_load_back_unchanged(tmp_path: Path) -> None:
    path = save_price_config(DEFAULT_PRICE_CONFIG, tmp_path / "prices.json")
    assert load_price_config(path) == DEFAULT_PRICE_CONFIG


def test_export_uses_camel_case_keys_and_clears_selection() -> None:
    payload = price_config_to_dict(DEFAULT_PRICE_CONFIG)

    assert set(payload) >= {"binding", "paper", "addons"}
    assert payload["binding"][0]["basePrice"] == 50
    assert payload["binding"][0]["tiers"][0] == {"minAmount": 50, "price": 45}
    assert payload["paper"][0]["tierType"] == "pages"
    assert payload["paper"][0]["sheetThickness"] == 0.1
    assert all(addon["selected"] is False for addon in payload["addons"])


def test_import_accepts_original_shape_and_ignores_selection() -> None:
    config = price_config_from_dict(
        {
            "binding": [
                {
                    "id": "b9",
                    "name": "Saddle stitch",
                    "basePrice": 12,
                    "tierType": "quantity",
                    "tiers": [{"minAmount": 200, "price": 9}],
                }
            ],
            "paper": [],
            "addons": [{"id": "a9", "name": "Foil", "pricePerUnit": 20, "selected": True}],
        }
    )

    assert config.binding[0].tiers[0].min_amount == 200
    assert config.addons[0].price_per_unit == 20
    assert config.color_rate == 5.0
    assert config.mono_rate == 1.0


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "JSON object"),
        ({"binding": [], "paper": []}, "addons"),
        ({"binding": {}, "paper": [], "addons": []}, "must be a list"),
        (
            {"binding": [{"id": "b", "basePrice": "ten"}], "paper": [], "addons": []},
            "binding[0].basePrice",
        ),
        (
            {
                "binding": [
                    {"id": "b", "basePrice": 1, "tiers": [{"minAmount": -1, "price": 1}]}
                ],
                "paper": [],
                "addons": [],
            },
            "minAmount must be >= 0",
        ),
        (
            {"binding": [{"id": "b", "basePrice": 1, "tierType": "weight"}], "paper": [], "addons": []},
            "tierType",
        ),
        (
            {"binding": [{"id": "b", "basePrice": float("inf")}], "paper": [], "addons": []},
            "binding[0].basePrice must be a finite number",
        ),
        (
            {"binding": [], "paper": [], "addons": [{"id": "a", "pricePerUnit": float("nan")}]},
            "addons[0].pricePerUnit must be a finite number",
        ),
    ],
)
def test_invalid_configuration_is_rejected(payload: object, message: str) -> None:
    with pytest.raises(ValueError, match=message.replace("[", r"\[").replace("]", r"\]")):
        price_config_from_dict(payload)


def test_load_rejects_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_price_config(path)


def test_load_rejects_non_finite_json_numbers(tmp_path: Path) -> None:
    path = tmp_path / "infinite.json"
    path.write_text(
        '{"binding": [{"id": "b1", "basePrice": Infinity}], "paper": [], "addons": []}',
        encoding="utf-8",
    )
    with pytest.raises(ValueError, match="finite number"):
        load_price_config(path)


def test_saved_file_is_readable_json(tmp_path: Path) -> None:
    path = save_price_config(DEFAULT_PRICE_CONFIG, tmp_path / "nested" / "prices.json")
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert [option["id"] for option in payload["paper"]] == ["p1", "p2"]
