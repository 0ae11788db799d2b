"""Import and export of price rule configuration files.

The file format is the JSON object the quoting screens export: ``binding``,
``paper`` and ``addons`` arrays with camelCase keys. Parsing validates the
shape and returns an immutable :class:`PriceConfig`; the core never reads
configuration from anywhere else.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

from printprep.models import (
    Addon,
    JSONValue,
    PriceConfig,
    PriceOption,
    PriceTier,
    QuoteScenario,
    TIER_TYPES,
)

REQUIRED_SECTIONS = ("binding", "paper", "addons")

DEFAULT_PRICE_CONFIG = PriceConfig(
    binding=(
        PriceOption(
            id="b1",
            name="Perfect binding (cover included)",
            base_price=50,
            tier_type="quantity",
            tiers=(PriceTier(min_amount=50, price=45), PriceTier(min_amount=100, price=35)),
        ),
        PriceOption(id="b2", name="Plastic comb binding", base_price=40, tier_type="quantity"),
    ),
    paper=(
        PriceOption(
            id="p1",
            name="80gsm woodfree (inner pages)",
            base_price=0.5,
            tier_type="pages",
            sheet_thickness=0.1,
            tiers=(PriceTier(min_amount=51, price=0.4), PriceTier(min_amount=101, price=0.3)),
        ),
        PriceOption(
            id="p2",
            name="100gsm coated (inner pages)",
            base_price=0.8,
            tier_type="pages",
            sheet_thickness=0.12,
        ),
    ),
    addons=(
        Addon(id="a1", name="Rounded corners", price_per_unit=15),
        Addon(id="a2", name="Gloss lamination, cover one side", price_per_unit=10),
        Addon(id="a3", name="Matte lamination, cover one side", price_per_unit=10),
        Addon(id="a4", name="Spot UV, cover", price_per_unit=30),
    ),
)


def price_config_from_dict(data: Any) -> PriceConfig:
    """Validate a parsed configuration object and build a :class:`PriceConfig`."""
    if not isinstance(data, dict):
        raise ValueError("Price configuration must be a JSON object.")
    missing = [section for section in REQUIRED_SECTIONS if section not in data]
    if missing:
        raise ValueError(f"Price configuration is missing section(s): {', '.join(missing)}")

    return PriceConfig(
        binding=tuple(
            _parse_option(item, f"binding[{index}]")
            for index, item in enumerate(_require_list(data, "binding"))
        ),
        paper=tuple(
            _parse_option(item, f"paper[{index}]")
            for index, item in enumerate(_require_list(data, "paper"))
        ),
        addons=tuple(
            _parse_addon(item, f"addons[{index}]")
            for index, item in enumerate(_require_list(data, "addons"))
        ),
        color_rate=_number(data.get("colorRate", 5.0), "colorRate"),
        mono_rate=_number(data.get("monoRate", 1.0), "monoRate"),
    )


def price_config_to_dict(config: PriceConfig) -> dict[str, JSONValue]:
    """Serialize a configuration for export; add-on selections are always cleared."""
    return {
        "binding": [_option_to_dict(option) for option in config.binding],
        "paper": [_option_to_dict(option) for option in config.paper],
        "addons": [
            {
                "id": addon.id,
                "name": addon.name,
                "pricePerUnit": addon.price_per_unit,
                "selected": False,
            }
            for addon in config.addons
        ],
        "colorRate": config.color_rate,
        "monoRate": config.mono_rate,
    }


def load_price_config(path: Path) -> PriceConfig:
    """Read and validate a price configuration JSON file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Price configuration is not valid JSON: {exc}") from exc
    return price_config_from_dict(payload)


def save_price_config(config: PriceConfig, path: Path) -> Path:
    """Write a price configuration JSON file and return its path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(price_config_to_dict(config), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return path


def load_scenarios(path: Path) -> list[QuoteScenario]:
    """Read the saved quote comparison list; a missing file is an empty list."""
    if not path.exists():
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Scenario file is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise ValueError("Scenario file must hold a JSON list.")
    return [_parse_scenario(item, f"scenarios[{index}]") for index, item in enumerate(payload)]


def save_scenarios(scenarios: list[QuoteScenario], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [
        {
            "title": scenario.title,
            "specs": scenario.specs,
            "total": scenario.total,
            "timestamp": scenario.timestamp,
        }
        for scenario in scenarios
    ]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


def _parse_option(item: Any, label: str) -> PriceOption:
    if not isinstance(item, dict):
        raise ValueError(f"{label} must be an object.")
    tier_type = item.get("tierType", "quantity")
    if tier_type not in TIER_TYPES:
        raise ValueError(f"{label}.tierType must be one of {', '.join(TIER_TYPES)}.")
    tiers_raw = item.get("tiers", [])
    if not isinstance(tiers_raw, list):
        raise ValueError(f"{label}.tiers must be a list.")
    sheet_thickness = item.get("sheetThickness")
    return PriceOption(
        id=_string(item.get("id"), f"{label}.id"),
        name=str(item.get("name", "")),
        base_price=_number(item.get("basePrice"), f"{label}.basePrice"),
        tiers=tuple(
            _parse_tier(tier, f"{label}.tiers[{tier_index}]")
            for tier_index, tier in enumerate(tiers_raw)
        ),
        tier_type=tier_type,
        sheet_thickness=(
            _number(sheet_thickness, f"{label}.sheetThickness")
            if sheet_thickness is not None
            else None
        ),
    )


def _parse_tier(item: Any, label: str) -> PriceTier:
    if not isinstance(item, dict):
        raise ValueError(f"{label} must be an object.")
    min_amount = _number(item.get("minAmount"), f"{label}.minAmount")
    if min_amount < 0:
        raise ValueError(f"{label}.minAmount must be >= 0.")
    return PriceTier(min_amount=min_amount, price=_number(item.get("price"), f"{label}.price"))


def _parse_addon(item: Any, label: str) -> Addon:
    if not isinstance(item, dict):
        raise ValueError(f"{label} must be an object.")
    return Addon(
        id=_string(item.get("id"), f"{label}.id"),
        name=str(item.get("name", "")),
        price_per_unit=_number(item.get("pricePerUnit"), f"{label}.pricePerUnit"),
    )


def _parse_scenario(item: Any, label: str) -> QuoteScenario:
    if not isinstance(item, dict):
        raise ValueError(f"{label} must be an object.")
    total = item.get("total")
    if isinstance(total, bool) or not isinstance(total, int):
        raise ValueError(f"{label}.total must be an integer.")
    return QuoteScenario(
        title=_string(item.get("title"), f"{label}.title"),
        specs=str(item.get("specs", "")),
        total=total,
        timestamp=str(item.get("timestamp", "")),
    )


def _option_to_dict(option: PriceOption) -> dict[str, JSONValue]:
    payload: dict[str, JSONValue] = {
        "id": option.id,
        "name": option.name,
        "basePrice": option.base_price,
        "tierType": option.tier_type,
        "tiers": [
            {"minAmount": tier.min_amount, "price": tier.price}
            for tier in option.tiers
        ],
    }
    if option.sheet_thickness is not None:
        payload["sheetThickness"] = option.sheet_thickness
    return payload


def _require_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data[key]
    if not isinstance(value, list):
        raise ValueError(f"Price configuration section '{key}' must be a list.")
    return value


def _number(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number.")
    if not math.isfinite(value):
        raise ValueError(f"{label} must be a finite number.")
    return value


def _string(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{label} must be a non-empty string.")
    return value
