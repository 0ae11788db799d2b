"""Tests for tier resolution and quote composition."""

from __future__ import annotations

from datetime import datetime

import pytest

from printprep.aggregate import aggregate
from printprep.models import PageAnalysis, PriceConfig, PriceOption, PriceTier, QuoteRequest
from printprep.price_config import DEFAULT_PRICE_CONFIG
from printprep.pricing import (
    build_scenario,
    compute_quote,
    quote_request_from_stats,
    remember_scenario,
    resolve_price,
    tier_quantity,
)

BINDING = PriceOption(
    id="b1",
    name="Perfect binding",
    base_price=50,
    tier_type="quantity",
    tiers=(PriceTier(min_amount=100, price=35), PriceTier(min_amount=50, price=45)),
)


def test_quantity_below_every_tier_uses_base_price() -> None:
    assert resolve_price(BINDING, 49) == 50


def test_exact_threshold_selects_that_tier() -> None:
    assert resolve_price(BINDING, 50) == 45
    assert resolve_price(BINDING, 100) == 35


def test_highest_met_threshold_wins_regardless_of_storage_order() -> None:
    assert resolve_price(BINDING, 1000) == 35
    assert resolve_price(BINDING, 99) == 45


@pytest.mark.parametrize("quantity", [0, -5])
def test_degenerate_quantities_fall_back_to_base_price(quantity: int) -> None:
    assert resolve_price(BINDING, quantity) == 50


def test_empty_tier_list_uses_base_price() -> None:
    option = PriceOption(id="b2", name="Comb", base_price=40)
    assert resolve_price(option, 500) == 40


def test_tied_thresholds_resolve_to_first_listed() -> None:
    option = PriceOption(
        id="x",
        name="Tied",
        base_price=10,
        tiers=(PriceTier(min_amount=5, price=8), PriceTier(min_amount=5, price=7)),
    )
    assert resolve_price(option, 6) == 8


def test_negative_tier_threshold_is_rejected() -> None:
    with pytest.raises(ValueError):
        PriceTier(min_amount=-1, price=1)


def test_tier_quantity_follows_tier_type() -> None:
    paper = DEFAULT_PRICE_CONFIG.paper[0]
    assert tier_quantity(paper, quantity=10, total_pages=120) == 120
    assert tier_quantity(BINDING, quantity=10, total_pages=120) == 10


def test_compute_quote_composes_unit_price_and_rounds_total() -> None:
    request = QuoteRequest(
        total_pages=60,
        color_pages=10,
        mono_pages=50,
        quantity=50,
        binding_id="b1",
        paper_id="p1",
        addon_ids=("a1", "a2"),
    )

    quote = compute_quote(DEFAULT_PRICE_CONFIG, request)

    assert quote.binding_price == 45
    assert quote.paper_price == 0.4
    assert quote.addon_total == 25
    assert quote.unit_price == pytest.approx(10 * 5 + 50 * 1 + 60 * 0.4 + 45 + 25)
    assert quote.total == 9700


def test_total_rounds_half_up() -> None:
    config = PriceConfig(
        binding=(PriceOption(id="b", name="B", base_price=0.5),),
        paper=(PriceOption(id="p", name="P", base_price=0, tier_type="pages"),),
        addons=(),
        color_rate=0,
        mono_rate=0,
    )
    request = QuoteRequest(
        total_pages=1,
        color_pages=0,
        mono_pages=1,
        quantity=5,
        binding_id="b",
        paper_id="p",
    )
    assert compute_quote(config, request).total == 3


def test_zero_pages_quote_is_zero() -> None:
    request = QuoteRequest(
        total_pages=0,
        color_pages=0,
        mono_pages=0,
        quantity=10,
        binding_id="b1",
        paper_id="p1",
    )
    assert compute_quote(DEFAULT_PRICE_CONFIG, request).total == 0


def test_unknown_option_contributes_nothing() -> None:
    request = QuoteRequest(
        total_pages=10,
        color_pages=0,
        mono_pages=10,
        quantity=1,
        binding_id="missing",
        paper_id="p2",
        addon_ids=("nope",),
    )
    quote = compute_quote(DEFAULT_PRICE_CONFIG, request)
    assert quote.binding_price == 0
    assert quote.addon_total == 0
    assert quote.total == 18


def test_request_from_stats_uses_handoff_counts() -> None:
    stats = aggregate(
        [
            PageAnalysis(page_number=1, is_color=True, is_low_res=False, width_mm=216, height_mm=303),
            PageAnalysis(page_number=2, is_color=False, is_low_res=False, width_mm=216, height_mm=303),
            PageAnalysis(page_number=3, is_color=False, is_low_res=False, width_mm=216, height_mm=303),
        ]
    )
    request = quote_request_from_stats(stats, quantity=2, binding_id="b2", paper_id="p1")
    assert (request.total_pages, request.color_pages, request.mono_pages) == (3, 1, 2)
    assert compute_quote(DEFAULT_PRICE_CONFIG, request).total == round((5 + 2 + 1.5 + 40) * 2)


def test_scenarios_keep_three_most_recent_first() -> None:
    request = QuoteRequest(
        total_pages=20,
        color_pages=0,
        mono_pages=20,
        quantity=1,
        binding_id="b1",
        paper_id="p1",
    )
    quote = compute_quote(DEFAULT_PRICE_CONFIG, request)
    scenarios = []
    for index in range(1, 5):
        scenario = build_scenario(
            DEFAULT_PRICE_CONFIG,
            request,
            quote,
            title=f"Option {index}",
            now=datetime(2024, 1, index),
        )
        scenarios = remember_scenario(scenarios, scenario)

    assert [scenario.title for scenario in scenarios] == ["Option 4", "Option 3", "Option 2"]
    assert scenarios[0].specs.endswith("/ 20P")
    assert scenarios[0].total == quote.total
