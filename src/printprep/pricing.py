"""Volume-tier price resolution and print quote composition."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
import logging

from printprep.models import (
    DocumentStats,
    PriceConfig,
    PriceOption,
    Quote,
    QuoteRequest,
    QuoteScenario,
)
from printprep.units import round_half_up

logger = logging.getLogger(__name__)

MAX_SCENARIOS = 3


def resolve_price(option: PriceOption, quantity: float) -> float:
    """Return the price of the highest tier met by ``quantity``, else the base price.

    Tiers sharing a ``min_amount`` resolve to the one listed first.
    """
    qualifying = [tier for tier in option.tiers if tier.min_amount <= quantity]
    if not qualifying:
        return option.base_price
    best = sorted(qualifying, key=lambda tier: tier.min_amount, reverse=True)[0]
    return best.price


def tier_quantity(option: PriceOption, quantity: int, total_pages: int) -> int:
    """Return the runtime amount the option's tiers are compared against."""
    if option.tier_type == "pages":
        return total_pages
    return quantity


def find_option(options: Sequence[PriceOption], option_id: str) -> PriceOption | None:
    for option in options:
        if option.id == option_id:
            return option
    return None


def option_price(
    options: Sequence[PriceOption],
    option_id: str,
    quantity: int,
    total_pages: int,
) -> float:
    """Resolve one selected option; an unknown id contributes nothing."""
    option = find_option(options, option_id)
    if option is None:
        logger.warning("Price option %r is not configured; pricing it at 0.", option_id)
        return 0.0
    return resolve_price(option, tier_quantity(option, quantity, total_pages))


def addon_total(config: PriceConfig, addon_ids: Sequence[str]) -> float:
    selected = set(addon_ids)
    unknown = selected - {addon.id for addon in config.addons}
    for addon_id in sorted(unknown):
        logger.warning("Add-on %r is not configured; ignoring it.", addon_id)
    return sum(addon.price_per_unit for addon in config.addons if addon.id in selected)


def compute_quote(config: PriceConfig, request: QuoteRequest) -> Quote:
    """Compose the per-copy price and the rounded order total."""
    binding_price = option_price(
        config.binding,
        request.binding_id,
        quantity=request.quantity,
        total_pages=request.total_pages,
    )
    paper_price = option_price(
        config.paper,
        request.paper_id,
        quantity=request.quantity,
        total_pages=request.total_pages,
    )
    addons = addon_total(config, request.addon_ids)
    unit_price = (
        request.color_pages * config.color_rate
        + request.mono_pages * config.mono_rate
        + request.total_pages * paper_price
        + binding_price
        + addons
    )
    if request.total_pages == 0:
        total = 0
    else:
        total = int(round_half_up(unit_price * request.quantity))
    logger.debug(
        "Quote: binding=%s paper=%s addons=%s unit=%s qty=%s total=%s",
        binding_price,
        paper_price,
        addons,
        unit_price,
        request.quantity,
        total,
    )
    return Quote(
        binding_price=binding_price,
        paper_price=paper_price,
        addon_total=addons,
        unit_price=unit_price,
        quantity=request.quantity,
        total=total,
    )


def quote_request_from_stats(
    stats: DocumentStats,
    quantity: int,
    binding_id: str,
    paper_id: str,
    addon_ids: Sequence[str] = (),
) -> QuoteRequest:
    """Build a quote request from an analysed document's page counts."""
    handoff = stats.to_handoff()
    return QuoteRequest(
        total_pages=handoff.total_pages,
        color_pages=handoff.color_count,
        mono_pages=handoff.bw_count,
        quantity=quantity,
        binding_id=binding_id,
        paper_id=paper_id,
        addon_ids=tuple(addon_ids),
    )


def build_scenario(
    config: PriceConfig,
    request: QuoteRequest,
    quote: Quote,
    title: str,
    now: datetime | None = None,
) -> QuoteScenario:
    paper = find_option(config.paper, request.paper_id)
    binding = find_option(config.binding, request.binding_id)
    specs = " / ".join(
        [
            paper.name if paper is not None else "-",
            binding.name if binding is not None else "-",
            f"{request.total_pages}P",
        ]
    )
    return QuoteScenario(
        title=title,
        specs=specs,
        total=quote.total,
        timestamp=(now or datetime.now()).isoformat(),
    )


def remember_scenario(
    scenarios: Sequence[QuoteScenario],
    scenario: QuoteScenario,
    limit: int = MAX_SCENARIOS,
) -> list[QuoteScenario]:
    """Return the comparison list with ``scenario`` first, capped at ``limit``."""
    return [scenario, *scenarios][:limit]
