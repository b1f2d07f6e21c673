from __future__ import annotations

from grantvest.schemas.vesting import EnrichedVestingEvent, PriceContext, VestingEvent
from grantvest.services.units import round_units


def enrich_events(
    events: list[VestingEvent],
    price_context: PriceContext,
    currency_precision: int,
    default_currency: str,
) -> list[EnrichedVestingEvent]:
    """Attach an externally looked-up price to each event.

    The price is used as given for every event; no lookup happens here. A
    context without a currency is reported in ``default_currency``.
    """
    price = price_context.price
    currency = price_context.currency or default_currency
    enriched: list[EnrichedVestingEvent] = []
    for event in events:
        estimated_value = (
            round_units(event.units * price, currency_precision) if price is not None else None
        )
        enriched.append(
            EnrichedVestingEvent(
                **event.model_dump(),
                price_at_vesting=price,
                estimated_value=estimated_value,
                currency=currency,
            )
        )
    return enriched
