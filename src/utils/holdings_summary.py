from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from domain.ledger import InstrumentId, OpenLotSnapshot

from .formatting import format_currency, format_decimal, render_table


@dataclass
class InstrumentHolding:
    instrument_id: InstrumentId
    quantity: Decimal
    cost_basis: Decimal
    open_lots: int

    @property
    def average_cost(self) -> Decimal:
        if self.quantity == 0:
            return Decimal(0)
        return self.cost_basis / self.quantity


@dataclass
class HoldingsSummary:
    holdings: list[InstrumentHolding] = field(default_factory=list)

    @property
    def total_cost_basis(self) -> Decimal:
        return sum((holding.cost_basis for holding in self.holdings), start=Decimal(0))


def compute_holdings_summary(open_lots: Iterable[OpenLotSnapshot]) -> HoldingsSummary:
    """Aggregate open lots per instrument at cost."""
    by_instrument: dict[InstrumentId, InstrumentHolding] = {}
    for lot in open_lots:
        holding = by_instrument.get(lot.instrument_id)
        if holding is None:
            holding = InstrumentHolding(
                instrument_id=lot.instrument_id,
                quantity=Decimal(0),
                cost_basis=Decimal(0),
                open_lots=0,
            )
            by_instrument[lot.instrument_id] = holding
        holding.quantity += lot.quantity_remaining
        holding.cost_basis += lot.cost_basis
        holding.open_lots += 1

    return HoldingsSummary(holdings=[by_instrument[key] for key in sorted(by_instrument)])


def render_holdings_summary(summary: HoldingsSummary) -> None:
    print("Open holdings:")
    if not summary.holdings:
        print("  (empty)")
        return

    rows = [
        [
            holding.instrument_id,
            str(holding.open_lots),
            format_decimal(holding.quantity),
            format_currency(holding.average_cost),
            format_currency(holding.cost_basis),
        ]
        for holding in summary.holdings
    ]
    print(render_table(["Instrument", "Lots", "Quantity", "Avg cost", "Cost basis"], rows))
    print(f"Total cost basis: {format_currency(summary.total_cost_basis)}")
