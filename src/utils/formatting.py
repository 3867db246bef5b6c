from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def format_decimal(value: Decimal) -> str:
    quantized = value.normalize()
    # Avoid scientific notation for integers.
    if quantized == quantized.to_integral():
        return f"{quantized:.0f}"
    return format(quantized, "f")


def format_currency(value: Decimal) -> str:
    cents = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{cents:,.2f}"


def format_rate(rate: Decimal) -> str:
    return f"{format_decimal(rate * 100)}%"


def render_table(headers: list[str], rows: list[list[str]], *, left_aligned: int = 1) -> str:
    """Render rows as a plain-text table; the first `left_aligned` columns align left."""
    widths = [max(len(header), max((len(row[idx]) for row in rows), default=0)) for idx, header in enumerate(headers)]

    def _line(cells: list[str]) -> str:
        return " ".join(
            f"{cell:<{widths[idx]}}" if idx < left_aligned else f"{cell:>{widths[idx]}}"
            for idx, cell in enumerate(cells)
        )

    header = _line(headers)
    lines = [header, "-" * len(header)]
    lines.extend(_line(row) for row in rows)
    return "\n".join(lines)
