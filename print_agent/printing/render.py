"""
Receipt rendering for the print agent.

Turns an invoice payload into an ordered tuple of printer directives:
- Header (company identity), meta block, item table, totals and footer
- Fixed-width columns: padded with spaces, truncated (never wrapped)
- Money normalised through Decimal to exactly two fractional digits

Rendering is pure: the same payload always yields the same directives.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any, List, Tuple, Union

from pydantic import ValidationError

from print_agent.errors import RenderError
from print_agent.jobs.schemas import LineItem, PrintData
from print_agent.printing.directives import (
    ALIGN_CENTER,
    ALIGN_LEFT,
    Close,
    Cut,
    Directive,
    Feed,
    SetAlign,
    SetEmphasis,
    SetSize,
    Text,
)

logger = logging.getLogger(__name__)

PAPER_WIDTH = 32
SEPARATOR = "-" * PAPER_WIDTH

NAME_WIDTH = 18
QTY_WIDTH = 4
PRICE_WIDTH = 8
TOTAL_WIDTH = 8

DEFAULT_COMPANY_NAME = "Company Name"
FOOTER_TEXT = "Thank you!"
FOOTER_FEED_LINES = 4

_CENTS = Decimal("0.01")
_ZERO = Decimal(0)

# Values outside 1e-30..1e30 count as invalid, like NaN
_MAX_EXPONENT = 30
_MONEY_CONTEXT = Context(prec=2 * _MAX_EXPONENT + 8)


def pad(value: Any, width: int) -> str:
    """
    Fit a value into a fixed-width column.
    Shorter strings are right-padded with spaces; longer ones are cut to `width`.
    """
    s = "" if value is None else str(value)
    if len(s) >= width:
        return s[:width]
    return s + " " * (width - len(s))


def to_decimal(value: Any) -> Decimal:
    """
    Parse a money/quantity value. None, booleans, unparsable text,
    NaN/Infinity and absurd exponents all become zero.
    """
    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return _ZERO
    if not d.is_finite() or d.is_zero():
        return _ZERO
    if abs(d.adjusted()) > _MAX_EXPONENT:
        return _ZERO
    return d


def format_money(value: Any) -> str:
    """Render a value with exactly two fractional digits, rounding half up."""
    d = to_decimal(value)
    try:
        q = d.quantize(_CENTS, rounding=ROUND_HALF_UP, context=_MONEY_CONTEXT)
    except InvalidOperation:
        return "0.00"
    if q.is_zero():
        q = abs(q)
    return str(q)


def format_quantity(value: Any) -> str:
    """Integral quantities print without a fraction; missing/invalid ones print 0."""
    d = to_decimal(value)
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def line_total(item: LineItem) -> Decimal:
    if item.total is not None:
        return to_decimal(item.total)
    return to_decimal(item.quantity) * to_decimal(item.price)


def item_row(item: LineItem) -> str:
    return (
        pad(item.name, NAME_WIDTH)
        + pad(format_quantity(item.quantity), QTY_WIDTH)
        + pad(format_money(item.price), PRICE_WIDTH)
        + pad(format_money(line_total(item)), TOTAL_WIDTH)
    )


ITEM_HEADER = pad("Item", NAME_WIDTH) + pad("Qty", QTY_WIDTH) + pad("Price", PRICE_WIDTH) + pad("Total", TOTAL_WIDTH)


def _coerce(data: Union[PrintData, Mapping[str, Any]]) -> PrintData:
    if isinstance(data, PrintData):
        return data
    if not isinstance(data, Mapping):
        raise RenderError(f"Print data must be an object, got {type(data).__name__}")
    try:
        return PrintData.model_validate(dict(data))
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ())) or "print_data"
        raise RenderError(f"Malformed print data at {where}: {first.get('msg', e)}") from e


def render_receipt(data: Union[PrintData, Mapping[str, Any]]) -> Tuple[Directive, ...]:
    """
    Build the directive sequence for one invoice receipt.

    Raises:
        RenderError when the payload cannot be interpreted as an invoice.
    """
    pd = _coerce(data)
    out: List[Directive] = []

    # Header
    out += [
        SetAlign(ALIGN_CENTER),
        SetEmphasis(True),
        SetSize(2),
        Text(pd.company_name or DEFAULT_COMPANY_NAME),
        SetEmphasis(False),
        SetSize(1),
    ]
    if pd.company_address:
        out.append(Text(pd.company_address))
    if pd.vat_reg_no:
        out.append(Text(pd.vat_reg_no))
    out.append(Text(SEPARATOR))

    # Meta
    out += [
        SetAlign(ALIGN_LEFT),
        Text(f"Invoice: {pd.invoice_id}"),
        Text(f"Date: {pd.date}"),
        Text(f"Member: {pd.member_name}"),
        Text(f"Department: {pd.department_name}"),
        Text(f"Payment: {pd.payment_type_id.upper()}"),
        Text(SEPARATOR),
    ]

    # Items
    out.append(Text(ITEM_HEADER))
    out.append(Text(SEPARATOR))
    out += [Text(item_row(item)) for item in pd.products]
    out.append(Text(SEPARATOR))

    # Totals
    out += [
        Text(f"Discount: {format_money(pd.discount)}"),
        Text(f"Service : {format_money(pd.service)}"),
        Text(f"VAT     : {format_money(pd.vat)}"),
        Text(f"Inv Disc: {format_money(pd.invoice_discount_amount)}"),
        Text(f"TOTAL   : {format_money(pd.total)}"),
    ]
    if pd.total_in_words:
        out.append(Text(f"In Words: {pd.total_in_words}"))

    # Footer
    out += [
        Text(SEPARATOR),
        SetAlign(ALIGN_CENTER),
        Text(FOOTER_TEXT),
        Feed(FOOTER_FEED_LINES),
        Cut(),
        Close(),
    ]

    logger.debug("Rendered receipt for invoice %r: %d directives", pd.invoice_id, len(out))
    return tuple(out)


def to_plain_text(directives: Iterable[Directive], width: int = PAPER_WIDTH) -> str:
    """
    Approximate what the paper will look like, for previews and dry runs.
    Centered lines are centered within `width`; the cut is drawn as a scissor rule.
    """
    lines: List[str] = []
    align = ALIGN_LEFT
    for d in directives:
        if isinstance(d, SetAlign):
            align = d.align
        elif isinstance(d, Text):
            lines.append(d.line.center(width).rstrip() if align == ALIGN_CENTER else d.line)
        elif isinstance(d, Feed):
            lines.extend([""] * d.lines)
        elif isinstance(d, Cut):
            lines.append("- " * (width // 2) + "8<")
    return "\n".join(lines) + "\n"


__all__ = [
    "ITEM_HEADER",
    "PAPER_WIDTH",
    "SEPARATOR",
    "format_money",
    "format_quantity",
    "item_row",
    "line_total",
    "pad",
    "render_receipt",
    "to_decimal",
    "to_plain_text",
]
