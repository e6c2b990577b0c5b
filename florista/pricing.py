# Central pricing + calculation shared by templates, API and app

import math
import re
from dataclasses import dataclass

FLOWERS_PER_DOZEN = 12

_GROUPED = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d*)?$")


@dataclass(frozen=True)
class Financials:
    total_flower_cost: float
    profit: float
    profit_margin: float

    def as_dict(self) -> dict:
        return {
            "total_flower_cost": self.total_flower_cost,
            "profit": self.profit,
            "profit_margin": self.profit_margin,
        }


def parse_amount(raw) -> float:
    """
    Lenient number parsing for form input; anything unusable is 0.0.
    Commas are only accepted as thousands separators ("1,234.50"), so a
    decimal comma such as "1,5" counts as malformed.
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw or "_" in raw:
            return 0.0
        if "," in raw:
            if not _GROUPED.match(raw):
                return 0.0
            raw = raw.replace(",", "")
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        # huge ints overflow float()
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def compute_unit_price(price_per_dozen) -> float:
    price = parse_amount(price_per_dozen)
    if price <= 0:
        return 0.0
    return price / FLOWERS_PER_DOZEN


def compute_financials(flower_quantity, unit_price, sale_price) -> Financials:
    """
    Cost, profit and margin for one product.
    Negative profit is a normal result (priced below cost), not an error.
    """
    quantity = parse_amount(flower_quantity)
    unit = parse_amount(unit_price)
    sale = parse_amount(sale_price)

    total = quantity * unit
    profit = sale - total
    margin = profit / sale * 100 if sale > 0 else 0.0
    return Financials(total_flower_cost=total, profit=profit, profit_margin=margin)


def format_money(value) -> str:
    # str.format grouping is locale independent
    return f"{parse_amount(value):,.2f}"


def format_percent(value) -> str:
    return f"{parse_amount(value):.1f}%"


def format_quantity(value) -> str:
    return f"{parse_amount(value):g}"
