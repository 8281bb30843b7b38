"""
Pricing Engine: per-package totals and display prices.

- compute_total: Σ tier price × headcount, keyed by tier key
- compute_from_price: cheapest headline (adult-equivalent) price across packages
- headline_price: what the booking widget shows at each step of the selection

All arithmetic is Decimal; results are quantized to cents.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional

from app.services.package_catalog import AgeCategory, CatalogPackage, ExperienceCatalog

CENT = Decimal("0.01")


def _to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_total(
    categories: Iterable[AgeCategory],
    headcounts: Optional[Dict[str, int]],
) -> Decimal:
    """
    Total price for a headcount map.

    Missing keys count as 0; a negative count never contributes a
    negative amount.
    """
    headcounts = headcounts or {}
    total = Decimal("0")
    for category in categories:
        count = headcounts.get(category.key, 0) or 0
        if count <= 0:
            continue
        total += category.price * count
    return _to_money(total)


def headline_category_price(package: CatalogPackage, base_price: Decimal) -> Decimal:
    """Price of the highest-min-age tier of a package (base price when it has none)."""
    if not package.age_categories:
        return base_price
    first = max(package.age_categories, key=lambda c: c.min_age)
    return first.price


def compute_from_price(
    packages: Iterable[CatalogPackage],
    base_price: Decimal,
) -> Decimal:
    """Minimum of the per-package headline prices; base price when there are no packages."""
    prices = [headline_category_price(p, base_price) for p in packages]
    if not prices:
        return _to_money(base_price)
    return _to_money(min(prices))


def headline_price(
    catalog: ExperienceCatalog,
    package_index: Optional[int],
    selected_date: Optional[str],
    headcounts: Optional[Dict[str, int]] = None,
) -> Optional[Decimal]:
    """
    Display price of the booking widget.

    - no package selected: the "from" price across packages
    - package selected, no date: the package's headline tier price
    - date selected: the total for the current headcounts, or None when
      that total is exactly zero (rendered as "-")
    """
    package = catalog.package_at(package_index)
    if package is None:
        return compute_from_price(catalog.packages, catalog.base_price)

    if not selected_date:
        return _to_money(headline_category_price(package, catalog.base_price))

    total = compute_total(package.age_categories, headcounts)
    if total == 0:
        return None
    return total


def format_price(amount: Optional[Decimal]) -> str:
    """Two-decimal display, "-" for no price."""
    if amount is None:
        return "-"
    return f"{_to_money(amount):.2f}"
