"""Lead salesman to follower projections.

A follower's location allowance and product commissions are never entered by
hand: they are re-derived from the lead's row on every recompute, so the
functions here always rebuild those fields in full instead of patching them.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from .catalog import NON_HOURLY_DROPPED_UNITS
from .core.logging import get_logger
from .models import LOCATION_ALLOWANCE_PAY_CODES, Activity, BagCounts, LocationType, ProductSale
from .money import Number, to_decimal
from .pricing import price_activities

logger = get_logger(__name__)

PRODUCT_COMMISSION_PAY_CODES: Dict[str, str] = {
    "1-2UDG": "DME-2UDG",
    "1-3UDG": "DME-3UDG",
    "1-350G": "DME-350G",
    "1-MNL": "DME-MNL",
    "2-APPLE": "DME-300G",
    "2-BH": "DME-300G",
    "2-BH2": "DME-2H",
    "2-BCM3": "DME-600G",
    "2-BNL": "DME-3.1KG",
    "2-BNL(5)": "DME-5KG",
    "2-MASAK": "DME-300G",
    "2-PADI": "DME-300G",
    "WE-2UDG": "DWE-2UDG",
    "WE-3UDG": "DWE-3UDG",
    "WE-300G": "DWE-300G",
    "WE-360": "DWE-350G",
    "WE-360(5PK)": "DWE-350G",
    "WE-420": "DWE-420G",
    "WE-600G": "DWE-600G",
    "WE-MNL": "DWE-MNL",
}
COMMISSION_PAY_CODES = frozenset(PRODUCT_COMMISSION_PAY_CODES.values())

MUAT_MEE_PAY_CODE = "4-COMM_MUAT_MEE"
MUAT_BIHUN_PAY_CODE = "5-COMM_MUAT_BH"

_PRODUCT_PAY_CODE = re.compile(r"^(\d|WE-)")


def is_product_pay_code(pay_code_id: str) -> bool:
    return bool(_PRODUCT_PAY_CODE.match(str(pay_code_id)))


def _quantity(value: Number) -> float:
    return float(to_decimal(value))


def _reprice(activities: List[Activity], location_type: Optional[LocationType | str]) -> List[Activity]:
    # salesman-type rows carry no worked hours
    return price_activities(activities, 0, location_type=location_type)


def bag_count_from_display(value: Number, doubled: bool) -> int:
    """Base bag count from what the user typed (already doubled when x2 is on)."""
    amount = to_decimal(value)
    if doubled:
        amount = amount / 2
    return max(0, int(amount.to_integral_value(rounding=ROUND_HALF_UP)))


def bag_count_display(base: int, doubled: bool) -> int:
    return base * 2 if doubled else base


def commission_quantities(product_sales: Iterable[ProductSale], doubled: bool = False) -> Dict[str, float]:
    """Sum a lead's product sales into commission pay codes, every code starting at 0."""
    quantities: Dict[str, float] = {code: 0 for code in COMMISSION_PAY_CODES}
    for sale in product_sales:
        pay_code_id = PRODUCT_COMMISSION_PAY_CODES.get(str(sale.product_id))
        if pay_code_id is None:
            continue
        qty = _quantity(sale.quantity)
        quantities[pay_code_id] += qty * 2 if doubled else qty
    return quantities


def _set_allowances(activities: List[Activity], location_type: Optional[LocationType | str]) -> None:
    current = LocationType(location_type) if location_type is not None else None
    for activity in activities:
        for location, pay_code_id in LOCATION_ALLOWANCE_PAY_CODES.items():
            if activity.pay_code_id == pay_code_id:
                activity.is_selected = location is current


def _set_bag_counts(activities: List[Activity], bag_counts: BagCounts, doubled: bool) -> None:
    quantities = {
        MUAT_MEE_PAY_CODE: bag_count_display(bag_counts.muat_mee, doubled),
        MUAT_BIHUN_PAY_CODE: bag_count_display(bag_counts.muat_bihun, doubled),
    }
    for activity in activities:
        qty = quantities.get(activity.pay_code_id)
        if qty is not None:
            activity.units_produced = qty
            activity.is_selected = qty > 0


def apply_location_allowance(activities: Iterable[Activity], location_type: LocationType | str) -> List[Activity]:
    """Select the allowance for ``location_type`` and switch the other one off."""
    updated = [activity.copy() for activity in activities]
    _set_allowances(updated, location_type)
    return _reprice(updated, location_type)


def apply_bag_counts(activities: Iterable[Activity], bag_counts: BagCounts, doubled: bool = False) -> List[Activity]:
    updated = [activity.copy() for activity in activities]
    _set_bag_counts(updated, bag_counts, doubled)
    return _reprice(updated, None)


def apply_lead_product_sales(
    activities: Iterable[Activity],
    product_sales: Iterable[ProductSale],
    location_type: Optional[LocationType | str] = None,
) -> List[Activity]:
    """Put a lead's own product sales on its product-keyed pay codes."""
    sold: Dict[str, float] = {}
    for sale in product_sales:
        key = str(sale.product_id)
        sold[key] = sold.get(key, 0) + _quantity(sale.quantity)

    updated: List[Activity] = []
    for original in activities:
        activity = original.copy()
        if is_product_pay_code(activity.pay_code_id):
            qty = sold.get(activity.pay_code_id, 0)
            if qty > 0:
                activity.units_produced = qty
                activity.is_selected = True
            elif (activity.units_produced or 0) > 0 or activity.is_selected:
                activity.units_produced = 0
                activity.is_selected = False
        if activity.rate_unit in NON_HOURLY_DROPPED_UNITS:
            activity.is_selected = False
        updated.append(activity)
    return _reprice(updated, location_type)


def lead_product_sales_from_activities(lead_activities: Iterable[Activity]) -> List[ProductSale]:
    return [
        ProductSale(activity.pay_code_id, activity.units_produced)
        for activity in lead_activities
        if activity.is_selected
        and is_product_pay_code(activity.pay_code_id)
        and (activity.units_produced or 0) > 0
    ]


def propagate_follower_from_lead(
    lead_activities: Optional[Iterable[Activity]],
    lead_product_sales: Optional[Iterable[ProductSale]],
    follower_activities: Iterable[Activity],
    doubled: bool = False,
    *,
    location_type: Optional[LocationType | str] = None,
    bag_counts: Optional[BagCounts] = None,
    lead_selected: bool = True,
) -> List[Activity]:
    """Re-derive a follower's allowance and commission activities from its lead.

    Product sales default to the lead's selected product activities when
    ``lead_product_sales`` is None. With no lead, or a lead that is no longer
    selected, the projected fields are cleared. Manual bag counts apply
    either way.
    """
    updated = [activity.copy() for activity in follower_activities]

    if lead_activities is None or not lead_selected:
        if lead_activities is not None:
            logger.warning("follower_lead_not_selected")
        quantities = commission_quantities(())
        location_type = None
    else:
        lead_activities = list(lead_activities)
        sales = (
            list(lead_product_sales)
            if lead_product_sales is not None
            else lead_product_sales_from_activities(lead_activities)
        )
        quantities = commission_quantities(sales, doubled)
        location_type = location_type or LocationType.LOCAL

    for activity in updated:
        qty = quantities.get(activity.pay_code_id)
        if qty is not None:
            activity.units_produced = qty
            activity.is_selected = qty > 0
    _set_allowances(updated, location_type)
    if bag_counts is not None:
        _set_bag_counts(updated, bag_counts, doubled)
    return _reprice(updated, location_type)
