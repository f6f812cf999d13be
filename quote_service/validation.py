"""
validation.py — Business Rules for Quote Submissions

Pure checks applied to the raw JSON body before anything is built or written.
Rules run in a fixed order and the first failure wins:

    1. customer name and contact present
    2. name is 2-8 CJK ideographs (interpunct "·" allowed)
    3. contact is exactly 11 ASCII digits
    4. at least one line item
    5. declared total == recomputed total (to the cent)
    6. recomputed total >= minimum order amount
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from . import config
from .errors import QuoteRejected, RejectionReason
from .models import LineItem, QuoteSubmission

NAME_PATTERN = re.compile(r"[\u4e00-\u9fa5\u00b7]{2,8}")
CONTACT_PATTERN = re.compile(r"[0-9]{11}")

CENT = Decimal("0.01")

# magnitudes of 10^13 and above count as non-numeric
MAX_ADJUSTED_EXPONENT = 12


def to_decimal(value):
    """
    Converts a JSON scalar into a Decimal.

    Returns None for values that are not numbers or numeric strings
    (including booleans, NaN, infinities and magnitudes of 10^13 or more).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
        if not result.is_finite() or result.adjusted() > MAX_ADJUSTED_EXPONENT:
            return None
        return result
    return None


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _as_number(value: Decimal):
    """Decimal -> int when integral, else float, for JSON and spreadsheet cells."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def normalize_item(raw) -> LineItem:
    """Coerces one raw line item; missing or non-numeric numbers become 0."""
    if not isinstance(raw, dict):
        raw = {}
    return LineItem(
        name=_as_text(raw.get("name")),
        spec=_as_text(raw.get("spec")),
        price=_as_number(to_decimal(raw.get("price")) or Decimal(0)),
        qty=_as_number(to_decimal(raw.get("qty")) or Decimal(0)),
        subtotal=_as_number(to_decimal(raw.get("subtotal")) or Decimal(0)),
    )


def calculate_total(items) -> Decimal:
    """Sums the line subtotals; the client's declared total is never used."""
    total = Decimal(0)
    for item in items:
        raw = item.get("subtotal") if isinstance(item, dict) else None
        total += to_decimal(raw) or Decimal(0)
    return total


def validate_submission(body: dict, min_total: Decimal = None) -> QuoteSubmission:
    """
    Validates a raw submission and returns its normalized form.

    Args:
        body (dict): Decoded JSON request body.
        min_total (Decimal, optional): Minimum order amount, defaults to
            config.MIN_TOTAL.

    Returns:
        QuoteSubmission: Normalized submission including the recomputed total.

    Raises:
        QuoteRejected: On the first rule that fails.
    """
    if min_total is None:
        min_total = config.MIN_TOTAL

    name = body.get("customerName")
    contact = body.get("customerContact")
    if not name or not contact:
        raise QuoteRejected(RejectionReason.MISSING_CUSTOMER, "缺少客户名称或联系方式")

    name = _as_text(name)
    contact = _as_text(contact)
    if not NAME_PATTERN.fullmatch(name):
        raise QuoteRejected(
            RejectionReason.INVALID_NAME,
            "收货人必须为真实姓名（2-8个中文字符，可含中间点）",
        )
    if not CONTACT_PATTERN.fullmatch(contact):
        raise QuoteRejected(RejectionReason.INVALID_CONTACT, "联系电话必须为11位数字")

    items = body.get("items")
    if not isinstance(items, list) or not items:
        raise QuoteRejected(RejectionReason.MISSING_ITEMS, "缺少商品明细")

    calc_total = calculate_total(items)
    # 缺省总额按 0 处理，非数字总额一律视为不一致
    declared = body.get("total")
    declared_total = to_decimal(declared) if declared else Decimal(0)
    if declared_total is None or round_money(declared_total) != round_money(calc_total):
        raise QuoteRejected(RejectionReason.TOTAL_MISMATCH, "金额不一致，请重新提交")

    if calc_total < min_total:
        raise QuoteRejected(
            RejectionReason.BELOW_MINIMUM_TOTAL,
            f"未达起送金额 {_as_number(min_total)} 元",
        )

    address = body.get("customerAddress")
    extras = {
        key: value for key, value in body.items()
        if key not in QuoteSubmission.model_fields
    }
    return QuoteSubmission(
        **extras,
        customerName=name,
        customerContact=contact,
        customerAddress=_as_text(address) if address else None,
        items=[normalize_item(item) for item in items],
        total=_as_number(declared_total),
        calcTotal=_as_number(round_money(calc_total)),
        orderTime=_as_text(body["orderTime"]) if body.get("orderTime") else None,
    )
