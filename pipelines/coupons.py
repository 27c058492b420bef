"""Coupon-redemption records and their merge onto fetched orders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from pipelines.coerce import coerce_money, coerce_str, pick, relation_fields, unwrap_entity
from pipelines.model import BaseOrder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponRedemption:
    coupon_code: str
    order_document_id: str | None = None
    order_id: str | None = None
    discount_amount: float | None = None
    final_amount: float | None = None


def _coupon_code(data: Mapping[str, Any]) -> str | None:
    code = coerce_str(pick(data, "couponCode", "coupon_code", "code"))
    if code:
        return code
    resolved = relation_fields(data.get("coupon"))
    if resolved is None:
        return None
    fields, _ = resolved
    return coerce_str(pick(fields, "code", "couponCode", "name"))


def normalize_coupon_redemption(raw: Any) -> CouponRedemption | None:
    """Read one redemption record; ``None`` when it names no coupon or order."""

    if not isinstance(raw, Mapping):
        return None
    data = unwrap_entity(raw)

    code = _coupon_code(data)
    order_document_id = coerce_str(pick(data, "orderDocumentId", "order_document_id"))
    order_id = coerce_str(pick(data, "orderId", "order_id"))

    related = relation_fields(data.get("order"))
    if related is not None:
        fields, _ = related
        order_document_id = order_document_id or coerce_str(pick(fields, "documentId", "document_id"))
        order_id = order_id or coerce_str(pick(fields, "orderId", "order_id"))
    elif isinstance(data.get("order"), str):
        order_document_id = order_document_id or coerce_str(data["order"])

    if not code or not (order_document_id or order_id):
        logger.debug("Skipping coupon redemption without coupon or order reference: %s", raw)
        return None

    return CouponRedemption(
        coupon_code=code,
        order_document_id=order_document_id,
        order_id=order_id,
        discount_amount=coerce_money(pick(data, "discountAmount", "discount_amount", "discount")),
        final_amount=coerce_money(
            pick(data, "finalAmount", "final_amount", "discountedPrice", "discounted_price")
        ),
    )


def normalize_coupon_redemptions(records: Iterable[Any]) -> list[CouponRedemption]:
    redemptions = []
    for record in records:
        redemption = normalize_coupon_redemption(record)
        if redemption is not None:
            redemptions.append(redemption)
    return redemptions


def _discounted_price(order: BaseOrder, redemption: CouponRedemption) -> float | None:
    if redemption.final_amount is not None:
        return redemption.final_amount
    if redemption.discount_amount is not None:
        base = order.original_price or order.price or order.total
        return max(base - redemption.discount_amount, 0.0)
    return None


def apply_coupon_redemptions(
    orders: Sequence[BaseOrder],
    redemptions: Iterable[CouponRedemption],
    *,
    match_order_id: bool = True,
) -> list[BaseOrder]:
    """Return orders with matching redemptions applied.

    Document ids are unique across CMS instances; numeric order ids are not,
    so ``match_order_id`` should only be set for orders read from the same
    instance that records the redemptions.

    The discounted price is derived from ``original_price`` so applying the
    same redemptions twice gives the same result.
    """

    by_document: dict[str, CouponRedemption] = {}
    by_order_id: dict[str, CouponRedemption] = {}
    for redemption in redemptions:
        if redemption.order_document_id:
            by_document.setdefault(redemption.order_document_id, redemption)
        if match_order_id and redemption.order_id:
            by_order_id.setdefault(redemption.order_id, redemption)

    if not by_document and not by_order_id:
        return list(orders)

    merged: list[BaseOrder] = []
    applied = 0
    for order in orders:
        redemption = by_document.get(order.document_id) if order.document_id else None
        if redemption is None:
            redemption = by_order_id.get(order.order_id)
        if redemption is None:
            merged.append(order)
            continue
        update: dict[str, Any] = {"coupon_code": redemption.coupon_code}
        discounted = _discounted_price(order, redemption)
        if discounted is not None:
            update["discounted_price"] = discounted
            update["total"] = discounted
        merged.append(order.model_copy(update=update))
        applied += 1

    logger.info("Applied %s coupon redemptions to %s orders.", applied, len(merged))
    return merged


__all__ = [
    "CouponRedemption",
    "apply_coupon_redemptions",
    "normalize_coupon_redemption",
    "normalize_coupon_redemptions",
]
