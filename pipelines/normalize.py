"""Order normalization and service classification.

Turns raw Strapi order records (v4 ``attributes`` envelopes or v5 flat
records, camelCase or snake_case field names, flat or relational
sub-records) into canonical ``Order`` models that the analytics layer can
aggregate without re-probing field names.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ValidationError

from pipelines.coerce import (
    coerce_bool,
    coerce_float,
    coerce_int,
    coerce_money,
    coerce_str,
    pick,
    relation_fields,
    unwrap_entity,
)
from pipelines.model import (
    DEFAULT_CURRENCY,
    DEFAULT_PAYMENT_STATUS,
    DEFAULT_REQUEST_STATUS,
    ORDER_MODELS,
    Address,
    BaseOrder,
    Customer,
    Location,
    PaymentStatus,
    RequestStatus,
    ServicePackage,
    ServiceType,
)

logger = logging.getLogger(__name__)

NANNY_BOOKING_TYPES = frozenset({"day", "week", "month"})

# Canonical field -> accepted source names, most specific first.
_COMMON_ALIASES: Mapping[str, tuple[str, ...]] = {
    "payment_id": ("payment_id", "paymentId"),
    "response_id": ("response_id", "responseId"),
    "coupon_code": ("coupon_code", "couponCode"),
    "created_at": ("created_at", "createdAt"),
    "updated_at": ("updated_at", "updatedAt"),
}

_NANNY_ALIASES: Mapping[str, tuple[str, ...]] = {
    "hours": ("hours", "numberOfHours"),
    "no_of_days": ("noOfDays", "no_of_days"),
    "no_of_children": ("noOfChildren", "no_of_children", "numberOfChildren"),
    "date": ("date",),
    "time": ("time",),
    "locales": ("locales",),
}

_HOME_CARE_ALIASES: Mapping[str, tuple[str, ...]] = {
    "special_instructions": ("special_instructions", "specialInstructions"),
    "duration": ("duration",),
    "property_type": ("property_type", "propertyType"),
    "supplies_needed": ("supplies_needed", "suppliesNeeded"),
    "no_of_rooms": ("no_of_rooms", "noOfRooms"),
    "cleaning_type": ("cleaningType", "cleaning_type"),
    "language_code": ("language_code", "languageCode"),
    "country_code": ("countryCode", "country_code"),
}

_GEAR_ALIASES: Mapping[str, tuple[str, ...]] = {
    "car_type": ("carType", "car_type"),
    "installation_type": ("installationType", "installation_type"),
}


def _coerce_payment_status(value: Any) -> PaymentStatus:
    text = coerce_str(value)
    if text is None:
        return DEFAULT_PAYMENT_STATUS
    for status in PaymentStatus:
        if status.value == text or status.value.lower() == text.lower():
            return status
    logger.debug("Unknown payment status %r; using %r.", text, DEFAULT_PAYMENT_STATUS.value)
    return DEFAULT_PAYMENT_STATUS


def _coerce_request_status(value: Any) -> RequestStatus:
    text = coerce_str(value)
    if text is None:
        return DEFAULT_REQUEST_STATUS
    try:
        return RequestStatus(text.lower())
    except ValueError:
        logger.debug("Unknown request status %r; using %r.", text, DEFAULT_REQUEST_STATUS.value)
        return DEFAULT_REQUEST_STATUS


def _extract_customer(value: Any) -> Customer | None:
    resolved = relation_fields(value)
    if resolved is None:
        return None
    fields, entity_id = resolved
    full_name = coerce_str(pick(fields, "fullName", "full_name", "name"))
    email = coerce_str(pick(fields, "email"))
    phone = coerce_str(pick(fields, "phone"))
    if not (full_name or email or phone):
        return None
    return Customer(id=coerce_int(entity_id), full_name=full_name, email=email, phone=phone)


def _extract_location(value: Any) -> Location | None:
    resolved = relation_fields(value)
    if resolved is None:
        return None
    fields, entity_id = resolved
    location = Location(
        id=coerce_int(entity_id),
        address=coerce_str(pick(fields, "address")),
        city=coerce_str(pick(fields, "city")),
        country=coerce_str(pick(fields, "country")),
        lat=coerce_float(pick(fields, "lat", "latitude")),
        lng=coerce_float(pick(fields, "lng", "lon", "longitude")),
    )
    if location.model_dump(exclude={"id"}, exclude_none=True):
        return location
    return None


def _extract_address(value: Any) -> Address | None:
    if isinstance(value, str):
        street = coerce_str(value)
        return Address(street=street) if street else None
    resolved = relation_fields(value)
    if resolved is None:
        return None
    fields, entity_id = resolved
    address = Address(
        id=coerce_int(entity_id),
        street=coerce_str(pick(fields, "street", "address", "line1")),
        city=coerce_str(pick(fields, "city")),
        state=coerce_str(pick(fields, "state")),
        country=coerce_str(pick(fields, "country")),
        zip_code=coerce_str(pick(fields, "zipCode", "zip_code", "postalCode")),
    )
    if address.model_dump(exclude={"id"}, exclude_none=True):
        return address
    return None


def _extract_package(value: Any) -> ServicePackage | None:
    resolved = relation_fields(value)
    if resolved is None:
        return None
    fields, entity_id = resolved
    name = coerce_str(pick(fields, "name", "title"))
    price = coerce_money(pick(fields, "price"))
    if name is None and price is None:
        return None
    return ServicePackage(id=coerce_int(entity_id), name=name, price=price)


def _extract_children(data: Mapping[str, Any]) -> tuple[int | None, list[str] | None]:
    count = coerce_int(pick(data, *_NANNY_ALIASES["no_of_children"]))
    children = data.get("children")
    if count is None and isinstance(children, list):
        count = len(children)
    elif count is None:
        count = coerce_int(children)

    groups = pick(data, "childAgeGroups", "child_age_groups")
    age_groups = None
    if isinstance(groups, (list, tuple)):
        age_groups = [text for text in map(coerce_str, groups) if text] or None
    elif isinstance(groups, str) and groups.strip():
        age_groups = [part.strip() for part in groups.split(",") if part.strip()] or None
    return count, age_groups


def extract_order_fields(raw: Any) -> dict[str, Any]:
    """Map a raw record onto canonical snake_case field names.

    Every recognized source field lands on exactly one canonical key;
    unrecognized fields are ignored and missing ones get typed defaults.
    The special ``service_hint`` key carries an explicit upstream service
    marker for the classifier and is not stored on the order.
    """

    if not isinstance(raw, Mapping):
        logger.debug("Ignoring non-mapping order payload of type %s.", type(raw).__name__)
        raw = {}
    data = unwrap_entity(raw)

    entity_id = coerce_int(raw.get("id", data.get("id")))
    document_id = coerce_str(pick(raw, "documentId", "document_id")) or coerce_str(
        pick(data, "documentId", "document_id")
    )

    total = coerce_money(data.get("total")) or coerce_money(data.get("price")) or 0.0
    price = coerce_money(data.get("price")) or total
    original_price = (
        coerce_money(pick(data, "originalPrice", "original_price"))
        or coerce_money(data.get("price"))
        or total
    )

    order_id = coerce_str(pick(data, "orderId", "order_id"))
    if order_id is None:
        order_id = f"ORDER-{entity_id}" if entity_id is not None else (document_id or "")

    fields: dict[str, Any] = {
        "id": entity_id,
        "document_id": document_id or "",
        "order_id": order_id,
        "price": price,
        "total": total,
        "original_price": original_price,
        "discounted_price": coerce_money(pick(data, "discountedPrice", "discounted_price")),
        "payment_status": _coerce_payment_status(pick(data, "payment_status", "paymentStatus")),
        "request_status": _coerce_request_status(pick(data, "request_status", "requestStatus")),
        "currency_code": coerce_str(pick(data, "currencyCode", "currency_code")) or DEFAULT_CURRENCY,
        "sms_confirmation_sent": bool(
            coerce_bool(pick(data, "smsConfirmationSent", "sms_confirmation_sent"))
        ),
        "customer": _extract_customer(data.get("customer")),
        "full_name": coerce_str(pick(data, "fullName", "full_name")),
        "email": coerce_str(pick(data, "email")),
        "phone": coerce_str(pick(data, "phone")),
        "location": _extract_location(data.get("location")),
        "address": _extract_address(data.get("address")),
    }
    for canonical, names in _COMMON_ALIASES.items():
        fields[canonical] = coerce_str(pick(data, *names))

    # Nanny bookings
    fields["hours"] = coerce_float(pick(data, *_NANNY_ALIASES["hours"]))
    fields["no_of_days"] = coerce_int(pick(data, *_NANNY_ALIASES["no_of_days"]))
    fields["no_of_children"], fields["child_age_groups"] = _extract_children(data)
    booking_type = coerce_str(data.get("type"))
    fields["type"] = booking_type.lower() if booking_type else None
    for canonical in ("date", "time", "locales"):
        fields[canonical] = coerce_str(pick(data, *_NANNY_ALIASES[canonical]))
    fields["package"] = _extract_package(data.get("package"))

    # Home-care requests
    for canonical, names in _HOME_CARE_ALIASES.items():
        value = pick(data, *names)
        if canonical == "duration":
            fields[canonical] = coerce_float(value)
        elif canonical == "no_of_rooms":
            fields[canonical] = coerce_int(value)
        elif canonical == "supplies_needed":
            fields[canonical] = coerce_bool(value)
        else:
            fields[canonical] = coerce_str(value)
    fields["service_package"] = _extract_package(pick(data, "service_package", "servicePackage"))

    # Gear-refresh installations
    for canonical, names in _GEAR_ALIASES.items():
        fields[canonical] = coerce_str(pick(data, *names))

    hint = coerce_str(pick(data, "serviceType", "bookingType"))
    fields["service_hint"] = hint.lower() if hint else None
    return fields


def classify_service(record: BaseOrder | Mapping[str, Any]) -> ServiceType:
    """Pick the service line an order most likely belongs to.

    Priority is nannies, then home-care, then gear-refresh, then the nannies
    default, so an order carrying both nanny and home-care signals is a nanny
    booking.
    """

    fields: Mapping[str, Any]
    if isinstance(record, BaseModel):
        fields = record.model_dump()
    elif isinstance(record, Mapping):
        fields = record
    else:
        return ServiceType.NANNIES

    hint = fields.get("service_hint")

    if (
        fields.get("hours") is not None
        or fields.get("no_of_children") is not None
        or fields.get("child_age_groups")
        or fields.get("type") in NANNY_BOOKING_TYPES
        or hint in ("nanny", ServiceType.NANNIES.value)
    ):
        return ServiceType.NANNIES

    if (
        fields.get("property_type")
        or fields.get("supplies_needed") is not None
        or fields.get("no_of_rooms") is not None
        or fields.get("duration") is not None
        or fields.get("full_name")
        or fields.get("address")
        or fields.get("cleaning_type")
    ):
        return ServiceType.HOME_CARE

    if fields.get("car_type") or fields.get("installation_type") or hint == ServiceType.GEAR_REFRESH.value:
        return ServiceType.GEAR_REFRESH

    return ServiceType.NANNIES


def _build_order(model: type[BaseOrder], fields: Mapping[str, Any]) -> BaseOrder:
    accepted = {
        name: value
        for name, value in fields.items()
        if name in model.model_fields and value is not None
    }
    try:
        return model(**accepted)
    except ValidationError as exc:
        # Coercion above should make this unreachable; keep the common fields.
        logger.debug("Order %s failed validation for %s: %s", fields.get("id"), model.__name__, exc)
        common = {name: value for name, value in accepted.items() if name in BaseOrder.model_fields}
        return model.model_validate(common)


def normalize_order(raw: Any, service: ServiceType | str | None = None) -> BaseOrder:
    """Normalize one raw record into a canonical, service-tagged order.

    ``service`` is the fetch origin when known; otherwise the record is
    classified from its fields.
    """

    fields = extract_order_fields(raw)
    resolved = ServiceType(service) if service is not None else classify_service(fields)
    return _build_order(ORDER_MODELS[resolved], fields)


def normalize_orders(
    records: Iterable[Any], service: ServiceType | str | None = None
) -> list[BaseOrder]:
    return [normalize_order(record, service) for record in records]


__all__ = [
    "NANNY_BOOKING_TYPES",
    "classify_service",
    "extract_order_fields",
    "normalize_order",
    "normalize_orders",
]
