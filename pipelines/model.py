"""Canonical data model for orders ingested from the service CMS APIs."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServiceType(StrEnum):
    """Closed set of service lines; declaration order is the display order."""

    NANNIES = "nannies"
    GEAR_REFRESH = "gear-refresh"
    HOME_CARE = "home-care"


class PaymentStatus(StrEnum):
    PENDING_PAYMENT = "Pending payment"
    PAYMENT_FAILED = "Payment failed"
    PAYMENT_CONFIRMED = "Payment confirmed"
    RESCHEDULED = "Rescheduled"
    SENT_TO_VENDOR = "Sent to vendor"
    CANCELLED = "Cancelled"
    QC_FEEDBACK = "QC/Feedback"
    COMPLETED = "Completed"
    REFUNDED = "Refunded"


class RequestStatus(StrEnum):
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    SCHEDULED = "scheduled"


# Payment statuses that count towards revenue and profit.
CONFIRMED_PAYMENT_STATUSES: frozenset[PaymentStatus] = frozenset(
    {
        PaymentStatus.PAYMENT_CONFIRMED,
        PaymentStatus.COMPLETED,
        PaymentStatus.SENT_TO_VENDOR,
        PaymentStatus.QC_FEEDBACK,
    }
)

DEFAULT_PAYMENT_STATUS = PaymentStatus.PENDING_PAYMENT
DEFAULT_REQUEST_STATUS = RequestStatus.PENDING
DEFAULT_CURRENCY = "AED"


class CanonicalModel(BaseModel):
    """Base for canonical records: snake_case attributes, camelCase wire names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


class Customer(CanonicalModel):
    id: Optional[int] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Location(CanonicalModel):
    id: Optional[int] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class Address(CanonicalModel):
    """Street address used by home-care requests."""

    id: Optional[int] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None


class ServicePackage(CanonicalModel):
    id: Optional[int] = None
    name: Optional[str] = None
    price: Optional[float] = None


class BaseOrder(CanonicalModel):
    """Fields shared by every service line."""

    id: Optional[int] = None
    document_id: str = ""
    order_id: str = ""
    price: float = 0.0
    total: float = 0.0
    original_price: float = 0.0
    discounted_price: Optional[float] = None
    coupon_code: Optional[str] = None
    payment_status: PaymentStatus = DEFAULT_PAYMENT_STATUS
    request_status: RequestStatus = DEFAULT_REQUEST_STATUS
    payment_id: Optional[str] = None
    response_id: Optional[str] = None
    currency_code: str = DEFAULT_CURRENCY
    sms_confirmation_sent: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # Customer identity: either a related record or inline fields.
    customer: Optional[Customer] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    # Either a geocoded location or a postal address.
    location: Optional[Location] = None
    address: Optional[Address] = None


class NannyOrder(BaseOrder):
    service: Literal[ServiceType.NANNIES] = ServiceType.NANNIES

    hours: Optional[float] = None
    type: Optional[str] = None
    no_of_days: Optional[int] = None
    no_of_children: Optional[int] = None
    child_age_groups: Optional[list[str]] = None
    date: Optional[str] = None
    time: Optional[str] = None
    locales: Optional[str] = None
    special_instructions: Optional[str] = None
    package: Optional[ServicePackage] = None


class GearRefreshOrder(BaseOrder):
    service: Literal[ServiceType.GEAR_REFRESH] = ServiceType.GEAR_REFRESH

    car_type: Optional[str] = None
    installation_type: Optional[str] = None
    locales: Optional[str] = None
    package: Optional[ServicePackage] = None


class HomeCareOrder(BaseOrder):
    """Home-care service request; keeps the API's snake_case wire names."""

    service: Literal[ServiceType.HOME_CARE] = ServiceType.HOME_CARE

    payment_status: PaymentStatus = Field(
        default=DEFAULT_PAYMENT_STATUS, alias="payment_status"
    )
    request_status: RequestStatus = Field(
        default=DEFAULT_REQUEST_STATUS, alias="request_status"
    )
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[float] = None
    property_type: Optional[str] = Field(default=None, alias="property_type")
    supplies_needed: Optional[bool] = Field(default=None, alias="supplies_needed")
    no_of_rooms: Optional[int] = Field(default=None, alias="no_of_rooms")
    cleaning_type: Optional[str] = None
    special_instructions: Optional[str] = Field(
        default=None, alias="special_instructions"
    )
    service_package: Optional[ServicePackage] = Field(
        default=None, alias="service_package"
    )
    language_code: Optional[str] = Field(default=None, alias="language_code")
    country_code: Optional[str] = None


Order = Annotated[
    Union[NannyOrder, GearRefreshOrder, HomeCareOrder],
    Field(discriminator="service"),
]

ORDER_MODELS: dict[ServiceType, type[BaseOrder]] = {
    ServiceType.NANNIES: NannyOrder,
    ServiceType.GEAR_REFRESH: GearRefreshOrder,
    ServiceType.HOME_CARE: HomeCareOrder,
}


def empty_by_service() -> dict[ServiceType, list[BaseOrder]]:
    return {service: [] for service in ServiceType}


class OrderBundle(BaseModel):
    """Result of one fetch cycle, handed to the aggregation layer."""

    model_config = ConfigDict(frozen=True)

    orders: list[Order] = Field(default_factory=list)
    by_service: dict[ServiceType, list[Order]] = Field(default_factory=empty_by_service)
    failed_services: tuple[ServiceType, ...] = ()

    @classmethod
    def from_by_service(
        cls,
        by_service: dict[ServiceType, list[BaseOrder]],
        failed_services: tuple[ServiceType, ...] = (),
    ) -> "OrderBundle":
        grouped = {service: list(by_service.get(service, [])) for service in ServiceType}
        flattened = [order for service in ServiceType for order in grouped[service]]
        return cls(orders=flattened, by_service=grouped, failed_services=failed_services)


__all__ = [
    "Address",
    "BaseOrder",
    "CONFIRMED_PAYMENT_STATUSES",
    "Customer",
    "DEFAULT_CURRENCY",
    "DEFAULT_PAYMENT_STATUS",
    "DEFAULT_REQUEST_STATUS",
    "GearRefreshOrder",
    "HomeCareOrder",
    "Location",
    "NannyOrder",
    "ORDER_MODELS",
    "Order",
    "OrderBundle",
    "PaymentStatus",
    "RequestStatus",
    "ServicePackage",
    "ServiceType",
    "empty_by_service",
]
