"""City rankings and map markers for confirmed orders."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from pipelines.accessors import get_order_location, get_order_total, is_revenue_order
from pipelines.model import BaseOrder, ServiceType

from analytics.schemas import CityStats, GeographicMarker


def _revenue_orders(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]],
) -> Iterable[BaseOrder]:
    for orders in by_service.values():
        yield from (order for order in orders if is_revenue_order(order))


def _city_totals(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]],
) -> list[CityStats]:
    grouped: dict[tuple[str, str], list[float]] = {}
    for order in _revenue_orders(by_service):
        location = get_order_location(order)
        if not (location.city and location.country):
            continue
        grouped.setdefault((location.city, location.country), []).append(get_order_total(order))

    return [
        CityStats(
            city=city,
            country=country,
            order_count=len(totals),
            total_revenue=sum(totals),
            average_order_value=sum(totals) / len(totals),
        )
        for (city, country), totals in grouped.items()
    ]


def get_top_cities_by_orders(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]], limit: int = 10
) -> list[CityStats]:
    cities = _city_totals(by_service)
    return sorted(cities, key=lambda stats: stats.order_count, reverse=True)[:limit]


def get_top_cities_by_revenue(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]], limit: int = 10
) -> list[CityStats]:
    cities = _city_totals(by_service)
    return sorted(cities, key=lambda stats: stats.total_revenue, reverse=True)[:limit]


def get_geographic_markers(
    by_service: Mapping[ServiceType, Sequence[BaseOrder]],
) -> list[GeographicMarker]:
    """One marker per (lat, lng, city, country) and service line.

    Orders without coordinates (home-care addresses never carry any) are
    left off the map. A coordinate of exactly 0 is still a coordinate.
    """

    markers: list[GeographicMarker] = []
    for service, orders in by_service.items():
        groups: dict[tuple[float, float, str, str], list[float]] = {}
        for order in orders:
            if not is_revenue_order(order):
                continue
            location = get_order_location(order)
            if location.lat is None or location.lng is None:
                continue
            if not (location.city and location.country):
                continue
            key = (location.lat, location.lng, location.city, location.country)
            groups.setdefault(key, []).append(get_order_total(order))

        for (lat, lng, city, country), totals in groups.items():
            markers.append(
                GeographicMarker(
                    id=f"{lat}-{lng}-{city}-{country}",
                    lat=lat,
                    lng=lng,
                    city=city,
                    country=country,
                    order_count=len(totals),
                    total_revenue=sum(totals),
                    service_type=service,
                )
            )
    return markers


__all__ = [
    "get_geographic_markers",
    "get_top_cities_by_orders",
    "get_top_cities_by_revenue",
]
