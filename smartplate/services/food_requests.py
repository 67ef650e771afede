"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Thu Feb 05 2026
# SPDX-License-Identifier: MIT
"""

from typing import Any, Iterable, List, Optional, Tuple

from smartplate.db.models import AppRole, FoodRequestStatus, UrgencyLevel
from smartplate.utils.geo import coordinates_of, distance

NO_LONGER_AVAILABLE = "This request is no longer available"

URGENCY_PRIORITY = {
    UrgencyLevel.CRITICAL: 0,
    UrgencyLevel.HIGH: 1,
    UrgencyLevel.NORMAL: 2,
    UrgencyLevel.LOW: 3,
}

# (from, to) -> roles allowed to perform the transition
TRANSITIONS = {
    (FoodRequestStatus.PENDING, FoodRequestStatus.APPROVED): {AppRole.ADMIN},
    (FoodRequestStatus.PENDING, FoodRequestStatus.CANCELLED): {AppRole.ADMIN},
    (FoodRequestStatus.APPROVED, FoodRequestStatus.CANCELLED): {AppRole.ADMIN},
    (FoodRequestStatus.APPROVED, FoodRequestStatus.MATCHED): {AppRole.DONOR},
    (FoodRequestStatus.MATCHED, FoodRequestStatus.IN_PROGRESS): {AppRole.VOLUNTEER},
    (FoodRequestStatus.IN_PROGRESS, FoodRequestStatus.COMPLETED): {AppRole.VOLUNTEER, AppRole.ADMIN},
}

# Statuses each role may read, besides NGOs reading their own requests
VISIBLE_STATUSES = {
    AppRole.DONOR: (
        FoodRequestStatus.APPROVED,
        FoodRequestStatus.MATCHED,
        FoodRequestStatus.IN_PROGRESS,
        FoodRequestStatus.COMPLETED,
    ),
    AppRole.VOLUNTEER: (
        FoodRequestStatus.MATCHED,
        FoodRequestStatus.IN_PROGRESS,
        FoodRequestStatus.COMPLETED,
    ),
}

TERMINAL_STATUSES = (FoodRequestStatus.COMPLETED, FoodRequestStatus.CANCELLED)


def can_transition(current: FoodRequestStatus, target: FoodRequestStatus, role: AppRole) -> bool:
    return role in TRANSITIONS.get((FoodRequestStatus(current), FoodRequestStatus(target)), set())


def allowed_targets(current: FoodRequestStatus, role: AppRole) -> List[FoodRequestStatus]:
    return [
        target for (source, target), roles in TRANSITIONS.items()
        if source == FoodRequestStatus(current) and role in roles
    ]


def urgency_priority(urgency: Any) -> int:
    return URGENCY_PRIORITY[UrgencyLevel(urgency)]


def _urgency_of(item: Any):
    if isinstance(item, dict):
        return item["urgency_level"]
    return item.urgency_level


def ranking_key(urgency: Any, distance_km: Optional[float]) -> Tuple[int, int, float]:
    """
    Sort key: urgency first (critical before low), then nearest first, with
    unknown distances after known ones.
    """
    if distance_km is None:
        return urgency_priority(urgency), 1, 0.0
    return urgency_priority(urgency), 0, distance_km


def rank_requests(
    requests: Iterable[Any], ref_lat: Optional[float] = None, ref_lng: Optional[float] = None
) -> List[Tuple[Any, Optional[float]]]:
    """
    Pairs each request with its distance from the viewer (None when either side lacks
    coordinates) and orders them by urgency, then distance. The sort is stable.
    """
    ranked = []
    for request in requests:
        distance_km = None
        coords = coordinates_of(request)
        if coords is not None and ref_lat is not None and ref_lng is not None:
            distance_km = distance(ref_lat, ref_lng, coords[0], coords[1])
        ranked.append((request, distance_km))
    ranked.sort(key=lambda entry: ranking_key(_urgency_of(entry[0]), entry[1]))
    return ranked
