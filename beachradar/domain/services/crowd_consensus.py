"""Time-decayed crowd consensus engine.

Turns the recent reports of one location into a single ConsensusSnapshot:

1. Recency filter: reports older than the TTL are dropped.
2. Decay weighting: each survivor weighs exp(-age_minutes / decay_minutes).
3. Per-axis weighted vote: the value with the highest summed weight wins,
   ties go to the numerically higher (more severe) value.
4. Confidence: floor + agreement, volume and recency contributions.
5. Freshness: LIVE, RECENT, or PRED when nothing survived.

Every function here is pure. Input order is never trusted: reports are sorted
by recency inside the engine before the TTL scan stops at the first expired
report.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import TypeVar

from beachradar.domain.models.consensus import (
    DEFAULT_CONSENSUS_PARAMETERS,
    ConsensusParameters,
    ConsensusSnapshot,
    FreshnessState,
)
from beachradar.domain.models.report import (
    BeachCondition,
    CrowdLevel,
    Report,
    WaterCondition,
)

LevelT = TypeVar("LevelT", bound=IntEnum)


@dataclass(frozen=True)
class AxisVote:
    """Outcome of a weighted vote on one axis.

    Attributes:
        value: Winning value.
        winning_weight: Summed weight behind the winner.
        total_weight: Summed weight of all votes on this axis.
    """

    value: IntEnum
    winning_weight: float
    total_weight: float

    @property
    def agreement(self) -> float:
        """Fraction of the total weight held by the winner."""
        if self.total_weight <= 0:
            return 0.0
        return self.winning_weight / self.total_weight


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def decay_weight(
    age_minutes: float,
    decay_minutes: float = DEFAULT_CONSENSUS_PARAMETERS.decay_minutes,
) -> float:
    """Exponential decay weight of a report of the given age.

    Ages below zero (clock skew between writers) count as brand new.

    Args:
        age_minutes: Report age in minutes.
        decay_minutes: Decay divisor (18 by default).

    Returns:
        Weight in (0, 1].
    """
    return math.exp(-max(0.0, age_minutes) / decay_minutes)


def sort_by_recency(reports: Iterable[Report]) -> list[Report]:
    """Return reports newest first; ties ordered by id for determinism."""
    return sorted(
        reports,
        key=lambda report: (report.created_at, str(report.id)),
        reverse=True,
    )


def _active_from_sorted(
    ordered: Sequence[Report], now: datetime, ttl_minutes: float
) -> list[Report]:
    active: list[Report] = []
    for report in ordered:
        if report.age_minutes(now) > ttl_minutes:
            # Sorted newest first, everything after this is older still.
            break
        active.append(report)
    return active


def active_reports(
    reports: Iterable[Report],
    now: datetime,
    params: ConsensusParameters = DEFAULT_CONSENSUS_PARAMETERS,
) -> list[Report]:
    """Reports within the TTL, newest first.

    Args:
        reports: Reports in any order.
        now: Evaluation time.
        params: Consensus parameters (TTL).

    Returns:
        Surviving reports sorted by descending recency.
    """
    return _active_from_sorted(sort_by_recency(reports), now, params.ttl_minutes)


def weighted_vote(
    votes: Iterable[tuple[LevelT | None, float]],
    candidates: Iterable[LevelT],
) -> AxisVote | None:
    """Pick the value with the highest summed weight.

    Ties are broken in favour of the numerically higher value.

    Args:
        votes: (value, weight) pairs; None values are abstentions.
        candidates: All values the axis can take.

    Returns:
        AxisVote, or None if no vote carried any weight.
    """
    totals: dict[LevelT, float] = defaultdict(float)
    total_weight = 0.0
    for value, weight in votes:
        if value is None:
            continue
        totals[value] += weight
        total_weight += weight

    if total_weight <= 0:
        return None

    ordered = sorted(candidates)
    best_value = ordered[0]
    best_weight = totals.get(best_value, 0.0)
    for candidate in ordered[1:]:
        weight = totals.get(candidate, 0.0)
        if weight >= best_weight:
            best_value = candidate
            best_weight = weight

    return AxisVote(
        value=best_value,
        winning_weight=best_weight,
        total_weight=total_weight,
    )


def compute_confidence(
    agreement: float,
    active_count: int,
    minutes_since_latest: float,
    params: ConsensusParameters = DEFAULT_CONSENSUS_PARAMETERS,
) -> float:
    """Confidence score in [0, 1].

    floor + agreement_weight * agreement
          + volume_weight * min(1, n / volume_saturation_reports)
          + recency_weight * clamp(1 - minutes / recency_horizon, 0, 1)
    """
    volume_boost = min(1.0, active_count / params.volume_saturation_reports)
    recency_boost = _clamp(
        1.0 - minutes_since_latest / params.recency_horizon_minutes, 0.0, 1.0
    )
    return _clamp(
        params.confidence_floor
        + params.agreement_weight * agreement
        + params.volume_weight * volume_boost
        + params.recency_weight * recency_boost,
        0.0,
        1.0,
    )


def classify_freshness(
    minutes_since_latest: float,
    params: ConsensusParameters = DEFAULT_CONSENSUS_PARAMETERS,
) -> FreshnessState:
    """LIVE when the latest surviving report is recent enough, else RECENT."""
    if minutes_since_latest <= params.live_threshold_minutes:
        return FreshnessState.LIVE
    return FreshnessState.RECENT


def _baseline_snapshot(
    location_id: str, params: ConsensusParameters
) -> ConsensusSnapshot:
    return ConsensusSnapshot(
        location_id=location_id,
        crowd_level=params.baseline_level,
        state=FreshnessState.PRED,
        confidence=params.confidence_floor,
        reports_count=0,
    )


def _snapshot_from_sorted(
    location_id: str,
    ordered: Sequence[Report],
    now: datetime,
    params: ConsensusParameters,
) -> ConsensusSnapshot:
    active = _active_from_sorted(ordered, now, params.ttl_minutes)
    if not active:
        return _baseline_snapshot(location_id, params)

    weights = [
        decay_weight(report.age_minutes(now), params.decay_minutes)
        for report in active
    ]

    crowd = weighted_vote(
        ((report.crowd_level, w) for report, w in zip(active, weights)),
        CrowdLevel,
    )
    water = weighted_vote(
        ((report.water_condition, w) for report, w in zip(active, weights)),
        WaterCondition,
    )
    beach = weighted_vote(
        ((report.beach_condition, w) for report, w in zip(active, weights)),
        BeachCondition,
    )

    latest = active[0]
    minutes_since_latest = max(0.0, latest.age_minutes(now))
    agreement = crowd.agreement if crowd is not None else 0.0

    return ConsensusSnapshot(
        location_id=location_id,
        crowd_level=CrowdLevel(crowd.value) if crowd else params.baseline_level,
        state=classify_freshness(minutes_since_latest, params),
        confidence=compute_confidence(
            agreement, len(active), minutes_since_latest, params
        ),
        reports_count=len(active),
        updated_at=latest.created_at,
        water_condition=WaterCondition(water.value) if water else None,
        beach_condition=BeachCondition(beach.value) if beach else None,
    )


def compute_consensus(
    location_id: str,
    reports: Iterable[Report],
    now: datetime,
    params: ConsensusParameters = DEFAULT_CONSENSUS_PARAMETERS,
) -> ConsensusSnapshot:
    """Compute the consensus snapshot for one location.

    Reports for other locations are ignored, so the full feed can be passed
    in. For many locations prefer compute_consensus_by_location, which groups
    the feed once.

    Args:
        location_id: Location to summarize.
        reports: Reports in any order.
        now: Evaluation time (timezone aware).
        params: Consensus parameters.

    Returns:
        The ConsensusSnapshot for (location_id, now).
    """
    ordered = sort_by_recency(
        report for report in reports if report.location_id == location_id
    )
    return _snapshot_from_sorted(location_id, ordered, now, params)


def group_reports_by_location(reports: Iterable[Report]) -> dict[str, list[Report]]:
    """Group reports by location in a single pass, each list newest first."""
    grouped: dict[str, list[Report]] = defaultdict(list)
    for report in reports:
        grouped[report.location_id].append(report)
    return {
        location_id: sort_by_recency(items) for location_id, items in grouped.items()
    }


def compute_consensus_by_location(
    reports: Iterable[Report],
    now: datetime,
    location_ids: Iterable[str] | None = None,
    params: ConsensusParameters = DEFAULT_CONSENSUS_PARAMETERS,
) -> dict[str, ConsensusSnapshot]:
    """Compute snapshots for many locations from one batch of reports.

    Args:
        reports: Reports for any number of locations.
        now: Evaluation time.
        location_ids: Locations to summarize. Defaults to every location that
            appears in reports. Requested locations without reports get a
            PRED snapshot.
        params: Consensus parameters.

    Returns:
        Mapping of location id to snapshot.
    """
    grouped = group_reports_by_location(reports)
    wanted = sorted(grouped) if location_ids is None else list(dict.fromkeys(location_ids))
    return {
        location_id: _snapshot_from_sorted(
            location_id, grouped.get(location_id, []), now, params
        )
        for location_id in wanted
    }
