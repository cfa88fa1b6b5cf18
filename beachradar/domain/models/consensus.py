"""Consensus snapshot domain model.

A ConsensusSnapshot is the derived, never persisted summary of one location's
current crowd state. It is a pure function of the location's reports and the
evaluation time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from beachradar.domain.models.report import BeachCondition, CrowdLevel, WaterCondition


class FreshnessState(str, Enum):
    """How fresh the consensus is.

    States:
        LIVE: The latest report is only a few minutes old.
        RECENT: Reports exist but are aging.
        PRED: No usable reports; the crowd level is a baseline guess.
    """

    LIVE = "LIVE"
    RECENT = "RECENT"
    PRED = "PRED"


@dataclass(frozen=True)
class ConsensusParameters:
    """Tuning constants for the consensus engine.

    These are product choices rather than measured targets, so every one of
    them can be overridden through configuration.

    Attributes:
        ttl_minutes: Reports older than this are ignored.
        decay_minutes: Divisor of the exponential decay exp(-age/decay).
        live_threshold_minutes: Latest report age at or below which state is LIVE.
        recency_horizon_minutes: Age at which the recency boost reaches zero.
        volume_saturation_reports: Active report count giving a full volume boost.
        confidence_floor: Base confidence, also the fixed PRED confidence.
        agreement_weight: Weight of the agreement ratio.
        volume_weight: Weight of the volume boost.
        recency_weight: Weight of the recency boost.
        baseline_level: Crowd level reported when there is no data.
    """

    ttl_minutes: float = 30.0
    decay_minutes: float = 18.0
    live_threshold_minutes: float = 5.0
    recency_horizon_minutes: float = 45.0
    volume_saturation_reports: int = 10
    confidence_floor: float = 0.15
    agreement_weight: float = 0.55
    volume_weight: float = 0.20
    recency_weight: float = 0.10
    baseline_level: CrowdLevel = CrowdLevel.EMPTY

    def __post_init__(self) -> None:
        """Validate parameter values."""
        if self.ttl_minutes <= 0:
            raise ValueError(f"ttl_minutes must be positive, got {self.ttl_minutes}")
        if self.decay_minutes <= 0:
            raise ValueError(
                f"decay_minutes must be positive, got {self.decay_minutes}"
            )
        if not 0 <= self.live_threshold_minutes <= self.ttl_minutes:
            raise ValueError(
                f"live_threshold_minutes ({self.live_threshold_minutes}) must be "
                f"between 0 and ttl_minutes ({self.ttl_minutes})"
            )
        if self.recency_horizon_minutes <= 0:
            raise ValueError(
                "recency_horizon_minutes must be positive, "
                f"got {self.recency_horizon_minutes}"
            )
        if self.volume_saturation_reports < 1:
            raise ValueError(
                "volume_saturation_reports must be at least 1, "
                f"got {self.volume_saturation_reports}"
            )
        for name in (
            "confidence_floor",
            "agreement_weight",
            "volume_weight",
            "recency_weight",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be within [0, 1], got {value}")


DEFAULT_CONSENSUS_PARAMETERS = ConsensusParameters()


@dataclass(frozen=True)
class ConsensusSnapshot:
    """Consensus for one location at one instant.

    Attributes:
        location_id: Location the snapshot describes.
        crowd_level: Winning crowd level (baseline when there is no data).
        state: Freshness classification.
        confidence: Confidence score within [0, 1].
        reports_count: Number of reports that survived the TTL filter.
        updated_at: Timestamp of the latest contributing report, if any.
        water_condition: Winning water reading, if any report supplied one.
        beach_condition: Winning beach reading, if any report supplied one.
    """

    location_id: str
    crowd_level: CrowdLevel
    state: FreshnessState
    confidence: float
    reports_count: int
    updated_at: datetime | None = None
    water_condition: WaterCondition | None = None
    beach_condition: BeachCondition | None = None
