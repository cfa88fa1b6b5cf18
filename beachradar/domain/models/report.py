"""Report domain model.

A Report is one anonymous observation of a beach. Reports are created by the
ingestion gate, read many times by the consensus engine and eventually removed
by the retention job. They are never modified once persisted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from types import MappingProxyType
from typing import Union
from uuid import UUID, uuid4

MAX_LOCATION_ID_LENGTH = 96
MAX_REPORTER_HASH_LENGTH = 128

# Marketing/source tags that may travel with a report. Anything else is dropped.
ATTRIBUTION_ALLOWED_KEYS: tuple[str, ...] = (
    "v",
    "src",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "first_seen_at",
    "last_seen_at",
)

AttributionValue = Union[str, int, float, bool]


class CrowdLevel(IntEnum):
    """How crowded the beach is. Higher is more crowded."""

    EMPTY = 1
    MODERATE = 2
    BUSY = 3
    PACKED = 4


class WaterCondition(IntEnum):
    """State of the water. Higher is rougher."""

    CALM = 1
    LIGHT_WAVES = 2
    ROUGH = 3
    DANGEROUS = 4


class BeachCondition(IntEnum):
    """Cleanliness of the beach. Higher is worse."""

    CLEAN = 1
    FAIR = 2
    DIRTY = 3


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def _freeze(attribution: Mapping[str, AttributionValue] | None) -> Mapping[str, AttributionValue]:
    return MappingProxyType(dict(attribution or {}))


@dataclass(frozen=True, eq=True)
class Report:
    """One user observation of a location.

    Attributes:
        id: Server-assigned unique identifier.
        location_id: Beach identifier (1-96 characters).
        crowd_level: Reported crowd level.
        reporter_hash: Pseudonymous per-device identifier (1-128 characters).
        created_at: Server timestamp of acceptance (timezone aware).
        water_condition: Optional water reading.
        beach_condition: Optional beach reading.
        attribution: Allow-listed source tags, read only.
        network_origin: Coarse network of the submitting client.
        user_agent: Truncated client agent string.
    """

    id: UUID
    location_id: str
    crowd_level: CrowdLevel
    reporter_hash: str
    created_at: datetime
    water_condition: WaterCondition | None = None
    beach_condition: BeachCondition | None = None
    attribution: Mapping[str, AttributionValue] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )
    network_origin: str | None = field(default=None, compare=False)
    user_agent: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Validate invariants and freeze the attribution mapping."""
        if not self.location_id or len(self.location_id) > MAX_LOCATION_ID_LENGTH:
            raise ValueError(
                f"location_id must be 1-{MAX_LOCATION_ID_LENGTH} characters"
            )
        if not self.reporter_hash or len(self.reporter_hash) > MAX_REPORTER_HASH_LENGTH:
            raise ValueError(
                f"reporter_hash must be 1-{MAX_REPORTER_HASH_LENGTH} characters"
            )
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone aware")
        object.__setattr__(self, "crowd_level", CrowdLevel(self.crowd_level))
        if self.water_condition is not None:
            object.__setattr__(
                self, "water_condition", WaterCondition(self.water_condition)
            )
        if self.beach_condition is not None:
            object.__setattr__(
                self, "beach_condition", BeachCondition(self.beach_condition)
            )
        if not isinstance(self.attribution, MappingProxyType):
            object.__setattr__(self, "attribution", _freeze(self.attribution))

    @classmethod
    def create(
        cls,
        location_id: str,
        crowd_level: CrowdLevel,
        reporter_hash: str,
        water_condition: WaterCondition | None = None,
        beach_condition: BeachCondition | None = None,
        attribution: Mapping[str, AttributionValue] | None = None,
        network_origin: str | None = None,
        user_agent: str | None = None,
        created_at: datetime | None = None,
    ) -> Report:
        """Build a new report with a fresh id and server timestamp.

        Args:
            location_id: Beach identifier.
            crowd_level: Reported crowd level.
            reporter_hash: Pseudonymous reporter identifier.
            water_condition: Optional water reading.
            beach_condition: Optional beach reading.
            attribution: Already sanitized attribution tags.
            network_origin: Coarse client network.
            user_agent: Client agent string.
            created_at: Override for the server timestamp (defaults to now).

        Returns:
            A new immutable Report.
        """
        return cls(
            id=uuid4(),
            location_id=location_id,
            crowd_level=crowd_level,
            reporter_hash=reporter_hash,
            created_at=created_at or _utc_now(),
            water_condition=water_condition,
            beach_condition=beach_condition,
            attribution=_freeze(attribution),
            network_origin=network_origin,
            user_agent=user_agent,
        )

    def age_minutes(self, now: datetime) -> float:
        """Age of this report in minutes relative to now (may be negative)."""
        return (now - self.created_at).total_seconds() / 60.0
