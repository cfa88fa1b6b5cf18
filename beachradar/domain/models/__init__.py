"""Domain models for Beach Radar."""

from beachradar.domain.models.consensus import (
    DEFAULT_CONSENSUS_PARAMETERS,
    ConsensusParameters,
    ConsensusSnapshot,
    FreshnessState,
)
from beachradar.domain.models.report import (
    ATTRIBUTION_ALLOWED_KEYS,
    BeachCondition,
    CrowdLevel,
    Report,
    WaterCondition,
)

__all__: list[str] = [
    "ATTRIBUTION_ALLOWED_KEYS",
    "BeachCondition",
    "ConsensusParameters",
    "ConsensusSnapshot",
    "CrowdLevel",
    "DEFAULT_CONSENSUS_PARAMETERS",
    "FreshnessState",
    "Report",
    "WaterCondition",
]
