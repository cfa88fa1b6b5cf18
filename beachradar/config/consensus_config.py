"""Consensus engine tuning loaded from the environment.

Environment Variables:
- CONSENSUS_TTL_MINUTES: Report TTL (default: 30)
- CONSENSUS_DECAY_MINUTES: Decay divisor (default: 18)
- CONSENSUS_LIVE_MINUTES: LIVE threshold (default: 5)
- CONSENSUS_RECENCY_HORIZON_MINUTES: Recency boost horizon (default: 45)
- CONSENSUS_VOLUME_SATURATION: Reports for a full volume boost (default: 10)
- CONSENSUS_CONFIDENCE_FLOOR: Base confidence (default: 0.15)
- CONSENSUS_AGREEMENT_WEIGHT: Agreement weight (default: 0.55)
- CONSENSUS_VOLUME_WEIGHT: Volume weight (default: 0.20)
- CONSENSUS_RECENCY_WEIGHT: Recency weight (default: 0.10)
"""

from __future__ import annotations

from beachradar.config._env import get_float_env, get_int_env
from beachradar.domain.models.consensus import (
    DEFAULT_CONSENSUS_PARAMETERS as _DEFAULTS,
    ConsensusParameters,
)


def load_consensus_parameters() -> ConsensusParameters:
    """Build ConsensusParameters from environment variables with defaults.

    Returns:
        ConsensusParameters instance.

    Raises:
        ValueError: If the combined values are inconsistent.
    """
    return ConsensusParameters(
        ttl_minutes=get_float_env("CONSENSUS_TTL_MINUTES", _DEFAULTS.ttl_minutes),
        decay_minutes=get_float_env("CONSENSUS_DECAY_MINUTES", _DEFAULTS.decay_minutes),
        live_threshold_minutes=get_float_env(
            "CONSENSUS_LIVE_MINUTES", _DEFAULTS.live_threshold_minutes
        ),
        recency_horizon_minutes=get_float_env(
            "CONSENSUS_RECENCY_HORIZON_MINUTES", _DEFAULTS.recency_horizon_minutes
        ),
        volume_saturation_reports=get_int_env(
            "CONSENSUS_VOLUME_SATURATION", _DEFAULTS.volume_saturation_reports, minimum=1
        ),
        confidence_floor=get_float_env(
            "CONSENSUS_CONFIDENCE_FLOOR", _DEFAULTS.confidence_floor
        ),
        agreement_weight=get_float_env(
            "CONSENSUS_AGREEMENT_WEIGHT", _DEFAULTS.agreement_weight
        ),
        volume_weight=get_float_env("CONSENSUS_VOLUME_WEIGHT", _DEFAULTS.volume_weight),
        recency_weight=get_float_env("CONSENSUS_RECENCY_WEIGHT", _DEFAULTS.recency_weight),
    )
