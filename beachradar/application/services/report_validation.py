"""Report submission validation.

Everything here runs before any I/O and fails fast with a
ReportValidationError carrying the client-facing error code. The order of
checks is fixed: body, location id, crowd level, reporter hash, optional
condition axes. Attribution is sanitized, never rejected.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, TypeVar

from beachradar.config.report_config import (
    DEFAULT_REPORT_INGESTION_CONFIG,
    ReportIngestionConfig,
)
from beachradar.domain.errors.validation import (
    INVALID_BEACH_CONDITION,
    INVALID_BODY,
    INVALID_CROWD_LEVEL,
    INVALID_LOCATION_ID,
    INVALID_REPORTER_HASH,
    INVALID_WATER_CONDITION,
    PAYLOAD_TOO_LARGE,
    ReportValidationError,
)
from beachradar.domain.models.report import (
    ATTRIBUTION_ALLOWED_KEYS,
    AttributionValue,
    BeachCondition,
    CrowdLevel,
    WaterCondition,
)

LevelT = TypeVar("LevelT", bound=IntEnum)

# Older clients send beachId instead of locationId
LOCATION_ID_KEYS: tuple[str, ...] = ("locationId", "beachId")


@dataclass(frozen=True)
class ReportSubmission:
    """A submission that passed validation, ready to become a Report.

    Attributes:
        location_id: Trimmed location id.
        crowd_level: Decoded crowd level.
        reporter_hash: Trimmed reporter hash.
        water_condition: Decoded water reading, if supplied.
        beach_condition: Decoded beach reading, if supplied.
        attribution: Allow-listed attribution tags.
    """

    location_id: str
    crowd_level: CrowdLevel
    reporter_hash: str
    water_condition: WaterCondition | None = None
    beach_condition: BeachCondition | None = None
    attribution: dict[str, AttributionValue] = field(default_factory=dict)


def decode_request_body(
    raw: bytes | None,
    declared_length: int | None = None,
    max_bytes: int = DEFAULT_REPORT_INGESTION_CONFIG.max_body_bytes,
) -> dict[str, Any]:
    """Decode a JSON object body, enforcing the size cap before parsing.

    Args:
        raw: Raw request body.
        declared_length: Content-Length header value, if any.
        max_bytes: Maximum accepted body size.

    Returns:
        The decoded JSON object.

    Raises:
        ReportValidationError: payload_too_large or invalid_body.
    """
    if declared_length is not None and declared_length > max_bytes:
        raise ReportValidationError(
            PAYLOAD_TOO_LARGE, f"Body exceeds {max_bytes} bytes"
        )
    if not raw:
        raise ReportValidationError(INVALID_BODY, "Request body is empty")
    if len(raw) > max_bytes:
        raise ReportValidationError(
            PAYLOAD_TOO_LARGE, f"Body exceeds {max_bytes} bytes"
        )
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError):
        raise ReportValidationError(INVALID_BODY, "Body is not valid JSON") from None
    if not isinstance(parsed, dict):
        raise ReportValidationError(INVALID_BODY, "Body must be a JSON object")
    return parsed


def to_single_string(value: Any) -> str | None:
    """Trimmed non-empty string, or the first such string in a list."""
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, list):
        for item in value:
            if isinstance(item, str) and item.strip():
                return item.strip()
    return None


def _decode_level(value: Any, levels: type[LevelT]) -> LevelT | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        numeric: float | int = value
    elif isinstance(value, float):
        numeric = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            numeric = float(text)
        except ValueError:
            return None
    else:
        return None

    if isinstance(numeric, float):
        if not math.isfinite(numeric) or not numeric.is_integer():
            return None
        numeric = int(numeric)
    try:
        return levels(numeric)
    except ValueError:
        return None


def parse_crowd_level(value: Any) -> CrowdLevel | None:
    """Decode a crowd level from a number or numeric string.

    Booleans, non-integral numbers and values outside 1-4 decode to None.
    """
    return _decode_level(value, CrowdLevel)


def parse_water_condition(value: Any) -> WaterCondition | None:
    """Decode a water condition (1-4), None when invalid."""
    return _decode_level(value, WaterCondition)


def parse_beach_condition(value: Any) -> BeachCondition | None:
    """Decode a beach condition (1-3), None when invalid."""
    return _decode_level(value, BeachCondition)


def sanitize_attribution(value: Any) -> dict[str, AttributionValue]:
    """Keep only allow-listed attribution keys with scalar values.

    Strings are trimmed and dropped when empty; numbers must be finite;
    booleans are kept. Unknown keys and other value types are silently
    dropped.

    Args:
        value: Raw attribution from the request body.

    Returns:
        Sanitized attribution, empty when nothing survived.
    """
    if not isinstance(value, Mapping):
        return {}

    cleaned: dict[str, AttributionValue] = {}
    for key in ATTRIBUTION_ALLOWED_KEYS:
        raw = value.get(key)
        if raw is None:
            continue
        if isinstance(raw, bool):
            cleaned[key] = raw
        elif isinstance(raw, str):
            trimmed = raw.strip()
            if trimmed:
                cleaned[key] = trimmed
        elif isinstance(raw, int):
            cleaned[key] = raw
        elif isinstance(raw, float) and math.isfinite(raw):
            cleaned[key] = raw
    return cleaned


def _optional_axis(
    payload: Mapping[str, Any],
    key: str,
    levels: type[LevelT],
    code: str,
) -> LevelT | None:
    raw = payload.get(key)
    if raw is None:
        return None
    decoded = _decode_level(raw, levels)
    if decoded is None:
        raise ReportValidationError(code, f"{key} must be one of {[int(v) for v in levels]}")
    return decoded


def parse_report_submission(
    payload: Mapping[str, Any],
    config: ReportIngestionConfig = DEFAULT_REPORT_INGESTION_CONFIG,
) -> ReportSubmission:
    """Validate a decoded submission body.

    Args:
        payload: Decoded JSON object.
        config: Ingestion configuration (length limits).

    Returns:
        ReportSubmission with normalized fields.

    Raises:
        ReportValidationError: On the first failing field.
    """
    location_id = None
    for key in LOCATION_ID_KEYS:
        location_id = to_single_string(payload.get(key))
        if location_id is not None:
            break
    if location_id is None or len(location_id) > config.max_location_id_length:
        raise ReportValidationError(
            INVALID_LOCATION_ID,
            f"locationId must be 1-{config.max_location_id_length} characters",
        )

    crowd_level = parse_crowd_level(payload.get("crowdLevel"))
    if crowd_level is None:
        raise ReportValidationError(
            INVALID_CROWD_LEVEL, "crowdLevel must be one of 1, 2, 3, 4"
        )

    reporter_hash = to_single_string(payload.get("reporterHash"))
    if reporter_hash is None or len(reporter_hash) > config.max_reporter_hash_length:
        raise ReportValidationError(
            INVALID_REPORTER_HASH,
            f"reporterHash must be 1-{config.max_reporter_hash_length} characters",
        )

    water_condition = _optional_axis(
        payload, "waterCondition", WaterCondition, INVALID_WATER_CONDITION
    )
    beach_condition = _optional_axis(
        payload, "beachCondition", BeachCondition, INVALID_BEACH_CONDITION
    )

    return ReportSubmission(
        location_id=location_id,
        crowd_level=crowd_level,
        reporter_hash=reporter_hash,
        water_condition=water_condition,
        beach_condition=beach_condition,
        attribution=sanitize_attribution(payload.get("attribution")),
    )
