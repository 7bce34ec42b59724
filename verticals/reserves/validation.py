"""Course reserve eligibility.

The ILS connector decides reserve eligibility from circulation data alone
and misses streaming video. Rows it rejects or marks non-video get a
second look against the catalog record, using the same streaming-video
signal as the availability pipeline.
"""

import json
import logging
from typing import Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from verticals.availability.models.schemas import CatalogRecord, Claims
from verticals.availability.rules import is_streaming_video
from verticals.reserves.models.schemas import ValidationResult

logger = logging.getLogger(__name__)

_RESULTS = TypeAdapter(list[ValidationResult])


class ValidationPayloadError(ValueError):
    """The ILS connector returned something other than validation rows."""


def parse_validation_rows(raw: bytes) -> list[ValidationResult]:
    try:
        return _RESULTS.validate_python(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        logger.error("Unable to parse reserve validation response: %s", exc)
        raise ValidationPayloadError(str(exc)) from exc


def needs_catalog_check(row: ValidationResult) -> bool:
    return not row.reserve or not row.is_video


def ids_to_recheck(rows: list[ValidationResult], claims: Claims) -> list[str]:
    """Ids whose classification the catalog may overturn for this caller."""
    if not claims.can_place_reserve:
        return []
    return [row.id for row in rows if needs_catalog_check(row)]


def reclassify(
    rows: list[ValidationResult],
    claims: Claims,
    records: Mapping[str, Optional[CatalogRecord]],
) -> list[ValidationResult]:
    """Mark streaming videos eligible. Input rows are not modified."""
    if not claims.can_place_reserve:
        return list(rows)

    out = []
    for row in rows:
        record = records.get(row.id)
        if needs_catalog_check(row) and record is not None and is_streaming_video(record):
            logger.info("%s is a video", row.id)
            row = row.model_copy(update={"reserve": True, "is_video": True})
        out.append(row)
    return out
