"""Course reserve workflows: the I/O around the pure grouping, validation
and notification code.
"""

import asyncio
import logging
from typing import Union

from pydantic import ValidationError

from core.integrations.adapter_base import UpstreamError
from core.integrations.ils import ILSConnector
from core.integrations.mailer import Mailer
from core.integrations.solr import SolrClient
from patterns.domain_config import ServiceConfig
from verticals.availability.catalog import fetch_catalog_record
from verticals.availability.models.schemas import Claims
from verticals.reserves.grouping import group_by_course, group_by_instructor
from verticals.reserves.models.schemas import (
    CourseGroup,
    InstructorGroup,
    ReserveRecord,
    ReserveRequest,
    SearchType,
    ValidationResult,
)
from verticals.reserves.notifications import (
    PreparedItem,
    build_emails,
    item_url,
    parse_availability_summary,
    partition,
)
from verticals.reserves.validation import ids_to_recheck, parse_validation_rows, reclassify

logger = logging.getLogger(__name__)

SEARCH_ROWS = 5000
INSTRUCTOR_FIELD = "reserve_instructor_tl"
COURSE_FIELD = "reserve_id_a"


def reserve_query(search_type: SearchType, query: str) -> str:
    """Solr ``q`` for a reserve search; a trailing wildcard is added when absent."""
    value = query if "*" in query else f"{query}*"
    if search_type == SearchType.INSTRUCTOR_NAME:
        return f"{INSTRUCTOR_FIELD}:{value}"
    # course ids are indexed upper case
    value = value.upper().replace(" ", "\\ ")
    return f"{COURSE_FIELD}:{value}"


async def search_reserves(
    solr: SolrClient,
    search_type: SearchType,
    query: str,
) -> Union[list[InstructorGroup], list[CourseGroup]]:
    response = await solr.select(
        reserve_query(search_type, query),
        ReserveRecord.field_list(),
        rows=SEARCH_ROWS,
    )
    records = []
    for doc in response.get("docs") or []:
        try:
            records.append(ReserveRecord.model_validate(doc))
        except ValidationError as exc:
            logger.error("Skipping unparseable reserve record: %s", exc)
    logger.info("Found [%d] matches", response.get("numFound", len(records)))

    if search_type == SearchType.INSTRUCTOR_NAME:
        return group_by_instructor(query, records)
    return group_by_course(query, records)


async def validate_reserves(
    ils: ILSConnector,
    solr: SolrClient,
    ids: list[str],
    claims: Claims,
    token: str,
) -> list[ValidationResult]:
    """ILS eligibility, corrected for streaming video the ILS cannot see.

    Raises UpstreamError when the ILS call fails and ValidationPayloadError
    when its answer cannot be read.
    """
    logger.info("Validate course reserve items %s", ids)
    rows = parse_validation_rows(await ils.validate_reserves(ids, token))

    recheck = ids_to_recheck(rows, claims)
    if recheck:
        logger.info("Check if any of %d item(s) are streaming video", len(recheck))
    records = await asyncio.gather(*(fetch_catalog_record(solr, rid) for rid in recheck))
    return reclassify(rows, claims, dict(zip(recheck, records)))


async def prepare_item(ils: ILSConnector, virgo_url: str, item, token: str) -> PreparedItem:
    logger.info("Check if item %s is available for course reserve", item.catalog_key)
    try:
        raw = await ils.get_reserve_summary(item.catalog_key, token)
    except UpstreamError as err:
        logger.warning("Unable to get availability info for reserve %s: %s", item.catalog_key, err.message)
        raw = None
    return PreparedItem(
        item=item,
        virgo_url=item_url(virgo_url, item),
        availability=parse_availability_summary(raw),
    )


async def create_reserves(
    ils: ILSConnector,
    mailer: Mailer,
    request: ReserveRequest,
    settings: ServiceConfig,
    token: str,
) -> int:
    """Send the reserve emails for *request*; returns how many were sent.

    Any render or delivery failure propagates and stops the remaining sends.
    """
    logger.info("Received request to create new course reserves")
    prepared = await asyncio.gather(
        *(prepare_item(ils, settings.virgo_url, item, token) for item in request.items)
    )
    buckets = partition(list(prepared))
    emails = build_emails(request, buckets, settings.reserves, settings.smtp.sender)
    for email in emails:
        await mailer.send_async(email)
    return len(emails)
