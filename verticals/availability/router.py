"""Availability API router.

GET /item/{title_id}: the inventory snapshot decorated with catalog
driven request options for the signed-in caller.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_ils, get_maps, get_settings, get_solr
from api.middleware import get_current_token, require_claims
from core.integrations.adapter_base import UpstreamError
from core.integrations.ils import ILSConnector
from core.integrations.solr import SolrClient
from patterns.domain_config import ServiceConfig
from verticals.availability.catalog import fetch_catalog_record
from verticals.availability.maps import MapResolver
from verticals.availability.models.schemas import AvailabilityDocument, Claims
from verticals.availability.pipeline import decorate, parse_snapshot

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/item/{title_id}",
    response_model=AvailabilityDocument,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_availability(
    title_id: str,
    claims: Claims = Depends(require_claims),
    ils: ILSConnector = Depends(get_ils),
    solr: SolrClient = Depends(get_solr),
    maps: MapResolver = Depends(get_maps),
    settings: ServiceConfig = Depends(get_settings),
):
    """Availability for one title, with request options for this caller."""
    logger.info("Getting availability for %s with ILS Connector...", title_id)
    try:
        raw = await ils.get_availability(title_id, get_current_token())
    except UpstreamError as err:
        if err.status_code == 503:
            logger.error("ILS is offline")
            raise HTTPException(
                status_code=503,
                detail="Availability information is currently unavailable. Please try again later.",
            )
        logger.error("ILS Connector failure: %s", err)
        raise HTTPException(
            status_code=err.status_code,
            detail="There was a problem retrieving availability. Please try again later.",
        )

    snapshot = parse_snapshot(raw)
    record = await fetch_catalog_record(solr, title_id)
    return decorate(
        title_id,
        snapshot,
        record,
        claims,
        maps=maps,
        hs_illiad_url=settings.hs_illiad_url,
        aeon_url=settings.aeon_url,
    )
