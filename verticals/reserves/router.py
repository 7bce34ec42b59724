"""Course reserves API router.

- GET  /search    browse reserves by instructor name or course id prefix
- POST /validate  reserve eligibility for a list of catalog ids
- POST /          email a reserve request to the reserve desk
"""

import logging
import smtplib

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from api.dependencies import get_ils, get_mailer, get_settings, get_solr
from api.middleware import get_current_token, require_claims
from core.engine.template_engine import TemplateRenderError
from core.integrations.adapter_base import UpstreamError
from core.integrations.ils import ILSConnector
from core.integrations.mailer import Mailer
from core.integrations.solr import SolrClient
from patterns.domain_config import ServiceConfig
from verticals.availability.models.schemas import Claims
from verticals.reserves.models.schemas import (
    ReserveRequest,
    SearchType,
    ValidateRequest,
    ValidationResult,
)
from verticals.reserves.service import create_reserves, search_reserves, validate_reserves
from verticals.reserves.validation import ValidationPayloadError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search")
async def search(
    search_type: str = Query("", alias="type"),
    query: str = Query(""),
    claims: Claims = Depends(require_claims),
    solr: SolrClient = Depends(get_solr),
):
    """Instructor -> courses -> items, or course -> instructors -> items."""
    try:
        kind = SearchType(search_type)
    except ValueError:
        logger.error("Invalid course reserves search type: %s", search_type)
        raise HTTPException(status_code=400, detail=f"{search_type} is not a valid search type")

    logger.info("User [%s] is searching course reserves [%s] for [%s]", claims.user_id, kind.value, query)
    try:
        groups = await search_reserves(solr, kind, query)
    except UpstreamError as err:
        logger.error("Solr course reserves search failed: %s", err.message)
        groups = []
    return [g.model_dump(by_alias=True) for g in groups]


@router.post("/validate", response_model=list[ValidationResult])
async def validate(
    request: ValidateRequest,
    claims: Claims = Depends(require_claims),
    ils: ILSConnector = Depends(get_ils),
    solr: SolrClient = Depends(get_solr),
):
    """Reserve eligibility and video flag per catalog id."""
    try:
        return await validate_reserves(ils, solr, request.items, claims, get_current_token())
    except UpstreamError as err:
        raise HTTPException(status_code=err.status_code, detail=err.message)
    except ValidationPayloadError as err:
        raise HTTPException(status_code=500, detail=str(err))


@router.post("", response_class=PlainTextResponse)
async def create(
    request: ReserveRequest,
    claims: Claims = Depends(require_claims),
    ils: ILSConnector = Depends(get_ils),
    mailer: Mailer = Depends(get_mailer),
    settings: ServiceConfig = Depends(get_settings),
):
    """Email the reserve desk; video and non-video items go in separate messages."""
    try:
        sent = await create_reserves(ils, mailer, request, settings, get_current_token())
    except TemplateRenderError as err:
        logger.error("Unable to render reserve email: %s", err)
        raise HTTPException(status_code=500, detail=str(err))
    except (smtplib.SMTPException, OSError) as err:
        logger.error("Unable to send reserve email: %s", err)
        raise HTTPException(status_code=500, detail=str(err))
    logger.info("Sent %d reserve email(s) for %s", sent, claims.user_id)
    return "Reserve emails sent"
