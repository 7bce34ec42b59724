"""Reserve request emails.

Requested items are split into video and non-video buckets; each
non-empty bucket becomes one message. Who receives it depends on the
reserve library: the law library handles its own reserves and copies the
requester, every other library goes through the general reserve mailbox.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

import verticals.reserves.renderer  # noqa: F401  registers the email templates
from core.engine.template_engine import TemplateEngine
from core.integrations.mailer import OutboundEmail
from patterns.domain_config import ReserveConfig
from verticals.reserves.models.schemas import (
    AvailabilitySummary,
    RequestItem,
    ReserveRequest,
)

logger = logging.getLogger(__name__)

NON_VIDEO_TEMPLATE = "reserves.txt"
VIDEO_TEMPLATE = "reserves_video.txt"

_SUMMARY_FIELDS = {
    "Library": "library",
    "Availability": "availability",
    "Current Location": "location",
    "Call Number": "call_number",
}


@dataclass
class PreparedItem:
    """A requested item plus what the ILS says about its copies."""

    item: RequestItem
    virgo_url: str
    availability: list[AvailabilitySummary] = field(default_factory=list)


@dataclass
class ReserveBuckets:
    non_video: list[PreparedItem] = field(default_factory=list)
    video: list[PreparedItem] = field(default_factory=list)

    @property
    def max_availability(self) -> int:
        counts = [len(p.availability) for p in self.non_video + self.video]
        return max(counts, default=0)


def parse_availability_summary(raw: Optional[bytes]) -> list[AvailabilitySummary]:
    """Flatten ``{availability:{items:[{fields:[{name,value}]}]}}`` to summaries."""
    if not raw:
        return []
    try:
        payload = json.loads(raw)
        items = payload["availability"]["items"] or []
    except (ValueError, KeyError, TypeError) as exc:
        logger.warning("Invalid ILS availability response: %s", exc)
        return []

    out = []
    for entry in items:
        if not isinstance(entry, dict):
            continue
        values = {}
        for fld in entry.get("fields") or []:
            if not isinstance(fld, dict):
                continue
            attr = _SUMMARY_FIELDS.get(fld.get("name"))
            if attr:
                values[attr] = str(fld.get("value") or "")
        out.append(AvailabilitySummary(**values))
    return out


def item_url(virgo_url: str, item: RequestItem) -> str:
    return f"{virgo_url}/sources/{item.pool}/items/{item.catalog_key}"


def partition(prepared: list[PreparedItem]) -> ReserveBuckets:
    buckets = ReserveBuckets()
    for p in prepared:
        if p.item.is_video:
            logger.info("%s : %s is a video", p.item.catalog_key, p.item.title)
            buckets.video.append(p)
        else:
            logger.info("%s : %s is not a video", p.item.catalog_key, p.item.title)
            buckets.non_video.append(p)
    return buckets


@dataclass(frozen=True)
class Routing:
    to: list[str]
    from_addr: str
    cc: str
    subject_name: str


def route(request: ReserveRequest, reserves: ReserveConfig, sender: str) -> Routing:
    params = request.request
    if params.library == reserves.law_library:
        to = [reserves.law_reserve_email, params.email]
        if params.instructor_email:
            to.append(params.instructor_email)
        logger.info("Reserve library is law; sending to %s from %s", to, sender)
        return Routing(to=to, from_addr=sender, cc="", subject_name=params.name)

    to = [reserves.course_reserve_email]
    if params.instructor_email:
        return Routing(
            to=to,
            from_addr=params.instructor_email,
            cc=params.email,
            subject_name=params.instructor_name,
        )
    return Routing(to=to, from_addr=params.email, cc="", subject_name=params.name)


def build_emails(
    request: ReserveRequest,
    buckets: ReserveBuckets,
    reserves: ReserveConfig,
    sender: str,
) -> list[OutboundEmail]:
    """One email per non-empty bucket, non-video first.

    Raises TemplateRenderError when a body cannot be rendered.
    """
    routing = route(request, reserves, sender)
    params = request.request
    subject = f"{params.semester} - {routing.subject_name}: {params.course}"

    emails = []
    for template, items in ((NON_VIDEO_TEMPLATE, buckets.non_video), (VIDEO_TEMPLATE, buckets.video)):
        if not items:
            continue
        body = TemplateEngine.render(
            template,
            {
                "request": params,
                "user_id": request.user_id,
                "items": items,
                "max_availability": buckets.max_availability,
            },
        )
        logger.info("Generate SMTP message for %s", template)
        emails.append(
            OutboundEmail(
                subject=subject,
                to=list(routing.to),
                cc=routing.cc,
                from_addr=routing.from_addr,
                body=body,
            )
        )
    return emails
