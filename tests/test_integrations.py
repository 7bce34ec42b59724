"""Test upstream clients against httpx.MockTransport."""
import json
import logging

import httpx
import pytest

from core.integrations.adapter_base import UpstreamError, sanitize_url
from core.integrations.ils import ILSConnector
from core.integrations.mailer import Mailer, OutboundEmail
from core.integrations.solr import SolrClient
from patterns.domain_config import SMTPConfig
from verticals.availability.catalog import fetch_catalog_record


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def solr_with(docs, num_found=None, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        body = {"response": {"numFound": len(docs) if num_found is None else num_found, "docs": docs}}
        return httpx.Response(200, json=body)

    return SolrClient("http://solr", "core", client=mock_client(handler))


def test_sanitize_url():
    assert sanitize_url("http://ils/users/check?id=x&pin=1234") == "http://ils/users/check?id=x&pin=SECRET"
    assert sanitize_url("http://ils/v4/availability/u1") == "http://ils/v4/availability/u1"


@pytest.mark.asyncio
async def test_ils_forwards_bearer_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b'{"availability": {}}')

    ils = ILSConnector("http://ils/", client=mock_client(handler))
    raw = await ils.get_availability("u1", "tok")

    assert raw == b'{"availability": {}}'
    assert str(seen[0].url) == "http://ils/v4/availability/u1"
    assert seen[0].headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_ils_404_is_no_snapshot():
    ils = ILSConnector("http://ils", client=mock_client(lambda r: httpx.Response(404, text="not found")))
    assert await ils.get_availability("u100", "tok") is None


@pytest.mark.asyncio
async def test_ils_status_passes_through():
    ils = ILSConnector("http://ils", client=mock_client(lambda r: httpx.Response(503, text="down")))
    with pytest.raises(UpstreamError) as exc:
        await ils.get_availability("u1", "tok")
    assert exc.value.status_code == 503
    assert exc.value.message == "down"


@pytest.mark.asyncio
async def test_timeout_maps_to_408():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    ils = ILSConnector("http://ils", client=mock_client(handler))
    with pytest.raises(UpstreamError) as exc:
        await ils.get_reserve_summary("u1", "tok")
    assert exc.value.status_code == 408


@pytest.mark.asyncio
async def test_refused_connection_maps_to_503():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    ils = ILSConnector("http://ils", client=mock_client(handler))
    with pytest.raises(UpstreamError) as exc:
        await ils.validate_reserves(["u1"], "tok")
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_validate_posts_item_ids():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[])

    ils = ILSConnector("http://ils", client=mock_client(handler))
    await ils.validate_reserves(["u1", "u2"], "tok")
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/course_reserves/validate"
    assert json.loads(seen[0].content) == {"items": ["u1", "u2"]}


@pytest.mark.asyncio
async def test_ping_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    ils = ILSConnector("http://ils", client=mock_client(handler))
    with pytest.raises(UpstreamError) as exc:
        await ils.ping()
    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_solr_select_params():
    seen = []
    solr = solr_with([{"id": "u1"}], seen=seen)
    result = await solr.select("id:u1", ["id", "title_a"], rows=10)

    assert result["numFound"] == 1
    url = seen[0].url
    assert url.path == "/core/select"
    assert url.params["q"] == "id:u1"
    assert url.params["fl"] == "id,title_a"
    assert url.params["rows"] == "10"


@pytest.mark.asyncio
async def test_solr_unparseable_body():
    solr = SolrClient("http://solr", "core", client=mock_client(lambda r: httpx.Response(200, text="<html>")))
    assert await solr.select("id:u1", ["id"]) == {"numFound": 0, "docs": []}


@pytest.mark.asyncio
async def test_fetch_catalog_record():
    seen = []
    solr = solr_with([{"id": "u1", "title_a": ["A Title"], "hathi_etas_f": ["true"]}], seen=seen)
    record = await fetch_catalog_record(solr, "u1")

    assert record.id == "u1"
    assert record.title == ["A Title"]
    assert record.hathi_etas == ["true"]
    assert "sc_availability_large_single" in seen[0].url.params["fl"]


@pytest.mark.asyncio
async def test_fetch_catalog_record_no_match():
    assert await fetch_catalog_record(solr_with([]), "u1") is None


@pytest.mark.asyncio
async def test_fetch_catalog_record_multiple_matches_uses_first(caplog):
    solr = solr_with([{"id": "u1"}, {"id": "u1-dup"}])
    with caplog.at_level(logging.ERROR):
        record = await fetch_catalog_record(solr, "u1")
    assert record.id == "u1"
    assert "2 catalog records found for u1" in caplog.text


@pytest.mark.asyncio
async def test_fetch_catalog_record_solr_down():
    solr = SolrClient("http://solr", "core", client=mock_client(lambda r: httpx.Response(500, text="boom")))
    assert await fetch_catalog_record(solr, "u1") is None


def test_dev_mode_mailer_logs(caplog):
    mailer = Mailer(SMTPConfig(dev_mode=True))
    email = OutboundEmail(subject="Hello", to=["a@lib.edu"], from_addr="b@lib.edu", body="Body text")
    with caplog.at_level(logging.INFO):
        mailer.send(email)
    assert "Subject: Hello" in caplog.text
    assert "Body text" in caplog.text


@pytest.mark.asyncio
async def test_mailer_uses_smtp(monkeypatch):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            sent.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            sent.append(("starttls",))

        def login(self, user, password):
            sent.append(("login", user))

        def send_message(self, msg):
            sent.append(("send", msg["To"]))

    monkeypatch.setattr("core.integrations.mailer.smtplib.SMTP", FakeSMTP)
    mailer = Mailer(SMTPConfig(host="smtp.lib.edu", port=587, user="svc", password="pw"))
    await mailer.send_async(OutboundEmail(subject="S", to=["a@lib.edu", "b@lib.edu"], from_addr="c@lib.edu", body="x"))

    assert sent == [
        ("connect", "smtp.lib.edu", 587),
        ("starttls",),
        ("login", "svc"),
        ("send", "a@lib.edu, b@lib.edu"),
    ]
