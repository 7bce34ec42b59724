"""
Upstream integrations.

- AdapterBase: shared httpx request path with status mapping and timing logs
- ILSConnector: circulation availability and course reserve validation
- SolrClient: catalog index select queries
- Mailer: SMTP delivery (or logging in dev mode)
"""
from core.integrations.adapter_base import (
    AdapterBase,
    AdapterRequest,
    UpstreamError,
)
from core.integrations.ils import ILSConnector
from core.integrations.mailer import Mailer, OutboundEmail
from core.integrations.solr import SolrClient

__all__ = [
    "AdapterBase",
    "AdapterRequest",
    "UpstreamError",
    "ILSConnector",
    "SolrClient",
    "Mailer",
    "OutboundEmail",
]
