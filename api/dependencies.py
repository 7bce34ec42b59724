"""FastAPI dependencies for the shared service objects.

The lifespan hook in api.main builds one of each and stores it on
``app.state``; routes receive them through Depends so tests can swap them
with ``app.dependency_overrides``.
"""

from fastapi import Request

from core.integrations.ils import ILSConnector
from core.integrations.mailer import Mailer
from core.integrations.solr import SolrClient
from patterns.domain_config import ServiceConfig
from verticals.availability.maps import MapResolver


def get_settings(request: Request) -> ServiceConfig:
    return request.app.state.config


def get_ils(request: Request) -> ILSConnector:
    return request.app.state.ils


def get_solr(request: Request) -> SolrClient:
    return request.app.state.solr


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_maps(request: Request) -> MapResolver:
    return request.app.state.maps
