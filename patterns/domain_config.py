"""Dataclass-based service configuration.

Each concern (Solr, SMTP, course reserves, maps) is a frozen dataclass
nested inside ServiceConfig. Values come from environment variables
(optionally seeded from a .env file) and never change after startup.
"""

import os
from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SolrConfig:
    """Catalog search index location."""

    url: str = ""
    core: str = "test_core"
    timeout: float = 5.0


@dataclass(frozen=True)
class SMTPConfig:
    """Outbound mail settings."""

    host: str = "localhost"
    port: int = 25
    user: str = ""
    password: str = ""
    sender: str = "no-reply@virginia.edu"
    dev_mode: bool = False


@dataclass(frozen=True)
class ReserveConfig:
    """Course reserve routing."""

    course_reserve_email: str = ""
    law_reserve_email: str = ""
    law_library: str = "law"


@dataclass(frozen=True)
class MapConfig:
    """Floor-plan lookup tables."""

    maps_file: str = "./data/maps.csv"
    lookups_file: str = "./data/map_lookups.csv"


# ---------------------------------------------------------------------------
# Top-level service config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServiceConfig:
    """Complete configuration for the availability service.

    Usage::

        config = ServiceConfig.from_env()
        missing = config.validate()
        if missing:
            raise RuntimeError(...)
    """

    port: int = 8080
    virgo_url: str = "https://search.lib.virginia.edu"
    ils_api: str = "https://ils-connector.lib.virginia.edu"
    ils_timeout: float = 10.0
    jwt_key: str = ""
    hs_illiad_url: str = ""
    aeon_url: str = "https://virginia.aeon.atlas-sys.com/logon"
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)

    solr: SolrConfig = field(default_factory=SolrConfig)
    smtp: SMTPConfig = field(default_factory=SMTPConfig)
    reserves: ReserveConfig = field(default_factory=ReserveConfig)
    maps: MapConfig = field(default_factory=MapConfig)

    @classmethod
    def from_env(cls, prefix: str = "V4_") -> "ServiceConfig":
        """Create config from environment variables.

        Example: V4_SOLR_URL=http://solr:8983/solr V4_SOLR_CORE=test_core
        """

        def env(name: str, default: str = "") -> str:
            return os.getenv(f"{prefix}{name}", default)

        base = cls()
        solr = SolrConfig(
            url=env("SOLR_URL", base.solr.url),
            core=env("SOLR_CORE", base.solr.core),
        )
        smtp = SMTPConfig(
            host=env("SMTP_HOST", base.smtp.host),
            port=int(env("SMTP_PORT", str(base.smtp.port))),
            user=env("SMTP_USER"),
            password=env("SMTP_PASS"),
            sender=env("SMTP_SENDER", base.smtp.sender),
            dev_mode=env("SMTP_DEV", "false").lower() == "true",
        )
        reserves = ReserveConfig(
            course_reserve_email=env("CR_EMAIL"),
            law_reserve_email=env("LAW_CR_EMAIL"),
        )
        maps = MapConfig(
            maps_file=env("MAPS_FILE", base.maps.maps_file),
            lookups_file=env("MAP_LOOKUPS_FILE", base.maps.lookups_file),
        )
        origins = os.getenv("CORS_ORIGINS", ",".join(base.cors_origins))

        return cls(
            port=int(env("PORT", str(base.port))),
            virgo_url=env("URL", base.virgo_url),
            # the ILS connector variable has no V4_ prefix in deployment
            ils_api=os.getenv("ILS_SERVICE", base.ils_api),
            jwt_key=env("JWT_KEY"),
            hs_illiad_url=env("HSL_ILLIAD_URL"),
            aeon_url=env("AEON_URL", base.aeon_url),
            log_level=env("LOG_LEVEL", base.log_level).upper(),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            solr=solr,
            smtp=smtp,
            reserves=reserves,
            maps=maps,
        )

    def validate(self) -> list[str]:
        """Return the names of required settings that are missing."""
        missing = []
        if not self.ils_api:
            missing.append("ILS_SERVICE")
        if not self.solr.url or not self.solr.core:
            missing.append("V4_SOLR_URL/V4_SOLR_CORE")
        if not self.jwt_key:
            missing.append("V4_JWT_KEY")
        return missing
