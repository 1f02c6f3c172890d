"""Configuration management for ASNINFO.

Loads configuration from config.yaml, with support for CLI overrides
and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pydantic
import yaml
from pydantic import BaseModel, Field

from asninfo.core.errors import ConfigError


class GeneralConfig(BaseModel):
    """Logging configuration."""

    log_file: Optional[str] = None
    verbose: bool = False


class SourcesConfig(BaseModel):
    """Upstream dataset locations.

    ``as2org_url`` may point either at a dataset file or at the CAIDA
    directory listing, in which case the newest ``as-org2info`` file is used.
    """

    asnames_url: str = "https://ftp.ripe.net/ripe/asnames/asn.txt"
    as2org_url: str = "https://publicdata.caida.org/datasets/as-organizations/"
    hegemony_ipv4_url: str = (
        "https://data.bgpkit.com/ihr/hegemony/ipv4/global/latest-simple.csv.gz"
    )
    hegemony_ipv6_url: str = (
        "https://data.bgpkit.com/ihr/hegemony/ipv6/global/latest-simple.csv.gz"
    )
    peeringdb_url: str = "https://www.peeringdb.com/api/net"
    peeringdb_api_key: str = ""
    population_url: str = "https://data.bgpkit.com/commons/asn_population.json"
    timeout: int = 300


class ServerConfig(BaseModel):
    """Lookup API server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    refresh_secs: int = 21600
    simplified: bool = False
    max_asns: int = Field(default=100, ge=1)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    refresh_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=60.0, ge=0.0)


class ExportConfig(BaseModel):
    """``generate`` command configuration."""

    path: str = "./asninfo.jsonl"
    simplified: bool = False
    upload_path: Optional[str] = None
    heartbeat_url: Optional[str] = None


class S3Config(BaseModel):
    """S3-compatible object storage credentials (AWS S3 or Cloudflare R2)."""

    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""


class Config(BaseModel):
    """Top-level ASNINFO configuration."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    s3: S3Config = Field(default_factory=S3Config)

    def redacted(self) -> Dict[str, Any]:
        """Return the configuration as a dict with secrets masked."""
        data = self.model_dump()
        if data["sources"].get("peeringdb_api_key"):
            data["sources"]["peeringdb_api_key"] = "***"
        for key in ("access_key_id", "secret_access_key"):
            if data["s3"].get(key):
                data["s3"][key] = "***"
        return data


# Flat environment variables understood for compatibility with existing
# deployments, mapped to (section, key).
_FLAT_ENV_VARS: Dict[str, tuple] = {
    "ASNINFO_MAX_ASNS": ("server", "max_asns"),
    "ASNINFO_UPLOAD_PATH": ("export", "upload_path"),
    "ASNINFO_HEARTBEAT_URL": ("export", "heartbeat_url"),
    "PEERINGDB_API_KEY": ("sources", "peeringdb_api_key"),
    "AWS_REGION": ("s3", "region"),
    "AWS_ENDPOINT": ("s3", "endpoint"),
    "AWS_ACCESS_KEY_ID": ("s3", "access_key_id"),
    "AWS_SECRET_ACCESS_KEY": ("s3", "secret_access_key"),
}


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from a YAML file, applying environment variable overrides.

    Args:
        config_path: Optional path to a YAML configuration file. Defaults to
                     ``config.yaml`` in the current working directory.

    Returns:
        Populated :class:`Config` instance.

    Raises:
        ConfigError: If the file is not valid YAML or a file or environment
            value does not fit the configuration schema.
    """
    path = Path(config_path) if config_path else Path("config.yaml")

    raw: Dict[str, Any] = {}
    if path.exists():
        with path.open("r") as fh:
            try:
                raw = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

    _apply_env_overrides(raw)

    try:
        return Config(**raw)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"invalid configuration ({problems})") from exc


def _apply_env_overrides(raw: Dict[str, Any]) -> None:
    """Mutate *raw* in-place with values from environment variables.

    Flat variables such as ``ASNINFO_MAX_ASNS`` are applied first; variables
    following the pattern ``ASNINFO__<SECTION>__<KEY>`` win over them.
    For example ``ASNINFO__SERVER__REFRESH_SECS=7200``.
    """
    for env_key, (section, key) in _FLAT_ENV_VARS.items():
        env_val = os.environ.get(env_key)
        if env_val:
            raw.setdefault(section, {})[key] = env_val

    prefix = "ASNINFO__"
    for env_key, env_val in os.environ.items():
        if not env_key.startswith(prefix):
            continue
        parts = env_key[len(prefix):].lower().split("__")
        if len(parts) == 2:
            section, key = parts
            raw.setdefault(section, {})[key] = env_val
