"""Configuration loading and merging for Beacon."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .errors import ConfigError


logger = logging.getLogger(__name__)

# Process-level override for the advertised management port
JMX_PORT_ENV = "BEACON_JMX_PORT"


@dataclass
class AgentConfig:
    # Application identity
    app_name: str = ""
    http_port: int = 8080

    # Management (JMX) endpoint advertised to the registry
    jmx_host: str = ""
    jmx_port: int = 9091

    # Registry connection
    registry_url: str = ""
    authorization: str = ""
    request_timeout: float = 10.0

    # Where the registry calls us back
    callback_host: str = ""
    callback_path: str = "/cryostat-discovery"
    callback_bind: str = "0.0.0.0"

    # Seconds between registration attempts while unregistered
    retry_interval: float = 30.0


_REQUIRED = ("app_name", "jmx_host", "registry_url", "authorization", "callback_host")


def load_config(path: str | Path) -> AgentConfig:
    """Load an AgentConfig from a YAML file. Unknown keys are ignored."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    valid_fields = {f.name for f in fields(AgentConfig)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return AgentConfig(**filtered)


def merge_cli_args(config: AgentConfig, args) -> AgentConfig:
    """Overlay CLI arguments onto an existing config. CLI values take precedence."""
    for f in fields(AgentConfig):
        cli_val = getattr(args, f.name, None)
        if cli_val is not None:
            setattr(config, f.name, cli_val)
    return config


def validate_config(config: AgentConfig) -> AgentConfig:
    """Fail fast on missing or out-of-range values.

    Raises :class:`ConfigError` naming every missing field at once.
    """
    missing = [name for name in _REQUIRED if not getattr(config, name)]
    if missing:
        raise ConfigError(f"missing required configuration: {', '.join(missing)}")

    for name in ("retry_interval", "request_timeout"):
        value = getattr(config, name)
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got {value!r}") from None
        if value <= 0:
            raise ConfigError(f"{name} must be > 0, got {value}")
        setattr(config, name, value)

    for name in ("http_port", "jmx_port"):
        value = getattr(config, name)
        if not isinstance(value, int) or not 0 < value < 65536:
            raise ConfigError(f"{name} must be a port number, got {value!r}")

    if not config.callback_path.startswith("/"):
        config.callback_path = "/" + config.callback_path
    return config


def resolve_jmx_port(config: AgentConfig, environ: Optional[Mapping[str, str]] = None) -> int:
    """Return the management port, preferring the process-level override."""
    if environ is None:
        environ = os.environ
    override = environ.get(JMX_PORT_ENV)
    if override:
        try:
            return int(override)
        except ValueError:
            logger.warning("ignoring non-numeric %s=%r", JMX_PORT_ENV, override)
    return config.jmx_port


def callback_url(config: AgentConfig) -> str:
    return f"http://{config.callback_host}:{config.http_port}{config.callback_path}"


def connect_url(host: str, port: int) -> str:
    """JMX service URL for a management endpoint."""
    return f"service:jmx:rmi:///jndi/rmi://{host}:{port}/jmxrmi"


def config_to_yaml(config: AgentConfig) -> str:
    """Serialize an AgentConfig to YAML with the credential masked."""
    data: dict = {}
    for f in fields(AgentConfig):
        data[f.name] = getattr(config, f.name)
    if data["authorization"]:
        data["authorization"] = "********"
    return yaml.dump(data, default_flow_style=False, sort_keys=False)
