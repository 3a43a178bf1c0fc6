"""
YAML loader for the deployment configuration.

Search order when no explicit path is given:

    1. ~/.config/podman_deploy/config.yaml
    2. /etc/podman_deploy/config.yaml
    3. ./config.yaml

File format (YAML)::

    application_name: shop
    data_path: /srv/shop
    private_registry: registry.example.com
    registry_username: deploy
    registry_password: s3cret
    pods:
      - name: web
        ports: ["8080:80"]
        containers:
          - name: nginx
            image: docker.io/library/nginx:1.21
            mounts: ["/nginx/nginx.conf:/etc/nginx/nginx.conf"]
            env_vars: {TZ: UTC}

Every problem found here (missing file, bad YAML, malformed mount or port,
duplicate names) is a ``ConfigurationError`` raised before anything talks
to the container runtime.
"""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from podman_deploy.core.errors import ConfigurationError
from podman_deploy.core.logging import get_logger
from podman_deploy.deploy.config import DeployConfig

logger = get_logger(__name__)

_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"


class ConfigLoader(yaml.SafeLoader):
    """``SafeLoader`` without YAML 1.1 base-60 numbers.

    Unquoted ``2222:22`` or ``10:30`` load as strings instead of integers.
    """


ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (_INT_TAG, _FLOAT_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
ConfigLoader.add_implicit_resolver(
    _INT_TAG,
    re.compile(
        r"""^(?:[-+]?0b[0-1_]+
        |[-+]?0[0-7_]+
        |[-+]?(?:0|[1-9][0-9_]*)
        |[-+]?0x[0-9a-fA-F_]+)$""",
        re.X,
    ),
    list("-+0123456789"),
)
ConfigLoader.add_implicit_resolver(
    _FLOAT_TAG,
    re.compile(
        r"""^(?:[-+]?(?:[0-9][0-9_]*)\.[0-9_]*(?:[eE][-+][0-9]+)?
        |\.[0-9][0-9_]*(?:[eE][-+][0-9]+)?
        |[-+]?\.(?:inf|Inf|INF)
        |\.(?:nan|NaN|NAN))$""",
        re.X,
    ),
    list("-+0123456789."),
)


def default_search_paths() -> list[Path]:
    """Candidate config locations, most specific first."""
    return [
        Path.home() / ".config" / "podman_deploy" / "config.yaml",
        Path("/etc/podman_deploy/config.yaml"),
        Path("config.yaml"),
    ]


def find_config_file(
    custom_path: Path | str | None = None,
    search_paths: list[Path] | None = None,
) -> Path:
    """
    Resolve the configuration file to load.

    Args:
        custom_path: Explicit path (``--config``); must exist if given
        search_paths: Override the default search order

    Raises:
        ConfigurationError: If no file is found
    """
    if custom_path is not None:
        path = Path(custom_path)
        if path.is_file():
            return path
        raise ConfigurationError(f"Config file not found at specified path: {path}")

    candidates = search_paths if search_paths is not None else default_search_paths()
    for path in candidates:
        if path.is_file():
            logger.info("config.found", path=str(path))
            return path

    searched = ", ".join(str(p) for p in candidates)
    raise ConfigurationError(f"Config file not found in any of the search locations: {searched}")


def parse_config(data: Any, source: str = "<config>") -> DeployConfig:
    """
    Validate already-parsed YAML data into a ``DeployConfig``.

    Raises:
        ConfigurationError: On any validation failure, with the offending
            pod/container named in the message
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {source}: expected a mapping, got {type(data).__name__}"
        )
    try:
        return DeployConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {source}: {_format_validation_error(e)}",
            cause=e,
        ) from e


def load_config(path: Path | str) -> DeployConfig:
    """
    Load and validate the configuration at ``path``.

    Raises:
        ConfigurationError: If the file is unreadable, not YAML, or invalid
    """
    path = Path(path)
    logger.debug("config.load", path=str(path))

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.load(f, Loader=ConfigLoader)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}", cause=e) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}", cause=e) from e

    config = parse_config(data, source=str(path))
    logger.info(
        "config.loaded",
        path=str(path),
        application=config.application_name,
        pod_count=len(config.pods),
    )
    return config


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for err in error.errors():
        msg = err["msg"].removeprefix("Value error, ")
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{msg} (at {loc})" if loc else msg)
    return "; ".join(messages)
