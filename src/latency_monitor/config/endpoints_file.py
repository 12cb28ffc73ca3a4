"""
Startup endpoint definitions.

Endpoints monitored from process start are listed in a JSON file. Each
definition carries its probe options and, optionally, how to inject the
target's credentials, which are always read from environment variables and
never stored in the file.

Example:
    [
      {
        "name": "Profile API",
        "url": "https://api.example.com/v1/profiles/me",
        "interval": 30000,
        "timeout": 5000,
        "retry_count": 3,
        "expected_status_code": 200,
        "headers": {"Accept": "application/json"},
        "auth": {"type": "api_key", "env_var": "EXAMPLE_API_KEY",
                 "location": "query", "param_name": "apiKey"},
        "tags": ["api", "profile"]
      }
    ]
"""

import base64
import json
import logging
import os
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pydantic import ValidationError

from latency_monitor.config.constants import DEFAULT_TIMEOUT
from latency_monitor.domain import ProbeOptions
from latency_monitor.exceptions import EndpointConfigError
from latency_monitor.validation import (
    ApiKeyAuth,
    AuthSettings,
    BasicAuth,
    BearerAuth,
    EndpointDefinitionModel,
    NoAuth,
    format_validation_error,
)

# Module logger
logger = logging.getLogger(__name__)


class EndpointDefinition(NamedTuple):
    """
    An endpoint to monitor from process start.

    Attributes:
        name: Human-readable name.
        url: The URL to probe, before credentials are injected.
        options: Probe options of the endpoint.
        description: Optional free-form description.
        tags: Free-form labels.
        auth: How to inject credentials, see resolve_auth.
    """

    name: str
    url: str
    options: ProbeOptions
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    auth: AuthSettings = NoAuth()

    def to_public_dict(self) -> Dict[str, Any]:
        """Returns a JSON-serializable view of the definition without its auth settings."""
        return {
            "name": self.name,
            "url": self.url,
            "description": self.description,
            "interval": self.options.interval,
            "timeout": self.options.timeout_ms,
            "retry_count": self.options.retry_count,
            "method": self.options.method.value,
            "headers": self.options.headers,
            "body": self.options.body,
            "expected_status_code": self.options.expected_status_code,
            "tags": list(self.tags),
        }


def parse_endpoint_definition(
    raw: Mapping[str, Any], default_timeout: int = DEFAULT_TIMEOUT
) -> EndpointDefinition:
    """
    Validates one raw definition.

    Raises:
        EndpointConfigError: If the definition is invalid.
    """
    if not isinstance(raw, Mapping):
        raise EndpointConfigError("Each endpoint definition must be an object.")

    name = raw.get("name") or raw.get("url") or "<unnamed>"
    try:
        model = EndpointDefinitionModel.model_validate(raw)
    except ValidationError as e:
        raise EndpointConfigError(f"Endpoint '{name}': {format_validation_error(e)}") from e

    return EndpointDefinition(
        name=str(name),
        url=model.url,
        options=model.to_options(default_timeout),
        description=model.description,
        tags=tuple(model.tags or ()),
        auth=model.auth or NoAuth(),
    )


def load_endpoint_definitions(
    path: str, default_timeout: int = DEFAULT_TIMEOUT
) -> List[EndpointDefinition]:
    """
    Loads the startup endpoint definitions from a JSON file.

    Args:
        path: Path of the JSON file. An empty path means no definitions.
        default_timeout: Attempt timeout for definitions that set none.

    Returns:
        List[EndpointDefinition]: The validated definitions.

    Raises:
        EndpointConfigError: If the file cannot be read or a definition is invalid.
    """
    if not path:
        return []

    try:
        with open(path) as f:
            raw_definitions = json.load(f)
    except FileNotFoundError as err:
        raise EndpointConfigError(f"Endpoints file not found: {path}") from err
    except json.JSONDecodeError as err:
        raise EndpointConfigError(f"Invalid JSON format in endpoints file: {path}") from err

    if not isinstance(raw_definitions, list):
        raise EndpointConfigError(f"Endpoints file must contain a JSON list: {path}")

    definitions = [parse_endpoint_definition(raw, default_timeout) for raw in raw_definitions]
    logger.info(f"Loaded {len(definitions)} endpoint definition(s) from {path}")
    return definitions


def _require_env(environ: Mapping[str, str], variable: str, what: str) -> str:
    value = environ.get(variable)
    if not value:
        raise EndpointConfigError(f"{what} not found in environment variable {variable}")
    return value


def resolve_auth(
    definition: EndpointDefinition, environ: Optional[Mapping[str, str]] = None
) -> Tuple[str, ProbeOptions]:
    """
    Injects the credentials of a definition into its URL and headers.

    Args:
        definition: The endpoint definition.
        environ: Environment to read credentials from. Defaults to os.environ.

    Returns:
        Tuple[str, ProbeOptions]: The URL and options to monitor the endpoint with.

    Raises:
        EndpointConfigError: If a required environment variable is missing.
    """
    environ = os.environ if environ is None else environ
    auth = definition.auth
    url = definition.url
    headers: Dict[str, str] = dict(definition.options.headers or {})

    if isinstance(auth, BearerAuth):
        token = _require_env(environ, auth.env_var, "Bearer token")
        headers["Authorization"] = f"Bearer {token}"
    elif isinstance(auth, BasicAuth):
        username = _require_env(environ, auth.username_env_var, "Basic auth username")
        password = _require_env(environ, auth.password_env_var, "Basic auth password")
        credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
        headers["Authorization"] = f"Basic {credentials}"
    elif isinstance(auth, ApiKeyAuth):
        api_key = _require_env(environ, auth.env_var, "API key")
        if auth.location == "header":
            headers[auth.param_name] = api_key
        else:
            parsed = urlparse(url)
            query = [(key, value) for key, value in parse_qsl(parsed.query) if key != auth.param_name]
            query.append((auth.param_name, api_key))
            url = urlunparse(parsed._replace(query=urlencode(query)))

    return url, definition.options._replace(headers=headers or None)
