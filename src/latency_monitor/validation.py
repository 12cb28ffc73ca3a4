"""
Validation of externally supplied endpoint and threshold definitions.

The engine trusts its inputs. Field shapes (URL well-formedness, numeric
minimums, enumerations) are declared here as pydantic models and checked at
the boundaries where data enters the system: the management API and the
startup endpoints file.
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
)

from latency_monitor.config.constants import (
    DEFAULT_TIMEOUT,
    MIN_INTERVAL,
    MIN_TIMEOUT,
    MIN_WINDOW_SIZE,
)
from latency_monitor.domain import AlertThreshold, HttpMethod, ProbeOptions


def _check_http_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"must be an absolute http(s) URL, got '{value}'")
    return value


# Absolute http(s) URL, kept exactly as given since it is the endpoint key
WebUrl = Annotated[StrictStr, AfterValidator(_check_http_url)]

# bool is a subclass of int and is never a valid number here, hence strict
Milliseconds = Annotated[int, Field(strict=True)]


class ProbeOptionsModel(BaseModel):
    """
    Probe options of an endpoint, using snake_case keys.

    A missing interval is left to the scheduler default, a missing timeout to
    the configured default timeout.
    """

    model_config = ConfigDict(frozen=True)

    interval: Optional[Annotated[Milliseconds, Field(ge=MIN_INTERVAL)]] = None
    timeout: Optional[Annotated[Milliseconds, Field(ge=MIN_TIMEOUT)]] = None
    retry_count: Optional[Annotated[int, Field(ge=0, strict=True)]] = None
    method: HttpMethod = HttpMethod.GET
    headers: Optional[Dict[StrictStr, StrictStr]] = None
    body: Optional[StrictStr] = None
    expected_status_code: Optional[Annotated[int, Field(ge=100, le=599, strict=True)]] = None

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: Any) -> Any:
        if value is None:
            return HttpMethod.GET
        return value.upper() if isinstance(value, str) else value

    def to_options(self, default_timeout: int = DEFAULT_TIMEOUT) -> ProbeOptions:
        """Returns the engine-side options."""
        return ProbeOptions(
            interval=self.interval,
            timeout_ms=self.timeout if self.timeout is not None else default_timeout,
            retry_count=self.retry_count or 0,
            method=self.method,
            headers=dict(self.headers) if self.headers is not None else None,
            body=self.body,
            expected_status_code=self.expected_status_code,
        )


class EndpointRequest(ProbeOptionsModel):
    """Body of a request to start monitoring an endpoint."""

    url: WebUrl


class NoAuth(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["none"] = "none"


class BearerAuth(BaseModel):
    """Bearer token read from env_var, sent in the Authorization header."""

    model_config = ConfigDict(frozen=True)

    type: Literal["bearer"] = "bearer"
    env_var: Annotated[StrictStr, Field(min_length=1)]


class ApiKeyAuth(BaseModel):
    """API key read from env_var, sent as a header or a query parameter."""

    model_config = ConfigDict(frozen=True)

    type: Literal["api_key"] = "api_key"
    env_var: Annotated[StrictStr, Field(min_length=1)]
    location: Literal["header", "query"]
    param_name: Annotated[StrictStr, Field(min_length=1)]


class BasicAuth(BaseModel):
    """Basic credentials read from two environment variables."""

    model_config = ConfigDict(frozen=True)

    type: Literal["basic"] = "basic"
    username_env_var: Annotated[StrictStr, Field(min_length=1)]
    password_env_var: Annotated[StrictStr, Field(min_length=1)]


AuthSettings = Annotated[
    Union[NoAuth, BearerAuth, ApiKeyAuth, BasicAuth], Field(discriminator="type")
]


class EndpointDefinitionModel(EndpointRequest):
    """One entry of the startup endpoints file."""

    name: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    tags: Optional[List[StrictStr]] = None
    auth: Optional[AuthSettings] = None


class ThresholdRequest(BaseModel):
    """Body of a request to set the alert threshold of an endpoint."""

    model_config = ConfigDict(frozen=True)

    endpoint: WebUrl
    window_size: Annotated[Milliseconds, Field(ge=MIN_WINDOW_SIZE)]
    max_latency: Optional[Annotated[float, Field(ge=0, strict=True)]] = None
    min_success_rate: Optional[Annotated[float, Field(ge=0, le=1, strict=True)]] = None
    notification_url: Optional[WebUrl] = None

    def to_threshold(self) -> AlertThreshold:
        """Returns the engine-side threshold."""
        return AlertThreshold(
            endpoint=self.endpoint,
            window_size_ms=self.window_size,
            max_latency_ms=self.max_latency,
            min_success_rate=self.min_success_rate,
            notification_url=self.notification_url,
        )


def format_validation_error(error: ValidationError) -> str:
    """
    Flattens a pydantic ValidationError into one line per invalid field.
    """
    messages = []
    for detail in error.errors():
        field = ".".join(str(part) for part in detail["loc"]) or "body"
        messages.append(f"'{field}': {detail['msg']}")
    return "; ".join(messages)


def parse_threshold(payload: Mapping[str, Any]) -> AlertThreshold:
    """
    Builds an AlertThreshold from a definition.

    Recognized keys: endpoint, max_latency, min_success_rate, window_size,
    notification_url.

    Raises:
        ValidationError: If a field has an invalid shape or value.
    """
    return ThresholdRequest.model_validate(payload).to_threshold()
