"""
Management HTTP API of the latency monitoring system.

A thin aiohttp.web layer that validates request payloads and translates
them into MonitoringEngine calls. Endpoint URLs used as path parameters must
be URL-encoded, aiohttp decodes them once when matching the route.
"""

import logging
from typing import Any, Dict, List, Optional

from aiohttp import web
from pydantic import ValidationError

from latency_monitor.config.constants import DEFAULT_TIMEOUT
from latency_monitor.config.endpoints_file import EndpointDefinition
from latency_monitor.engine import MonitoringEngine
from latency_monitor.exceptions import AlreadyMonitoringError
from latency_monitor.validation import EndpointRequest, format_validation_error, parse_threshold

# Module logger
logger = logging.getLogger(__name__)

ENGINE_KEY = web.AppKey("engine", MonitoringEngine)
DEFAULTS_KEY = web.AppKey("endpoint_defaults", list)
DEFAULT_TIMEOUT_KEY = web.AppKey("default_timeout", int)


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    """
    Translates engine and validation errors into structured JSON responses.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except AlreadyMonitoringError as e:
        return _error(str(e), 409)
    except ValidationError as e:
        return _error(format_validation_error(e), 400)
    except ValueError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return _error(str(e), 500)


async def _json_object(request: web.Request) -> Dict[str, Any]:
    """
    Reads the request body as a JSON object.

    Raises:
        ValueError: If the body is not valid JSON or not an object.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise ValueError(f"Request body must be valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object.")
    return payload


async def get_status(request: web.Request) -> web.Response:
    engine = request.app[ENGINE_KEY]
    return web.json_response({"status": "ok", "active_endpoints": engine.active_endpoints()})


async def get_default_endpoints(request: web.Request) -> web.Response:
    defaults: List[EndpointDefinition] = request.app[DEFAULTS_KEY]
    return web.json_response(
        {"success": True, "defaults": [definition.to_public_dict() for definition in defaults]}
    )


async def add_endpoint(request: web.Request) -> web.Response:
    """
    Starts monitoring an endpoint and returns the result of its initial probe.
    """
    payload = await _json_object(request)
    endpoint_request = EndpointRequest.model_validate(payload)
    url = endpoint_request.url
    options = endpoint_request.to_options(request.app[DEFAULT_TIMEOUT_KEY])

    logger.info(f"Adding endpoint {url}")
    result = await request.app[ENGINE_KEY].start_monitoring(url, options)
    return web.json_response(
        {
            "success": True,
            "message": f"Started monitoring {url}",
            "initial_test": result.to_dict(),
        },
        status=201,
    )


async def remove_endpoint(request: web.Request) -> web.Response:
    url = request.match_info["url"]
    logger.info(f"Removing endpoint {url}")
    await request.app[ENGINE_KEY].stop_monitoring(url)
    return web.json_response({"success": True})


async def set_alert(request: web.Request) -> web.Response:
    payload = await _json_object(request)
    threshold = parse_threshold(payload)
    await request.app[ENGINE_KEY].set_threshold(threshold)
    return web.json_response(
        {"success": True, "message": f"Set alert threshold for {threshold.endpoint}"}
    )


async def get_alert(request: web.Request) -> web.Response:
    endpoint = request.match_info["endpoint"]
    threshold = request.app[ENGINE_KEY].get_threshold(endpoint)
    if threshold is None:
        return _error(f"No alert threshold found for {endpoint}", 404)
    return web.json_response(threshold.to_dict())


async def remove_alert(request: web.Request) -> web.Response:
    endpoint = request.match_info["endpoint"]
    logger.info(f"Removing alert threshold for {endpoint}")
    await request.app[ENGINE_KEY].remove_threshold(endpoint)
    return web.json_response({"success": True})


def create_app(
    engine: MonitoringEngine,
    defaults: Optional[List[EndpointDefinition]] = None,
    default_timeout: int = DEFAULT_TIMEOUT,
) -> web.Application:
    """
    Builds the management application around an engine.

    Args:
        engine: The monitoring engine driven by the API.
        defaults: Startup endpoint definitions, exposed read-only.
        default_timeout: Attempt timeout for endpoints added without one.

    Returns:
        web.Application: The configured application.
    """
    app = web.Application(middlewares=[error_middleware])
    app[ENGINE_KEY] = engine
    app[DEFAULTS_KEY] = list(defaults or [])
    app[DEFAULT_TIMEOUT_KEY] = default_timeout

    app.router.add_get("/", get_status)
    app.router.add_get("/endpoints/defaults", get_default_endpoints)
    app.router.add_post("/endpoints", add_endpoint)
    app.router.add_delete("/endpoints/{url:.+}", remove_endpoint)
    app.router.add_post("/alerts", set_alert)
    app.router.add_get("/alerts/{endpoint:.+}", get_alert)
    app.router.add_delete("/alerts/{endpoint:.+}", remove_alert)
    return app
