#!/usr/bin/env python3
"""
Mock server for trying out latency monitoring locally.

Every path except /webhook simulates a flaky health endpoint:
- 80% of requests: 5-150ms response time
- 15% of requests: 400-1500ms response time
- 5% of requests: 503 Service Unavailable

Healthy responses are 200 OK with the JSON body {"status": "up"}.

POST /webhook receives alert notifications and prints them, so it can be used
as the notification_url of an alert threshold.
"""

import asyncio
import json
import random

from aiohttp import web

# Constants
PORT = 8080
HOST = "localhost"
FAST_RESPONSE_PROBABILITY = 0.8
FAILURE_PROBABILITY = 0.05
FAST_RESPONSE_MIN_MS = 5
FAST_RESPONSE_MAX_MS = 150
SLOW_RESPONSE_MIN_MS = 400
SLOW_RESPONSE_MAX_MS = 1500


async def handle_probe(request: web.Request) -> web.Response:
    """
    Simulates a health endpoint with random latency and occasional failures.
    """
    roll = random.random()
    if roll < FAILURE_PROBABILITY:
        return web.json_response({"status": "down"}, status=503)

    if roll < FAILURE_PROBABILITY + FAST_RESPONSE_PROBABILITY:
        delay_ms = random.uniform(FAST_RESPONSE_MIN_MS, FAST_RESPONSE_MAX_MS)
    else:
        delay_ms = random.uniform(SLOW_RESPONSE_MIN_MS, SLOW_RESPONSE_MAX_MS)

    await asyncio.sleep(delay_ms / 1000)
    return web.json_response({"status": "up", "path": request.path})


async def handle_webhook(request: web.Request) -> web.Response:
    """
    Prints a received alert notification.
    """
    payload = await request.json()
    print(f"ALERT {json.dumps(payload, indent=2)}")
    return web.json_response({"received": True})


async def init_app() -> web.Application:
    """
    Initialize the web application.

    Returns:
        Configured aiohttp web Application
    """
    app = web.Application()
    app.add_routes(
        [
            web.post("/webhook", handle_webhook),
            web.route("*", "/{tail:.*}", handle_probe),
        ]
    )
    return app


def run_server() -> None:
    """Run the mock server on HOST:PORT."""
    web.run_app(init_app(), host=HOST, port=PORT)


if __name__ == "__main__":
    print(f"Starting mock server at http://{HOST}:{PORT}")
    print(f"- alert webhook: http://{HOST}:{PORT}/webhook")
    print(f"- {FAILURE_PROBABILITY * 100:g}% of probes fail with 503")
    print(
        f"- {FAST_RESPONSE_PROBABILITY * 100:g}% of probes: "
        f"{FAST_RESPONSE_MIN_MS}-{FAST_RESPONSE_MAX_MS}ms"
    )
    run_server()
