#!/usr/bin/env python3
"""
Script to generate a startup endpoints file pointing at the mock server.

Each generated definition follows these rules:
- url is http://localhost:8080/{uuid4()}
- interval is between 5 and 60 seconds
- timeout is 1 second, so slow mock responses fail
- retry_count is between 0 and 2
- 10% of the definitions expect a 200 status code explicitly

The result is written to 'endpoints.json' and can be passed to the monitor
with --endpoints-file.
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, List
from uuid import uuid4

# Number of endpoints to generate
ENDPOINTS_TO_GENERATE = 50


def generate_definition(index: int) -> Dict[str, Any]:
    """Generate one random endpoint definition."""
    definition: Dict[str, Any] = {
        "name": f"Mock endpoint {index}",
        "url": f"http://localhost:8080/{uuid4()}",
        "interval": random.randint(5, 60) * 1000,
        "timeout": 1000,
        "retry_count": random.randint(0, 2),
        "tags": ["mock"],
    }
    if random.random() < 0.1:
        definition["expected_status_code"] = 200
    return definition


def generate_endpoints() -> List[Dict[str, Any]]:
    return [generate_definition(index) for index in range(1, ENDPOINTS_TO_GENERATE + 1)]


def main() -> None:
    """Generate the definitions and save them to 'endpoints.json'."""
    output_file = Path("endpoints.json")
    with open(output_file, "w") as f:
        json.dump(generate_endpoints(), f, indent=2)

    print(f"{ENDPOINTS_TO_GENERATE} endpoint definitions have been saved to {output_file}")


if __name__ == "__main__":
    main()
