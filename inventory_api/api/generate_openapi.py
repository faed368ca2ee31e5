"""
Write the OpenAPI document to interfaces/openapi.json.

Usage:
    python -m inventory_api.api.generate_openapi [output_path]
"""

import json
import sys
from pathlib import Path

from inventory_api.api.main import app, websocket_info

DEFAULT_OUTPUT = Path("interfaces") / "openapi.json"


# PUBLIC_INTERFACE
def build_schema() -> dict:
    """OpenAPI schema of the REST API plus an x-websocket-endpoints extension for /ws/dashboard."""
    schema = app.openapi()
    ws = websocket_info()
    schema["x-websocket-endpoints"] = [
        {
            "path": ws["path"],
            "summary": "Realtime dashboard updates for the caller's tenant",
            "query": ws["query"],
            "messages": ws["messages"],
        }
    ]
    return schema


def main(output: Path = DEFAULT_OUTPUT) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(build_schema(), indent=2))


if __name__ == "__main__":
    main(Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT)
