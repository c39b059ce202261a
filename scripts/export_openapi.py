"""Write the API's OpenAPI document to ``docs/openapi.json``.

Usage:
    python scripts/export_openapi.py [output-path]
"""

import json
import sys
from pathlib import Path

from fastapi.openapi.utils import get_openapi

from recipe_keeper.main import app


def main() -> None:
    output = Path(sys.argv[1] if len(sys.argv) > 1 else "docs/openapi.json")
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w") as f:
        json.dump(schema, f, indent=2)


if __name__ == "__main__":
    main()
