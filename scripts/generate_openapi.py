"""Write the OpenAPI document of the Subway API to a file.

The document is built from the FastAPI application object directly, so no
server is started and no database connection is opened.

Usage:
    python scripts/generate_openapi.py              # writes ./openapi.json
    python scripts/generate_openapi.py -o api.json
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Tracing is irrelevant for a static dump
os.environ["OTEL_ENABLED"] = "false"

from subway.main import app

DEFAULT_OUTPUT = Path(__file__).resolve().parent.parent / "openapi.json"


def write_openapi(output_path: Path) -> dict:
    """Render the schema and write it as indented JSON. Returns the schema."""
    spec = app.openapi()
    output_path.write_text(json.dumps(spec, indent=2) + "\n")
    return spec


def main(argv: list[str] | None = None) -> int:
    """Generate the OpenAPI file and print a short summary."""
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("-o", "--output", type=Path, default=DEFAULT_OUTPUT, help="Destination file")
    args = parser.parse_args(argv)

    spec = write_openapi(args.output)
    print(f"✅ Generated: {args.output}")
    print(f"🔢 Version: {spec.get('info', {}).get('version')}")
    print(f"🛣️  Paths: {len(spec.get('paths', {}))}")
    print(f"📦 Schemas: {len(spec.get('components', {}).get('schemas', {}))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
