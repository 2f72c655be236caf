from __future__ import annotations

import argparse
import json
from pathlib import Path

from bookings_api.api.app import create_app


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the OpenAPI document.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("docs/openapi.json"),
        help="Destination file for the OpenAPI JSON.",
    )
    return parser.parse_args()


def main() -> None:
    """Export OpenAPI spec from the FastAPI app."""
    args = parse_args()
    spec = create_app().openapi()
    output: Path = args.output
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        json.dumps(spec, indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    print(f"OpenAPI exported to {output}")


if __name__ == "__main__":
    main()
