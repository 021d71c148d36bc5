#!/usr/bin/env python3
"""
Dev helper: send a test form submission to the local backend.

Builds a waste-collection (or simple contact) submission, optionally
attaches images, and POST-s it to /send-email as multipart form data.

Usage
-----
# Basic: waste-collection form with coordinates, targeting localhost:5000
python scripts/send_test_submission.py

# Attach images (up to 5)
python scripts/send_test_submission.py --image bin1.jpg --image bin2.png

# Free-text location instead of coordinates
python scripts/send_test_submission.py --location "near the lake"

# Simple contact form variant (name / phone / location / email)
python scripts/send_test_submission.py --form simple

# Print what would be sent without sending it
python scripts/send_test_submission.py --dry-run

# Just hit /health
python scripts/send_test_submission.py --health
"""

import argparse
import json
import mimetypes
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Sample submissions
# ---------------------------------------------------------------------------

def _waste_collection_fields(location: str) -> dict:
    return {
        "name": "Test Submitter",
        "contactNumber": "+91 98450 00000",
        "area": "Jayanagar",
        "locality": "4th Block",
        "wasteType": "Plastic",
        "wasteAmount": "2 bags",
        "location": location,
    }


def _simple_fields(location: str) -> dict:
    return {
        "name": "Test Submitter",
        "phone": "+91 98450 00000",
        "email": "submitter@example.com",
        "location": location,
    }


_FORM_BUILDERS = {
    "waste": _waste_collection_fields,
    "simple": _simple_fields,
}

_DEFAULT_LOCATION = json.dumps({"lat": 12.9716, "lng": 77.5946})


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_submission.py",
        description="Send a test form submission to the form mailer backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_submission.py
              python scripts/send_test_submission.py --image bin.jpg
              python scripts/send_test_submission.py --form simple --location "MG Road"
              python scripts/send_test_submission.py --url http://localhost:8000
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:5000",
        help="Backend base URL (default: http://localhost:5000)",
    )
    parser.add_argument(
        "--form",
        default="waste",
        choices=list(_FORM_BUILDERS),
        help="Which form variant to imitate (default: waste)",
    )
    parser.add_argument(
        "--location",
        default=_DEFAULT_LOCATION,
        help="Location value, plain text or JSON (default: Bengaluru coordinates)",
    )
    parser.add_argument(
        "--image",
        action="append",
        default=[],
        metavar="PATH",
        help="Image file to attach; repeat for several.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the submission without sending it.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        help="Only call GET /health.",
    )

    args = parser.parse_args()
    base_url = args.url.rstrip("/")

    if args.health:
        try:
            _print_response(httpx.get(f"{base_url}/health", timeout=30))
        except httpx.HTTPError as exc:
            print(f"\nERROR: {exc}", file=sys.stderr)
            return 1
        return 0

    fields = _FORM_BUILDERS[args.form](args.location)

    files = []
    for raw_path in args.image:
        path = Path(raw_path)
        if not path.exists():
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            return 1
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        files.append(("images", (path.name, path.read_bytes(), content_type)))
        print(f"Attaching image: {path} ({path.stat().st_size:,} bytes, {content_type})")

    endpoint = f"{base_url}/send-email"
    print(f"\nEndpoint : {endpoint}")
    print(f"Form     : {args.form}")
    print(f"Images   : {len(files)}")

    if args.dry_run:
        print("\n[DRY RUN] Fields:")
        print(json.dumps(fields, indent=2))
        return 0

    try:
        response = httpx.post(endpoint, data=fields, files=files or None, timeout=30)
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload --port 5000",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
