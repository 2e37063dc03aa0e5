"""Create the storage bucket with the upload limits enforced server-side.

Usage:
    python scripts/setup_storage.py            # public bucket (default)
    python scripts/setup_storage.py --private  # signed URLs; set SIGNED_URL_TTL_SECONDS
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add project root to path so src.* imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from src.config import settings  # noqa: E402
from src.storage.objects import get_supabase_client  # noqa: E402
from src.videos.pipeline import ALLOWED_CONTENT_TYPES, MAX_UPLOAD_BYTES  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--bucket", default=settings.storage_bucket)
    parser.add_argument("--private", action="store_true", help="Create a private bucket")
    args = parser.parse_args()

    client = get_supabase_client()
    # Metadata documents share the bucket, so JSON is allowed alongside the video types.
    options = {
        "public": not args.private,
        "file_size_limit": MAX_UPLOAD_BYTES,
        "allowed_mime_types": sorted(ALLOWED_CONTENT_TYPES | {"application/json"}),
    }

    existing = {b.name for b in client.storage.list_buckets()}
    if args.bucket in existing:
        client.storage.update_bucket(args.bucket, options)
        print(f"Updated bucket {args.bucket!r}")
    else:
        client.storage.create_bucket(args.bucket, options=options)
        print(f"Created bucket {args.bucket!r}")

    print(f"  public:             {options['public']}")
    print(f"  file_size_limit:    {MAX_UPLOAD_BYTES} bytes")
    print(f"  allowed_mime_types: {', '.join(options['allowed_mime_types'])}")


if __name__ == "__main__":
    main()
