"""CLI for rental-sync - image sync operations.

Usage:
    rental-sync status                         # Show configured credentials
    rental-sync serve [--host H] [--port P]    # Run the webhook server
    rental-sync sync <slug> <folder-url>       # Sync one property now
    rental-sync gallery <slug>                 # List a property's stored images
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys


def _configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def cmd_status() -> int:
    """Show status of all configured credentials."""
    from rental_sync.config import get_credential_status

    status = get_credential_status()

    print("=" * 60)
    print("RENTAL-SYNC CONFIGURATION STATUS")
    print("=" * 60)
    print()
    print(f"Repository: {status['repo_root']}")
    print(f".env:       {'[x]' if status['env_file'] else '[ ]'}")
    print()

    print("Google Drive:")
    print(f"  API key:          {'[x]' if status['drive']['api_key'] else '[ ]'}")
    print(f"  Service account:  {'[x]' if status['drive']['service_account'] else '[ ]'}")
    print()

    print("Webhook:")
    print(f"  Shared secret:    {'[x]' if status['webhook']['secret'] else '[ ]'}")
    print()

    print("Object store:")
    print(f"  Endpoint:         {'[x]' if status['storage']['endpoint'] else '[ ]'}")
    print(f"  Access key:       {'[x]' if status['storage']['access_key'] else '[ ]'}")
    print(f"  Public URL:       {'[x]' if status['storage']['public_url'] else '[ ]'}")
    print(f"  Bucket:           {status['storage']['bucket']}")
    print()

    if not (status["drive"]["api_key"] or status["drive"]["service_account"]):
        print("Set GOOGLE_DRIVE_API_KEY or GOOGLE_SERVICE_ACCOUNT_JSON to enable syncs")
        return 1
    return 0


def cmd_serve(host: str | None, port: int | None, verbose: bool = False) -> int:
    """Run the webhook server."""
    import uvicorn

    from rental_sync.config import Settings
    from rental_sync.webhook import create_app

    _configure_logging(verbose)
    settings = Settings.from_env()
    if not settings.webhook_secret:
        logging.getLogger(__name__).warning(
            "WEBHOOK_SECRET not set - webhook accepts unauthenticated calls"
        )

    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
    )
    return 0


def cmd_sync(slug: str, folder_ref: str, record_id: str | None, verbose: bool = False) -> int:
    """Sync one property's images now."""
    from rental_sync.config import Settings
    from rental_sync.exceptions import SyncError
    from rental_sync.sync import ImageSync, SyncRequest

    _configure_logging(verbose)
    syncer = ImageSync.from_settings(Settings.from_env())
    request = SyncRequest(slug=slug, drive_folder_ref=folder_ref, record_id=record_id)

    try:
        result = syncer.sync(request)
    except SyncError as e:
        print(f"Error ({e.http_status}): {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


def cmd_gallery(slug: str) -> int:
    """List a property's stored images in order."""
    from rental_sync.config import Settings
    from rental_sync.exceptions import ObjectStoreError
    from rental_sync.sync import ImageSync

    store = ImageSync.from_settings(Settings.from_env()).store

    try:
        keys = store.gallery(slug)
    except ObjectStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not keys:
        print(f"No images stored for {slug}")
        return 0

    for key in keys:
        print(store.url_for(key) or key)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="rental-sync",
        description="Replicate property images from Google Drive into object storage",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # status command
    subparsers.add_parser("status", help="Show configured credentials")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the webhook server")
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")

    # sync command
    sync_parser = subparsers.add_parser("sync", help="Sync one property now")
    sync_parser.add_argument("slug", help="Property slug")
    sync_parser.add_argument("folder", help="Drive folder URL or ID")
    sync_parser.add_argument("--record-id", type=str, default=None, help="Source record ID")

    # gallery command
    gallery_parser = subparsers.add_parser("gallery", help="List stored images")
    gallery_parser.add_argument("slug", help="Property slug")

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "status":
        return cmd_status()

    if args.command == "serve":
        return cmd_serve(args.host, args.port, args.verbose)

    if args.command == "sync":
        return cmd_sync(args.slug, args.folder, args.record_id, args.verbose)

    if args.command == "gallery":
        return cmd_gallery(args.slug)

    return 0


if __name__ == "__main__":
    sys.exit(main())
