"""CLI for uploading videos to several hosting providers in one go."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from multihost.config import UploaderConfig, get_config
from multihost.credentials import CredentialStore
from multihost.errors import MultiHostError, UploadValidationError
from multihost.history import UploadHistory
from multihost.models import UploadOptions
from multihost.providers.registry import build_registry
from multihost.records import InMemoryRecordStore
from multihost.service.upload_service import IncomingFile, UploadOrchestrator

LOGGER = logging.getLogger("multihost.scripts.upload_videos")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_orchestrator(config: UploaderConfig, *, http=None) -> UploadOrchestrator:
    """Wire an orchestrator whose credentials come from the environment."""
    records = InMemoryRecordStore()
    credentials = CredentialStore(records)
    credentials.seed(config.local_user_id, config.provider_keys)
    registry = build_registry(credentials, config, http=http)
    return UploadOrchestrator(registry, config, history=UploadHistory(records, limit=config.history_limit))


def load_files(paths: Sequence[Path]) -> list[IncomingFile]:
    files: list[IncomingFile] = []
    for path in paths:
        if not path.is_file():
            raise UploadValidationError(f"File not found: {path}")
        content_type = mimetypes.guess_type(path.name)[0]
        files.append(IncomingFile(filename=path.name, content=path.read_bytes(), content_type=content_type))
    return files


def _print_outcome(outcome: dict) -> None:
    if outcome.get("success"):
        print(f"  {outcome['provider']:<11} ok      {outcome.get('url') or outcome.get('id') or ''}")
    else:
        print(f"  {outcome['provider']:<11} failed  {outcome.get('error')}")


def _print_summary(payload: dict) -> None:
    for row in payload.get("results") or []:
        if "uploads" in row:
            print(f"{row['filename']}: {row['status']}")
            for outcome in row["uploads"]:
                _print_outcome(outcome)
        else:
            _print_outcome(row)
    print(payload["message"])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Upload videos to DoodStream, StreamTape, VidGuard and BigWarp simultaneously.",
    )
    parser.add_argument(
        "videos",
        nargs="*",
        type=Path,
        help="Video files to upload.",
    )
    parser.add_argument(
        "--remote-url",
        help="Ask providers to fetch this URL instead of uploading local files.",
    )
    parser.add_argument(
        "--providers",
        required=True,
        help="Comma separated provider ids, e.g. doodstream,vidguard.",
    )
    parser.add_argument(
        "--folder",
        help="Destination folder id on the providers (default: root).",
    )
    parser.add_argument(
        "--description",
        help="Title/description sent with the upload where supported.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw result as JSON.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )
    return parser


def main(argv: Sequence[str] | None = None, *, http=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)
    load_dotenv()
    config = get_config()
    orchestrator = build_orchestrator(config, http=http)
    providers = [name.strip() for name in args.providers.split(",") if name.strip()]
    options = UploadOptions(folder_id=args.folder, description=args.description)

    try:
        if args.remote_url:
            result = asyncio.run(
                orchestrator.upload_remote(config.local_user_id, args.remote_url, providers, options)
            )
        else:
            if not args.videos:
                raise UploadValidationError("No files provided")
            files = load_files(args.videos)
            result = asyncio.run(orchestrator.upload_files(config.local_user_id, files, providers, options))
    except UploadValidationError as exc:
        LOGGER.error("%s", exc)
        return 2
    except MultiHostError as exc:
        LOGGER.error("Upload failed: %s", exc)
        return 1

    payload = result.as_dict()
    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        _print_summary(payload)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
