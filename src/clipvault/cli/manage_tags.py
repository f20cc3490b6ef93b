"""CLI command for tag CRUD and tag assignment."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from clipvault.config import ClipvaultSettings, configure_logging
from clipvault.search.repository import HighlightRepository, StorageError, StoreConnectionError
from clipvault.search.schema import DEFAULT_TAG_COLOR


load_dotenv()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage highlight tags")
    parser.add_argument("--db-path", default=None, help="SQLite database path (default from CLIPVAULT_DB_PATH)")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List all tags")

    create = commands.add_parser("create", help="Create a tag")
    create.add_argument("--name", required=True)
    create.add_argument("--color", default=DEFAULT_TAG_COLOR)

    update = commands.add_parser("update", help="Rename or recolor a tag")
    update.add_argument("--tag-id", type=int, required=True)
    update.add_argument("--name", required=True)
    update.add_argument("--color", default=DEFAULT_TAG_COLOR)

    delete = commands.add_parser("delete", help="Delete a tag and its assignments")
    delete.add_argument("--tag-id", type=int, required=True)

    for name in ("assign", "unassign"):
        link = commands.add_parser(name, help=f"{name.capitalize()} a tag on a highlight")
        link.add_argument("--tag-id", type=int, required=True)
        link.add_argument("--highlight-id", type=int, required=True)

    return parser.parse_args(argv)


def _run(repository: HighlightRepository, args: argparse.Namespace) -> dict[str, object]:
    if args.command == "list":
        return {"tags": [tag.to_dict() for tag in repository.list_tags()]}
    if args.command == "create":
        tag_id = repository.create_tag(args.name, args.color)
        return {"created": True, "tag_id": tag_id}
    if args.command == "update":
        return {"updated": repository.update_tag(args.tag_id, name=args.name, color=args.color), "tag_id": args.tag_id}
    if args.command == "delete":
        return {"deleted": repository.delete_tag(args.tag_id), "tag_id": args.tag_id}

    if args.command == "assign":
        repository.add_tag_to_highlight(args.tag_id, args.highlight_id)
    else:
        repository.remove_tag_from_highlight(args.tag_id, args.highlight_id)
    return {
        "highlight_id": args.highlight_id,
        "tags": [tag.to_dict() for tag in repository.get_tags_for_highlight(args.highlight_id)],
    }


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = ClipvaultSettings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings)

    db_path = Path(args.db_path) if args.db_path else settings.db_path
    try:
        with HighlightRepository(db_path) as repository:
            payload = {"command": args.command, **_run(repository, args)}
    except StoreConnectionError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except (StorageError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
