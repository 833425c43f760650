#!/usr/bin/env python3
"""CLI entrypoint for the tech radar issue sync."""
from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import date
from pathlib import Path

from tech_radar.radar_sync import config, errors, event, merge, store, sync
from tech_radar.radar_sync.document import entry_department, parse_document, serialize_document
from tech_radar.radar_sync.extract import extract_fields
from tech_radar.radar_sync.paths import resolve_path

logger = logging.getLogger("tech_radar.radar_sync.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def build_config(args: argparse.Namespace) -> config.RadarConfig:
    return config.RadarConfig.from_env(
        label=args.label,
        base_dir=args.target_directory,
        policy=args.policy,
        strictness=args.strictness,
        require_department=args.require_department,
    )


def resolve_token(value: str | None) -> str | None:
    if value:
        return value
    return os.environ.get("INPUT_GH-TOKEN") or os.environ.get("GITHUB_TOKEN")


def build_store(args: argparse.Namespace) -> store.ContentStore:
    if args.local_root:
        root = Path(args.local_root).expanduser().resolve()
        return store.LocalContentStore(root, branch=args.branch)
    repo = args.repo or os.environ.get("GITHUB_REPOSITORY")
    if not repo:
        raise SystemExit("No repository given. Use --repo or set GITHUB_REPOSITORY.")
    return store.GitHubContentStore(repo, token=resolve_token(args.token))


def load_event(args: argparse.Namespace) -> event.IssueEvent:
    event_path = args.event or os.environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        raise SystemExit("No event payload given. Use --event or set GITHUB_EVENT_PATH.")
    event_name = args.event_name or os.environ.get("GITHUB_EVENT_NAME") or event.ISSUES_EVENT
    return event.IssueEvent.from_file(Path(event_path), event_name)


def event_from_body(args: argparse.Namespace) -> event.IssueEvent:
    body = Path(args.body).read_text(encoding="utf-8")
    return event.IssueEvent(
        event_name=event.ISSUES_EVENT,
        action=event.CLOSED_ACTION,
        number=args.issue_number,
        title=args.issue_title,
        body=body,
        html_url=args.issue_url or "",
        user_login=args.login,
        user_url=args.login_url or f"https://github.com/{args.login}",
    )


def parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def command_process(args: argparse.Namespace) -> None:
    radar_config = build_config(args)
    runner = sync.RadarSync(radar_config, build_store(args))
    outcome = runner.process(load_event(args))
    logger.debug("Outcome: %s", outcome)


def command_extract(args: argparse.Namespace) -> None:
    issue_event = event_from_body(args)
    if args.fields_only:
        print(json.dumps(extract_fields(issue_event.body), indent=2, ensure_ascii=False))
        return
    runner = sync.RadarSync(build_config(args), store.LocalContentStore(Path.cwd()))
    record = runner.build_record(issue_event, today=parse_date(args.date))
    print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))


def command_preview(args: argparse.Namespace) -> None:
    radar_config = build_config(args)
    issue_event = event_from_body(args)
    runner = sync.RadarSync(radar_config, store.LocalContentStore(Path.cwd()))
    record = runner.build_record(issue_event, today=parse_date(args.date))
    path = resolve_path(record, radar_config.policy, radar_config.base_dir)
    existing = Path(args.existing).read_text(encoding="utf-8") if args.existing else None
    result: merge.MergeResult = runner.plan(record, existing, path)
    logger.info("Would %s %s", result.action.value.replace("_", " "), path)
    print(serialize_document(result.document), end="")


def command_check(args: argparse.Namespace) -> None:
    text = Path(args.document).read_text(encoding="utf-8")
    document = parse_document(text)
    print("Heading".ljust(50), "Department")
    print("-" * 70)
    for section in document.sections:
        department = entry_department(section) or "-"
        print((section.heading or "(preamble)").ljust(50), department)
    if document.unclosed_front_matter:
        print("\nfront-matter: unterminated")
    if document.unclosed_fence:
        print("\ncode fence: unterminated")
    if serialize_document(document) != text.replace("\r\n", "\n"):
        raise SystemExit("Document does not round-trip")


def add_body_arguments(parser_obj: argparse.ArgumentParser) -> None:
    parser_obj.add_argument("body", help="File holding the issue body")
    parser_obj.add_argument("--issue-number", type=int, default=0, help="Issue number")
    parser_obj.add_argument("--issue-title", default="", help="Native issue title")
    parser_obj.add_argument("--issue-url", help="Issue URL used in the provenance line")
    parser_obj.add_argument("--login", default="unknown", help="Submitter login")
    parser_obj.add_argument("--login-url", help="Submitter profile URL")
    parser_obj.add_argument("--date", help="Override the processing date (YYYY-MM-DD)")


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Sync tech radar issues into markdown")
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser_obj.add_argument("--label", help="Required issue label (default: tech-radar)")
    parser_obj.add_argument(
        "--target-directory", help="Base storage directory (default: radar)"
    )
    parser_obj.add_argument(
        "--policy",
        help="Storage policy: flat-by-issue, dated-by-title or title-with-department-sections",
    )
    parser_obj.add_argument("--strictness", help="Validation stance: strict or lenient")
    parser_obj.add_argument(
        "--require-department",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Reject submissions without a Department answer",
    )
    subparsers = parser_obj.add_subparsers(dest="command")

    process_parser = subparsers.add_parser("process", help="Process a closed issue event")
    process_parser.add_argument("--event", help="Event payload file (overrides GITHUB_EVENT_PATH)")
    process_parser.add_argument("--event-name", help="Event name (overrides GITHUB_EVENT_NAME)")
    process_parser.add_argument("--repo", help="owner/name (overrides GITHUB_REPOSITORY)")
    process_parser.add_argument("--token", help="GitHub token (overrides INPUT_GH-TOKEN)")
    process_parser.add_argument("--local-root", help="Write into a local directory instead")
    process_parser.add_argument("--branch", default="main", help="Branch name for --local-root")
    process_parser.set_defaults(func=command_process)

    extract_parser = subparsers.add_parser("extract", help="Print the record parsed from a body")
    add_body_arguments(extract_parser)
    extract_parser.add_argument(
        "--fields-only", action="store_true", help="Print raw extracted fields"
    )
    extract_parser.set_defaults(func=command_extract)

    preview_parser = subparsers.add_parser("preview", help="Print the merged document")
    add_body_arguments(preview_parser)
    preview_parser.add_argument("--existing", help="Existing document to merge into")
    preview_parser.set_defaults(func=command_preview)

    check_parser = subparsers.add_parser("check", help="List sections of a stored document")
    check_parser.add_argument("document", help="Markdown document to inspect")
    check_parser.set_defaults(func=command_check)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    try:
        args.func(args)
    except (errors.RadarSyncError, ValueError) as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()
