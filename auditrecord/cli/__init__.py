"""auditrecord CLI.

Provides command-line access to:
- Fingerprinting configuration files into a compliance audit record
- Inspecting the effective audit filter
"""

import argparse
import json
import sys

from .. import __version__

OUTPUT_FORMATS = ("json", "pretty", "text", "url")


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="auditrecord",
        description="Build and inspect redacted audit records",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: from settings)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # fingerprint command
    fingerprint_parser = subparsers.add_parser(
        "fingerprint",
        help="Record file fingerprints as a compliance event",
        description="Build a COMPLIANCE_EXTERNAL_CONFIG record with SHA-256 fingerprints of files",
    )
    fingerprint_parser.add_argument(
        "files",
        nargs="+",
        metavar="KEY=PATH",
        help="Logical key and file path (a bare path uses itself as key)",
    )
    fingerprint_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="json",
        dest="output_format",
        help="Output format (default: json)",
    )

    # filter command
    filter_parser = subparsers.add_parser(
        "filter",
        help="Show the effective audit filter",
        description="Load the audit filter from a file or the environment and print it",
    )
    filter_parser.add_argument(
        "--path",
        default=None,
        help="Audit filter YAML file (default: AUDIT_FILTER_PATH or environment)",
    )
    filter_parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON",
    )

    return parser


def parse_file_args(values: list[str]) -> dict[str, str]:
    """Parse ``KEY=PATH`` arguments into an ordered mapping."""
    paths = {}
    for value in values:
        key, sep, path = value.partition("=")
        if not sep:
            key, path = value, value
        if not key or not path:
            raise ValueError(f"Invalid file argument: {value!r}")
        paths[key] = path
    return paths


def render_message(message, output_format: str) -> str:
    """Render an audit message in the requested format."""
    if output_format == "pretty":
        return message.to_pretty_json()
    if output_format == "text":
        return message.to_text()
    if output_format == "url":
        return message.to_url_parameters()
    return message.to_json()


def run_fingerprint(args: argparse.Namespace) -> int:
    """Run the fingerprint command."""
    from ..audit import AuditCategory, AuditMessageBuilder, ClusterInfo, Origin
    from ..config.settings import get_settings

    paths = parse_file_args(args.files)

    builder = AuditMessageBuilder(
        AuditCategory.COMPLIANCE_EXTERNAL_CONFIG,
        ClusterInfo.from_settings(get_settings()),
        origin=Origin.LOCAL,
    )
    builder.add_file_infos(paths)
    message = builder.build()

    print(render_message(message, args.output_format))

    recorded = len(message.get("audit_compliance_file_infos", []))
    if recorded < len(paths):
        print(f"Skipped {len(paths) - recorded} unreadable file(s)", file=sys.stderr)
    return 0


def run_filter(args: argparse.Namespace) -> int:
    """Run the filter command."""
    from ..audit import load_filter

    audit_filter = load_filter(args.path)

    if args.json_output:
        print(json.dumps(audit_filter.model_dump(), indent=2))
        return 0

    print(f"Exclude sensitive headers: {audit_filter.exclude_sensitive_headers}")
    print(f"Log request body:          {audit_filter.log_request_body}")
    print(f"Ignored headers:           {', '.join(audit_filter.ignore_headers) or '-'}")
    print(f"Ignored URL params:        {', '.join(audit_filter.ignore_url_params) or '-'}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from ..config import configure_logging

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(args.log_level)

    try:
        if args.command == "fingerprint":
            return run_fingerprint(args)
        elif args.command == "filter":
            return run_filter(args)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
