"""Bijective CLI: check JSON documents against record types."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path


def main():
    """Main CLI entry point for bijective commands."""
    try:
        bijective_version = get_version("bijective")
    except PackageNotFoundError:
        bijective_version = "dev"

    parser = argparse.ArgumentParser(
        prog="bijective",
        description="Bijective: strict one-to-one JSON key/field decoding for pydantic models and dataclasses"
    )
    parser.add_argument("--version", action="version", version=f"bijective {bijective_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--type",
        dest="type_path",
        required=True,
        help="Record type to decode into, as 'package.module:ClassName'"
    )
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log schema and decoder activity at DEBUG level."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check that a JSON document decodes strictly into a record type",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "input",
        type=Path,
        help="Path to the JSON document"
    )
    check_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a decoder config JSON file"
    )
    check_parser.add_argument(
        "--allow-missing-fields",
        action="store_true",
        help="Do not require every required field to be present"
    )
    check_parser.add_argument(
        "--allow-unknown-fields",
        action="store_true",
        help="Skip input keys that match no field instead of failing"
    )
    check_parser.add_argument(
        "--reject-unused-nulls",
        action="store_true",
        help="Treat unmatched keys with null values like any other unmatched key"
    )

    # schema command
    subparsers.add_parser(
        "schema",
        help="Print the field schema derived for a record type",
        parents=[parent_parser]
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Lazy imports: only load what the selected command needs
    from ._internal.canonical_json import report_dumps
    from ._internal.type_paths import import_type
    from .kernel.errors import SchemaError

    try:
        target = import_type(args.type_path)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "schema":
        from .api import BijectiveDecoder

        try:
            schema = BijectiveDecoder().schema_for(target)
        except SchemaError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(report_dumps(schema.to_dict()))
        return

    if args.command == "check":
        from .api import BijectiveDecoder, check
        from .config import DecoderConfig, load_config

        try:
            config = load_config(args.config) if args.config else DecoderConfig()
            overrides = {}
            if args.allow_missing_fields:
                overrides["require_all_class_fields_used"] = False
            if args.allow_unknown_fields:
                overrides["require_all_json_fields_used"] = False
            if args.reject_unused_nulls:
                overrides["allow_unused_nulls"] = False
            if overrides:
                config = config.model_copy(update=overrides)
            data = args.input.read_bytes()
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        result = check(data, target, decoder=BijectiveDecoder(config))
        if not args.quiet:
            status = "OK" if result.ok else "FAILED"
            print(f"[{status}] Check complete")
            print(f"  Type: {result.type_name}")
            print(f"  Status: {status}")
            print(f"  Errors: {len(result.errors)}")
            for issue in result.errors:
                print(f"  - {issue.code}: {issue.message}")
        elif not result.ok:
            for issue in result.errors:
                print(f"{issue.code}: {issue.message}", file=sys.stderr)
        if not result.ok:
            sys.exit(1)


if __name__ == "__main__":
    main()
