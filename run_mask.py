#!/usr/bin/env python
"""Mask JSON payloads with a JSON Schema from the command line."""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from jsonmask import (
    EngineConfig,
    JsonMaskError,
    MaskRunner,
    SchemaError,
    to_string,
)


def build_config(args) -> EngineConfig:
    config = EngineConfig.from_file(args.config) if args.config else EngineConfig()

    overrides = {}
    if args.max_depth is not None:
        overrides["max_depth"] = args.max_depth
    if args.strict_one_of:
        overrides["strict_one_of"] = True
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return replace(config, **overrides)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Filter JSON payloads down to the fields a JSON Schema allows",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_mask.py mask.yaml payload.json
  python run_mask.py mask.yaml payload.json masked.json --pretty
  python run_mask.py mask.yaml payloads/ masked/ --report report.json
        """
    )

    parser.add_argument("schema", help="Path to YAML/JSON schema file")
    parser.add_argument("input", help="JSON file, or folder of JSON files, to mask")
    parser.add_argument("output", nargs="?", help="Output file or folder (stdout if omitted)")

    parser.add_argument("-c", "--config", help="Path to YAML/JSON engine config")
    parser.add_argument("--max-depth", type=int, help="Maximum recursion depth")
    parser.add_argument("--strict-one-of", action="store_true", help="Reject oneOf values matching several branches")
    parser.add_argument("-p", "--pretty", action="store_true", help="Indent JSON output")
    parser.add_argument("-r", "--report", help="Write a JSON run report (folder mode)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: Invalid config: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level.value,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not Path(args.schema).exists():
        print(f"Error: Schema file not found: {args.schema}", file=sys.stderr)
        return 2

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input not found: {args.input}", file=sys.stderr)
        return 2

    runner = MaskRunner(args.schema, config)

    try:
        if input_path.is_dir():
            report = runner.run(
                str(input_path),
                output_folder=args.output,
                pretty=args.pretty,
                print_report=not args.quiet
            )
            if args.report:
                with open(args.report, 'w') as f:
                    json.dump(report.to_dict(), indent=2, fp=f)
            return 2 if report.failed else 0

        result = runner.mask_file(str(input_path))
    except SchemaError as e:
        print(f"Error: Invalid schema: {e}", file=sys.stderr)
        return 2
    except JsonMaskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if not result.matched:
        if not args.quiet:
            print("Input was rejected by the schema; nothing to output", file=sys.stderr)
        return 1

    text = to_string(result, pretty=args.pretty)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding='utf-8')
        if not args.quiet:
            print(f"Masked output saved to: {args.output}", file=sys.stderr)
    else:
        print(text)

    return 0


if __name__ == "__main__":
    sys.exit(main())
