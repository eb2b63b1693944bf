from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from chainkit.errors import PipelineError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitechain", add_help=True)
    parser.add_argument(
        "--config",
        default=None,
        help="Explicit config path (otherwise uses SITECHAIN_CONFIG or config/config.yaml + config/config.local.yaml).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    chains = sub.add_parser("chains", help="List the effective chain table in precedence order")
    chains.add_argument("--json", action="store_true", help="Emit JSON")

    resolve = sub.add_parser("resolve", help="Show the chain each path dispatches to")
    resolve.add_argument("paths", nargs="+")
    resolve.add_argument("--json", action="store_true", help="Emit JSON")

    steps = sub.add_parser("steps", help="List registered step ids")
    steps.add_argument("--json", action="store_true", help="Emit JSON")

    sub.add_parser("validate", help="Check every chain step id is registered")

    return parser


def _print_json(value: Any) -> None:
    sys.stdout.write(json.dumps(value, ensure_ascii=False, indent=2))
    sys.stdout.write("\n")


def _load_pipeline(config_path: str | None):
    from sitechain.foundation.config_io import load_config
    from sitechain.foundation.logging_utils import setup_operational_logger
    from sitechain.framework.config import PipelineConfig
    from sitechain.framework.pipeline import Pipeline

    raw, _meta = load_config(config_path)
    cfg, warnings = PipelineConfig.from_dict(raw)
    logger = setup_operational_logger("sitechain", level=cfg.log_level)
    for warning in warnings:
        logger.warning(warning)
    # Validation is reported by the `validate` command, not at load time.
    return Pipeline.from_config(replace(cfg, strict=False), logger=logger)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        pipeline = _load_pipeline(args.config)

        if args.command == "chains":
            rows = pipeline.table.describe()
            if args.json:
                _print_json(list(rows))
            else:
                for row in rows:
                    sys.stdout.write(f"{row['matcher']}\t{' -> '.join(row['chain'])}\n")
            return 0

        if args.command == "resolve":
            resolved = {path: list(pipeline.table.resolve(path)) for path in args.paths}
            if args.json:
                _print_json(resolved)
            else:
                for path, chain in resolved.items():
                    sys.stdout.write(f"{path}\t{' -> '.join(chain) or '<no chain>'}\n")
            return 0

        if args.command == "steps":
            rows = pipeline.registry.describe()
            if args.json:
                _print_json(list(rows))
            else:
                for row in rows:
                    sys.stdout.write(f"{row['step_id']}\t{row['doc'] or ''}\n")
            return 0

        if args.command == "validate":
            pipeline.table.validate(pipeline.registry)
            sys.stdout.write("All chain step ids are registered\n")
            return 0
    except (PipelineError, OSError, ValueError, TypeError) as exc:
        sys.stderr.write(f"sitechain: {exc}\n")
        return 2

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
