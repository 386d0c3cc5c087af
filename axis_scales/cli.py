from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
import sys
from typing import Any, Sequence

from axis_scales.engine import ScaleEngine
from axis_scales.errors import ScaleError
from axis_scales.scale import ResolvedScale
from axis_scales.transforms import transform_names

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV = "AXIS_SCALES_LOG_LEVEL"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="axis-scales")
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        help=f"Logging level. Default: ${LOG_LEVEL_ENV} or WARNING.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve scales for a data file against a TOML scale config.")
    resolve.add_argument("config", type=Path)
    resolve.add_argument(
        "--data",
        type=Path,
        required=True,
        help="JSON object of aesthetic -> values, or a list of such objects (one per panel).",
    )
    resolve.add_argument("--shared", default="", help="Comma-separated aesthetics trained across all panels.")
    resolve.add_argument("--json", action="store_true", help="Print JSON instead of a text summary.")

    sub.add_parser("transforms", help="List built-in transform names.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=str(args.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "transforms":
        for name in transform_names():
            print(name)
        return 0

    try:
        return _run_resolve(args)
    except (ScaleError, FileNotFoundError) as exc:
        LOGGER.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2


def _run_resolve(args: argparse.Namespace) -> int:
    engine = ScaleEngine.from_file(args.config)
    payload = _load_data(args.data)
    shared = [s.strip() for s in args.shared.split(",") if s.strip()]
    if isinstance(payload, list):
        panels = engine.resolve_panels(payload, shared=shared)
    else:
        if shared:
            LOGGER.info("--shared ignored for a single panel")
        panels = [engine.resolve(payload)]

    if args.json:
        out: Any = [{name: scale.to_dict() for name, scale in panel.items()} for panel in panels]
        print(json.dumps(out if isinstance(payload, list) else out[0], indent=2))
        return 0
    for i, panel in enumerate(panels):
        if len(panels) > 1:
            print(f"panel {i + 1}")
        for scale in panel.values():
            print(format_summary(scale))
    return 0


def _load_data(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"data file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise ScaleError(f"invalid JSON in {path}: {exc}") from exc


def format_summary(scale: ResolvedScale) -> str:
    lower, upper = scale.display_range.as_tuple()
    lines = [f"[{scale.aesthetic}] {scale.kind} ({scale.transform}) display=[{lower:g}, {upper:g}]"]
    for brk in scale.break_list():
        lines.append(f"  {brk.position:g}\t{brk.label}")
    if scale.minor_breaks:
        lines.append("  minor: " + ", ".join(f"{m:g}" for m in scale.minor_breaks))
    for warning in scale.warnings:
        lines.append(f"  warning: {warning}")
    return "\n".join(lines)


if __name__ == "__main__":
    raise SystemExit(main())
