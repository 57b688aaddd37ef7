from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from waterfall import __version__
from waterfall.config import Config, load_config
from waterfall.diagrams.formatting import display_fields
from waterfall.diagrams.text_view import render_text_waterfall
from waterfall.errors import (
    ErrorCode,
    SpanDataError,
    TracePayloadError,
    handle_exception,
    is_verbose,
    make_error,
    set_verbose,
)
from waterfall.layout import build_trace_waterfall
from waterfall.logging_config import configure_logging, get_logger
from waterfall.trace.trace_model import load_trace, summarize_spans

OUTPUT_FORMATS = ["json", "text"]

# Exit code when --strict and the layout had to degrade
EXIT_DIAGNOSTICS = 2


def _write_output(text: str, out: str | None) -> bool:
    if not out:
        print(text)
        return True
    out_path = Path(out)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        make_error(ErrorCode.E303, f"{out_path}: {e}").print()
        return False
    print(f"Wrote {out_path}", file=sys.stderr)
    return True


def _cmd_layout(args: argparse.Namespace, config: Config) -> int:
    """Lay out a trace file and print it as JSON or a text waterfall."""
    logger = get_logger(__name__)
    trace = load_trace(args.trace)
    if not trace.spans:
        make_error(ErrorCode.E106).print()
        return 1

    waterfall = build_trace_waterfall(trace)
    logger.info("Laid out %d span(s) from %s", len(waterfall.spans), args.trace)

    if args.format == "text":
        summary = trace.summary or summarize_spans(trace.spans)
        header = f"Trace {summary.trace_id or '(unknown)'}  {len(waterfall.spans)} span(s)"
        body = render_text_waterfall(
            waterfall,
            width=config.text_width,
            min_bar_width=config.min_bar_width,
        )
        text = f"{header}\n{body}"
    else:
        payload = waterfall.to_dict()
        for span_dict, span in zip(payload["spans"], waterfall.spans):
            span_dict["display"] = display_fields(
                span,
                min_bar_width=config.min_bar_width,
                indent_step=config.indent_px,
            )
        payload["summary"] = (trace.summary or summarize_spans(trace.spans)).to_dict()
        text = json.dumps(payload, indent=2)

    if not _write_output(text, args.out):
        return 1

    warnings = waterfall.diagnostics.warnings
    for line in warnings:
        print(f"⚠️  {line}", file=sys.stderr)
    if warnings and config.strict:
        make_error(ErrorCode.E200, f"{len(warnings)} warning(s)").print()
        return EXIT_DIAGNOSTICS
    return 0


def _cmd_validate(args: argparse.Namespace, config: Config) -> int:
    """Validate trace files against the payload schema."""
    from waterfall.validation import validate_trace_file

    results = []
    for trace_path in args.trace or []:
        result = validate_trace_file(trace_path)
        results.append(result)
        print(result.summary())

    if not results:
        print("No files specified. Use --trace.", file=sys.stderr)
        return 1

    if all(r.valid for r in results):
        return 0
    make_error(ErrorCode.E206).print()
    return 1


def _cmd_show_config(args: argparse.Namespace, config: Config) -> int:
    """Print the effective configuration."""
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="waterfall",
        description="Trace waterfall layout: span hierarchy, timeline positions, render order",
    )

    # Global flags
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging and full tracebacks on errors",
    )
    p.add_argument(
        "--env-file",
        help="Path to a .env file (default: search upward from the current directory)",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help=f"Exit {EXIT_DIAGNOSTICS} when the layout reports orphans, cycles or other warnings",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    p_layout = sub.add_parser(
        "layout",
        help="Compute the waterfall layout of a trace file",
    )
    p_layout.add_argument("--trace", required=True, help="Path to a .json, .yaml or .jsonl trace file")
    p_layout.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="json",
        help="Output format: json (default) or text",
    )
    p_layout.add_argument("--out", help="Write output to this file instead of stdout")
    p_layout.add_argument(
        "--width",
        type=int,
        default=None,
        help="Timeline width in characters for --format text",
    )
    p_layout.set_defaults(func=_cmd_layout)

    p_val = sub.add_parser(
        "validate",
        help="Validate trace files against the payload schema",
    )
    p_val.add_argument(
        "--trace",
        action="append",
        help="Path to trace file to validate (can be repeated)",
    )
    p_val.set_defaults(func=_cmd_validate)

    p_show_config = sub.add_parser(
        "show-config",
        help="Show the effective configuration",
    )
    p_show_config.set_defaults(func=_cmd_show_config)

    return p


def main(argv: list[str] | None = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)

    set_verbose(args.verbose)

    try:
        config = load_config(
            env_file=args.env_file,
            cli_overrides={
                "strict": args.strict,
                "text_width": getattr(args, "width", None),
            },
        )
    except ValueError as e:
        handle_exception(e, ErrorCode.E001, str(e))
        raise SystemExit(1)

    configure_logging(level=config.log_level, verbose=args.verbose)

    try:
        rc = args.func(args, config)
        raise SystemExit(rc)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user", file=sys.stderr)
        raise SystemExit(130)
    except FileNotFoundError as e:
        handle_exception(e, ErrorCode.E005, str(e.filename or e))
        raise SystemExit(1)
    except SpanDataError as e:
        handle_exception(e, ErrorCode.E203, str(e))
        raise SystemExit(1)
    except TracePayloadError as e:
        handle_exception(e, ErrorCode.E201, str(e))
        raise SystemExit(1)
    except OSError as e:
        handle_exception(e, ErrorCode.E302, str(e))
        raise SystemExit(1)
    except Exception as e:
        if is_verbose():
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
            print("Run with --verbose for full traceback", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
