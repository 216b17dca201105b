from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merge
(defaults, optional JSON file, command-line overrides), one-shot rendering
or the watch loop, and report rendering. Exit codes: 0 success, 1 at least
one file failed, 2 unusable configuration, 130 interrupted.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional

from simple_include.core.pipeline.stages.renderer import render_tree
from simple_include.core.pipeline.stages.validator import validate_config
from simple_include.core.services.watcher import WatchCoordinator
from simple_include.domain.config import get_default_config, load_config
from simple_include.domain.render_models import RenderReport
from simple_include.infra.fs import normalize_path
from simple_include.infra.logging import (
    LoggingConfig,
    configure_logging,
    get_logger,
    shutdown_logging,
)
from simple_include.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_RENDER_FAILED = 1
EXIT_BAD_CONFIG = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the CLI workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code.
    """
    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (console on stderr, optional rotating file)
    configure_logging(LoggingConfig.from_flags(args.debug, args.verbose, args.log_file))

    try:
        return _run(args)
    finally:
        shutdown_logging()


def _run(args: Any) -> int:
    # 3. Resolve base configuration (defaults vs config file)
    if args.config_file:
        base_conf = load_config(args.config_file)
    else:
        base_conf = get_default_config()

    # 4. Map and merge command-line overrides
    raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))

    # 5. Validation and normalization
    conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        print(json.dumps(conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    # 6. Pre-flight path verification
    source = normalize_path(conf["source"], ".")
    target = normalize_path(conf["target"], "target")

    if not os.path.isdir(source):
        _print_error(f"Source directory does not exist: '{source}'")
        return EXIT_BAD_CONFIG

    if source == target:
        _print_error(f"Source and target directories must differ: '{source}'")
        return EXIT_BAD_CONFIG

    try:
        if conf["watch"]:
            return _run_watch(source, target, conf, args.json_output)
        return _run_once(source, target, conf, args.json_output)
    except NotADirectoryError as e:
        _print_error(str(e))
        return EXIT_BAD_CONFIG
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED

# -----------------------------------------------------------------------------
# EXECUTION MODES
# -----------------------------------------------------------------------------

def _run_once(source: str, target: str, conf: Dict[str, Any], json_output: bool) -> int:
    report = render_tree(
        source,
        target,
        conf["include_prefix"],
        binary_includes=conf["binary_includes"],
        max_workers=conf["workers"] or None,
        max_scan_bytes=conf["max_scan_bytes"] or None,
    )
    _emit(report, conf["verbose"], json_output, watching=False)
    return EXIT_OK if report.ok else EXIT_RENDER_FAILED


def _run_watch(source: str, target: str, conf: Dict[str, Any], json_output: bool) -> int:
    coordinator = WatchCoordinator(
        source,
        target,
        conf["include_prefix"],
        binary_includes=conf["binary_includes"],
        debounce_ms=conf["debounce_ms"],
        max_workers=conf["workers"] or None,
        max_scan_bytes=conf["max_scan_bytes"] or None,
    )

    with coordinator:
        initial = coordinator.start(initial_render=True)
        if initial is not None:
            _emit(initial, conf["verbose"], json_output, watching=True)
        if conf["verbose"] and not json_output:
            print(f"Watching for changes in '{source}', writing to '{target}'")

        try:
            for report in coordinator.reports():
                _emit(report, conf["verbose"], json_output, watching=True)
        except KeyboardInterrupt:
            # Ctrl-C is the normal way to leave watch mode
            logger.info("Watch interrupted by user.")

    return EXIT_OK

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge non-None overrides for keys known to the base configuration.
    """
    out = dict(base)
    for k, v in overrides.items():
        if k in out and v is not None:
            out[k] = v
    return out

# -----------------------------------------------------------------------------
# VIEW RENDERING
# -----------------------------------------------------------------------------

def _emit(report: RenderReport, verbose: bool, json_output: bool, watching: bool) -> None:
    if json_output:
        # One JSON document per line so watch output stays parseable
        print(json.dumps(report.to_dict(), ensure_ascii=False), flush=True)
        return
    _print_human_summary(report, verbose, watching)


def _print_human_summary(report: RenderReport, verbose: bool, watching: bool) -> None:
    """
    Print per-file lines (verbose), then failures and counters.

    Args:
        report: The render report to display.
        verbose: Print input/output paths and include relations.
        watching: Whether the watch loop is running.
    """
    if verbose:
        suffix = " and will be regenerated after any changes" if watching else ""
        for outcome in report.outcomes:
            if not outcome.ok:
                continue
            print(f"Input '{outcome.input_path}', Output '{outcome.output_path}'")
            for included in sorted(outcome.includes):
                print(f"The file '{outcome.input_path}' includes '{included}'{suffix}")

    for outcome in report.failures:
        kind = outcome.error.kind.value if outcome.error else "Error"
        print(f"ERROR [{kind}] {outcome.error}", file=sys.stderr)

    counters = report.counters
    if verbose or counters["failed"]:
        print(
            f"Rendered: {counters['rendered']}, Copied: {counters['copied']}, "
            f"Failed: {counters['failed']}"
        )
    sys.stdout.flush()


def _print_error(msg: str) -> None:
    logger.error(msg)
    print(f"ERROR: {msg}", file=sys.stderr)

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
