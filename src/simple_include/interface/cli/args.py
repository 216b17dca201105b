from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
configuration overrides. Options left unset map to None so that values
from a --config file are only overridden by flags the user actually passed.
"""

import argparse
from typing import Any, Dict

from simple_include.domain.config import (
    APP_NAME,
    APP_VERSION,
    BINARY_INCLUDE_POLICIES,
)

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the simple-include CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "A simple tool to include files in other files. Looks for lines with a "
            "given prefix and replaces them with the contents of the file they point "
            "to. Can watch for changes in the source directory and keep the target "
            "directory in sync."
        ),
    )

    # --- Path Management ---
    p.add_argument(
        "-s", "--src",
        dest="source",
        default=None,
        help="Source directory [default: .]",
    )
    p.add_argument(
        "-t", "--target",
        dest="target",
        default=None,
        help="Target directory [default: target]",
    )

    # --- Directive Syntax ---
    p.add_argument(
        "-i", "--include",
        dest="include_prefix",
        default=None,
        metavar="INCLUDE",
        help="Include prefix [default: --include]. Use '-i=VALUE' when VALUE starts with '-'.",
    )
    p.add_argument(
        "--binary-includes",
        dest="binary_includes",
        choices=BINARY_INCLUDE_POLICIES,
        default=None,
        help="What to do when an include points at a binary file [default: splice]",
    )

    # --- Execution Mode ---
    p.add_argument(
        "-w", "--watch",
        action="store_true",
        help="Watch for changes in the source directory",
    )
    p.add_argument(
        "--debounce-ms",
        dest="debounce_ms",
        type=int,
        default=None,
        help="Quiet period used to batch bursts of changes in watch mode [default: 200]",
    )
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of render threads (0 = automatic)",
    )
    p.add_argument(
        "--max-scan-bytes",
        dest="max_scan_bytes",
        type=int,
        default=None,
        help="Only sniff this many leading bytes when classifying files (0 = whole file)",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--config",
        dest="config_file",
        default=None,
        help="JSON file providing default values for the options above",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit",
    )
    p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output - prints the input and output file paths",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write logs to this (rotating) file",
    )

    # --- Format Selection ---
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print render reports as JSON",
    )
    p.add_argument(
        "-V", "--version",
        action="version",
        version=f"{APP_NAME} {APP_VERSION}",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset (None = not given).
    """
    overrides: Dict[str, Any] = {
        "source": args.source,
        "target": args.target,
        "include_prefix": args.include_prefix,
        "binary_includes": args.binary_includes,
        "debounce_ms": args.debounce_ms,
        "workers": args.workers,
        "max_scan_bytes": args.max_scan_bytes,
    }

    # store_true flags can only switch a feature on
    if args.watch:
        overrides["watch"] = True
    if args.verbose:
        overrides["verbose"] = True

    return overrides
