from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures: a default configuration dictionary and a small
   source tree exercising nested, relative and binary includes.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def mock_config_dict() -> Dict[str, Any]:
    """
    Return a valid, complete configuration dictionary for testing.

    Reflects the structure defined in 'simple_include.domain.config'.

    Returns:
        Dict[str, Any]: A sample configuration dictionary.
    """
    return {
        # IO Paths
        "source": "/tmp/test_source",
        "target": "/tmp/test_target",

        # Directive Syntax
        "include_prefix": "--include",
        "binary_includes": "splice",

        # Execution Mode
        "watch": False,
        "verbose": False,
        "debounce_ms": 200,

        # Performance
        "workers": 0,
        "max_scan_bytes": 0,
    }


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """
    Create a small source tree.

    Structure:
    /src
      a.txt          includes b.txt
      b.txt          plain text
      c.txt          no directive
      image.bin      binary (NUL bytes)
      /docs
        page.md      includes ../b.txt
    """
    src = tmp_path / "src"
    (src / "docs").mkdir(parents=True)

    (src / "a.txt").write_bytes(b"Header\n--include b.txt\nFooter\n")
    (src / "b.txt").write_bytes(b"Included line\n")
    (src / "c.txt").write_bytes(b"Nothing to see\n")
    (src / "image.bin").write_bytes(b"\x89PNG\x00\x01\x02\xff")
    (src / "docs" / "page.md").write_bytes(b"# Page\n--include ../b.txt\n")

    return src
