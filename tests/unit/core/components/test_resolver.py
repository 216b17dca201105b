from __future__ import annotations

"""
Unit tests for Include Directive Resolution.

Verifies directive parsing, relative and absolute path resolution, nested
expansion, line terminator handling, cycle detection and the binary
include policies.
"""

import os
import sys
from pathlib import Path

import pytest

from simple_include.core.pipeline.components.resolver import IncludeResolver, resolve_includes
from simple_include.domain.render_errors import (
    BinaryIncludeRejectedError,
    ErrorKind,
    IncludeCycleError,
    IncludeNotFoundError,
    MalformedDirectiveError,
)


def _resolve(path: Path, prefix: str = "--include", **kwargs):
    return resolve_includes(str(path), path.read_bytes(), prefix, **kwargs)


# -----------------------------------------------------------------------------
# Basic expansion
# -----------------------------------------------------------------------------

def test_directive_replaced_by_content(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"Included line\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"Header\n--include b.txt\nFooter\n")

    result = _resolve(a)

    assert result.content == b"Header\nIncluded line\nFooter\n"
    assert result.includes == frozenset({str(tmp_path / "b.txt")})


def test_file_without_directives_is_unchanged(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"one\ntwo\nno trailing newline")

    result = _resolve(a)

    assert result.content == b"one\ntwo\nno trailing newline"
    assert result.includes == frozenset()


def test_crlf_terminators_preserved(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"inner\r\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"first\r\n--include b.txt\r\nlast\r\n")

    assert _resolve(a).content == b"first\r\ninner\r\nlast\r\n"


def test_terminator_appended_when_include_lacks_newline(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"no newline")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include b.txt\nafter\n")

    assert _resolve(a).content == b"no newline\nafter\n"


def test_empty_include_removes_line(tmp_path: Path) -> None:
    (tmp_path / "empty.txt").write_bytes(b"")
    a = tmp_path / "a.txt"
    a.write_bytes(b"before\n--include empty.txt\nafter\n")

    assert _resolve(a).content == b"before\nafter\n"


def test_directive_on_last_line_without_terminator(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"tail")
    a = tmp_path / "a.txt"
    a.write_bytes(b"head\n--include b.txt")

    assert _resolve(a).content == b"head\ntail"


def test_path_whitespace_is_trimmed(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"B\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include \t b.txt   \n")

    assert _resolve(a).content == b"B\n"


# -----------------------------------------------------------------------------
# Directive parsing
# -----------------------------------------------------------------------------

def test_prefix_followed_by_non_whitespace_is_not_a_directive(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"--includes b.txt\n")

    result = _resolve(a)

    assert result.content == b"--includes b.txt\n"
    assert result.includes == frozenset()


def test_indented_prefix_is_not_a_directive(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"  --include b.txt\n")

    assert _resolve(a).content == b"  --include b.txt\n"


def test_prefix_without_path_is_malformed(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"ok\n--include   \n")

    with pytest.raises(MalformedDirectiveError) as exc_info:
        _resolve(a)

    assert exc_info.value.kind is ErrorKind.MALFORMED_DIRECTIVE
    assert exc_info.value.line_number == 2


def test_bare_prefix_is_malformed(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include\n")

    with pytest.raises(MalformedDirectiveError):
        _resolve(a)


def test_custom_prefix(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"B\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"#import b.txt\n--include b.txt\n")

    result = _resolve(a, prefix="#import")

    assert result.content == b"B\n--include b.txt\n"


# -----------------------------------------------------------------------------
# Path resolution
# -----------------------------------------------------------------------------

def test_nested_includes_resolve_relative_to_including_file(tmp_path: Path) -> None:
    (tmp_path / "lib" / "deep").mkdir(parents=True)
    (tmp_path / "lib" / "deep" / "leaf.txt").write_bytes(b"leaf\n")
    (tmp_path / "lib" / "mid.txt").write_bytes(b"mid start\n--include deep/leaf.txt\nmid end\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include lib/mid.txt\n")

    result = _resolve(a)

    assert result.content == b"mid start\nleaf\nmid end\n"
    assert result.includes == frozenset({
        str(tmp_path / "lib" / "mid.txt"),
        str(tmp_path / "lib" / "deep" / "leaf.txt"),
    })


def test_absolute_include_path(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    shared = outside / "shared.txt"
    shared.write_bytes(b"shared\n")

    src = tmp_path / "src"
    src.mkdir()
    a = src / "a.txt"
    a.write_bytes(f"--include {shared}\n".encode("utf-8"))

    result = _resolve(a)

    assert result.content == b"shared\n"
    assert str(shared) in result.includes


def test_parent_directory_include(tmp_path: Path) -> None:
    (tmp_path / "top.txt").write_bytes(b"top\n")
    (tmp_path / "sub").mkdir()
    a = tmp_path / "sub" / "a.txt"
    a.write_bytes(b"--include ../top.txt\n")

    assert _resolve(a).content == b"top\n"


def test_same_file_included_twice(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"B\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include b.txt\n--include b.txt\n")

    assert _resolve(a).content == b"B\nB\n"


# -----------------------------------------------------------------------------
# Failures
# -----------------------------------------------------------------------------

def test_missing_include(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include nope.txt\n")

    with pytest.raises(IncludeNotFoundError) as exc_info:
        _resolve(a)

    err = exc_info.value
    assert err.kind is ErrorKind.INCLUDE_NOT_FOUND
    assert err.path == str(tmp_path / "nope.txt")
    assert err.referenced_by == str(a)
    # The missing path is still recorded so it can be watched
    assert str(tmp_path / "nope.txt") in err.includes


def test_self_include_is_a_cycle(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include a.txt\n")

    with pytest.raises(IncludeCycleError) as exc_info:
        _resolve(a)
    assert exc_info.value.kind is ErrorKind.INCLUDE_CYCLE


def test_indirect_cycle(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_bytes(b"--include c.txt\n")
    (tmp_path / "c.txt").write_bytes(b"--include a.txt\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include b.txt\n")

    with pytest.raises(IncludeCycleError) as exc_info:
        _resolve(a)

    assert exc_info.value.chain == (
        str(tmp_path / "a.txt"),
        str(tmp_path / "b.txt"),
        str(tmp_path / "c.txt"),
    )


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_cycle_through_symlink(tmp_path: Path) -> None:
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include alias.txt\n")
    os.symlink(str(a), str(tmp_path / "alias.txt"))

    with pytest.raises(IncludeCycleError):
        _resolve(a)


# -----------------------------------------------------------------------------
# Binary includes
# -----------------------------------------------------------------------------

def test_binary_include_spliced_raw(tmp_path: Path) -> None:
    blob = b"\x00\x01\xff\n"
    (tmp_path / "blob.bin").write_bytes(blob)
    a = tmp_path / "a.txt"
    a.write_bytes(b"start\n--include blob.bin\nend\n")

    assert _resolve(a).content == b"start\n" + blob + b"end\n"


def test_binary_include_not_scanned_for_directives(tmp_path: Path) -> None:
    blob = b"\x00\n--include missing.txt\n"
    (tmp_path / "blob.bin").write_bytes(blob)
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include blob.bin\n")

    assert _resolve(a).content == blob


def test_binary_include_rejected(tmp_path: Path) -> None:
    (tmp_path / "blob.bin").write_bytes(b"\x00\x01")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include blob.bin\n")

    with pytest.raises(BinaryIncludeRejectedError) as exc_info:
        _resolve(a, binary_includes="reject")
    assert exc_info.value.kind is ErrorKind.BINARY_INCLUDE_REJECTED


# -----------------------------------------------------------------------------
# Construction
# -----------------------------------------------------------------------------

def test_empty_prefix_rejected() -> None:
    with pytest.raises(ValueError):
        IncludeResolver("")


def test_unknown_binary_policy_rejected() -> None:
    with pytest.raises(ValueError):
        IncludeResolver("--include", binary_includes="ignore")


def test_resolver_is_reusable(tmp_path: Path) -> None:
    """Per-call state does not leak between resolve() calls."""
    (tmp_path / "b.txt").write_bytes(b"B\n")
    a = tmp_path / "a.txt"
    a.write_bytes(b"--include b.txt\n")
    c = tmp_path / "c.txt"
    c.write_bytes(b"plain\n")

    resolver = IncludeResolver("--include")
    assert resolver.resolve(str(a), a.read_bytes()).includes
    assert resolver.resolve(str(c), c.read_bytes()).includes == frozenset()


# -----------------------------------------------------------------------------
# Depth
# -----------------------------------------------------------------------------

def _write_chain(root: Path, depth: int) -> Path:
    """f0000 includes f0001 ... includes f<depth>, the leaf."""
    for i in range(depth):
        (root / f"f{i:04d}.txt").write_bytes(f"line {i}\n--include f{i + 1:04d}.txt\n".encode("ascii"))
    (root / f"f{depth:04d}.txt").write_bytes(b"leaf\n")
    return root / "f0000.txt"


def test_include_chain_deeper_than_recursion_limit(tmp_path: Path) -> None:
    depth = sys.getrecursionlimit() + 200
    head = _write_chain(tmp_path, depth)

    result = _resolve(head)

    assert result.content.endswith(f"line {depth - 1}\nleaf\n".encode("ascii"))
    assert result.content.count(b"\n") == depth + 1
    assert len(result.includes) == depth


def test_cycle_at_the_end_of_a_deep_chain(tmp_path: Path) -> None:
    depth = 300
    head = _write_chain(tmp_path, depth)
    (tmp_path / f"f{depth:04d}.txt").write_bytes(b"--include f0000.txt\n")

    with pytest.raises(IncludeCycleError) as exc_info:
        _resolve(head)

    assert len(exc_info.value.chain) == depth + 1
