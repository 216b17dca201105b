from __future__ import annotations

"""
Unit tests for the Include Dependency Graph.
"""

import os
import threading

from simple_include.core.services.dependency_graph import DependencyGraph

ROOT = os.path.abspath(os.sep + "project")


def p(*parts: str) -> str:
    return os.path.join(ROOT, *parts)


def test_update_and_lookup() -> None:
    graph = DependencyGraph()
    graph.update(p("a.txt"), [p("b.txt"), p("lib", "c.txt")])

    assert graph.includes_of(p("a.txt")) == frozenset({p("b.txt"), p("lib", "c.txt")})
    assert graph.dependents_of(p("b.txt")) == {p("a.txt")}
    assert graph.dependents_of(p("lib", "c.txt")) == {p("a.txt")}
    assert graph.dependents_of(p("unrelated.txt")) == set()
    assert len(graph) == 1


def test_update_replaces_previous_edges() -> None:
    graph = DependencyGraph()
    graph.update(p("a.txt"), [p("b.txt")])
    graph.update(p("a.txt"), [p("c.txt")])

    assert graph.dependents_of(p("b.txt")) == set()
    assert graph.dependents_of(p("c.txt")) == {p("a.txt")}


def test_transitive_includes_are_direct_dependents() -> None:
    """A render records every file it read, so a leaf maps to all its includers."""
    graph = DependencyGraph()
    graph.update(p("a.txt"), [p("b.txt"), p("c.txt")])
    graph.update(p("b.txt"), [p("c.txt")])

    assert graph.dependents_of(p("c.txt")) == {p("a.txt"), p("b.txt")}


def test_directory_matches_nested_includes() -> None:
    graph = DependencyGraph()
    graph.update(p("a.txt"), [p("lib", "c.txt")])
    graph.update(p("b.txt"), [p("library.txt")])

    assert graph.dependents_of(p("lib")) == {p("a.txt")}


def test_forget() -> None:
    graph = DependencyGraph()
    graph.update(p("a.txt"), [p("b.txt")])
    graph.forget(p("a.txt"))
    graph.forget(p("never-seen.txt"))

    assert graph.dependents_of(p("b.txt")) == set()
    assert len(graph) == 0


def test_forget_under() -> None:
    graph = DependencyGraph()
    graph.update(p("sub", "a.txt"), [p("b.txt")])
    graph.update(p("subway.txt"), [p("b.txt")])

    graph.forget_under(p("sub"))

    assert graph.dependents_of(p("b.txt")) == {p("subway.txt")}


def test_source_never_depends_on_itself() -> None:
    graph = DependencyGraph()
    graph.update(p("a.txt"), [p("a.txt")])
    assert graph.dependents_of(p("a.txt")) == set()


def test_paths_are_normalized() -> None:
    graph = DependencyGraph()
    graph.update(p("x", "..", "a.txt"), [p("lib", ".", "b.txt")])

    assert graph.dependents_of(p("lib", "b.txt")) == {p("a.txt")}


def test_concurrent_updates() -> None:
    graph = DependencyGraph()

    def writer(n: int) -> None:
        for i in range(100):
            graph.update(p(f"w{n}_{i}.txt"), [p("shared.txt")])

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(graph.dependents_of(p("shared.txt"))) == 400
