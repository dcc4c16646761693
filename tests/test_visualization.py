"""Tests for Graphviz chain visualization."""

import pytest

pytest.importorskip("graphviz")

from sigchain import GraphvizStyle, build_sink, build_transform, connect, visualize


def _chain():
    def split(text: str) -> tuple[str, int]:
        return text, len(text)

    def record(word: str, length: int) -> None:
        pass

    nodes = [build_transform(split), build_sink(record)]
    connect(*nodes)
    return nodes


def test_visualize_chain_structure():
    """Nodes appear in order, with the head's entry point."""
    nodes = _chain()

    dot = visualize(nodes[0])
    source = dot.source

    assert "split" in source
    assert "record" in source
    assert "input -> node_0" in source
    assert "node_0 -> node_1" in source
    assert "rankdir=LR" in source


def test_visualize_edge_types():
    """Edges are labelled with the value tuple types."""
    nodes = _chain()

    source = visualize(nodes[0]).source

    assert "(str, int)" in source
    assert "(str)" in source


def test_visualize_without_types():
    """show_types=False leaves only node names."""
    nodes = _chain()

    source = visualize(nodes[0], show_types=False).source

    assert "(str, int)" not in source
    assert "<I>" not in source


def test_visualize_custom_style():
    """Styles can be given by name or as objects."""
    nodes = _chain()

    source = visualize(nodes[0], style=GraphvizStyle(transform_node_color="#123456")).source

    assert "#123456" in source
    assert visualize(nodes[0], style="minimal") is not None


def test_visualize_unknown_style():
    """Unknown style names are rejected."""
    nodes = _chain()

    with pytest.raises(ValueError, match="Unknown style"):
        visualize(nodes[0], style="neon")


def test_visualize_unwired_end_shows_outputs():
    """A chain ending in a producer gets an output terminal with its types."""

    def split(text: str) -> tuple[str, int]:
        return text, len(text)

    def length_only(word: str, length: int) -> int:
        return length

    nodes = [build_transform(split), build_transform(length_only)]
    connect(*nodes)

    source = visualize(nodes[0]).source

    assert "node_1 -> output" in source
    assert "(int)" in source


def test_visualize_sink_end_has_no_output_terminal():
    """Chains that end in a sink have nothing left to emit."""
    nodes = _chain()

    source = visualize(nodes[0]).source

    assert "-> output" not in source
