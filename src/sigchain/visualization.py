"""Chain visualization using Graphviz."""

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

try:
    import graphviz

    GRAPHVIZ_AVAILABLE = True
except ImportError:
    GRAPHVIZ_AVAILABLE = False

from .values import format_types
from .wiring import chain_nodes

# Maximum label length before truncation
MAX_LABEL_LENGTH = 40


def _escape_html(text: str) -> str:
    """Escape HTML special characters for use in graphviz labels."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _truncate(text: str, max_length: int = MAX_LABEL_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


@dataclass
class GraphvizStyle:
    """Styling configuration for chain visualizations.

    Attributes:
        transform_node_color: Background color for transform nodes
        sink_node_color: Background color for sink nodes
        input_node_color: Background color for the chain entry point
        output_node_color: Background color for an unwired chain end
        edge_color: Color for edges between nodes
        font_name: Font family for all text
        font_size: Font size for node labels
        edge_font_size: Font size for edge labels
        background_color: Background color for the graph
        node_border_width: Width of node borders in pixels
        edge_width: Width of edges in pixels
    """

    transform_node_color: str = "#87CEEB"  # Sky blue
    sink_node_color: str = "#DDA0DD"  # Plum
    input_node_color: str = "#90EE90"  # Light green
    output_node_color: str = "#FFD580"  # Light orange
    edge_color: str = "#333333"
    font_name: str = "Helvetica"
    font_size: int = 13
    edge_font_size: int = 11
    background_color: str = "#FFFFFF"
    node_border_width: int = 2
    edge_width: int = 2


DESIGN_STYLES = {
    "default": GraphvizStyle(),
    "minimal": GraphvizStyle(
        transform_node_color="#FFFFFF",
        sink_node_color="#F5F5F5",
        input_node_color="#F5F5F5",
        output_node_color="#F5F5F5",
        edge_color="#999999",
        font_size=11,
        edge_font_size=9,
        node_border_width=1,
        edge_width=1,
    ),
}


def _create_node_label(node: Any, style: GraphvizStyle, show_types: bool) -> str:
    """Create HTML label for a chain node."""
    is_producer = getattr(node, "is_producer", False)
    color = style.transform_node_color if is_producer else style.sink_node_color
    name_esc = _escape_html(str(getattr(node, "name", type(node).__name__)))
    kind = "transform" if is_producer else "sink"

    if not show_types:
        return f'''<
<TABLE BORDER="0" CELLBORDER="0" CELLSPACING="0" CELLPADDING="4">
  <TR><TD BGCOLOR="{color}"><B>{name_esc}</B></TD></TR>
</TABLE>>'''

    inputs_esc = _escape_html(_truncate(format_types(node.input_types)))
    return f'''<
<TABLE BORDER="0" CELLBORDER="0" CELLSPACING="0" CELLPADDING="4">
  <TR><TD><B>{name_esc}</B> <I>{kind}</I></TD></TR>
  <TR><TD BGCOLOR="{color}">{inputs_esc}</TD></TR>
</TABLE>>'''


def visualize(
    head: Any,
    filename: Optional[str] = None,
    orient: Literal["TB", "LR", "BT", "RL"] = "LR",
    show_types: bool = True,
    style: Union[str, GraphvizStyle] = "default",
) -> Any:
    """Visualize the chain starting at ``head`` using Graphviz.

    Args:
        head: First node of the chain
        filename: Output filename (e.g., "chain.svg"). If None, only returns
            the graph object
        orient: Graph orientation ("TB", "LR", "BT", "RL")
        show_types: Whether to label nodes and edges with value-tuple types
        style: Style name from DESIGN_STYLES or GraphvizStyle object

    Returns:
        graphviz.Digraph object
    """
    if not GRAPHVIZ_AVAILABLE:
        raise ImportError(
            "Graphviz is not installed. Install it with: pip install graphviz"
        )

    if isinstance(style, str):
        if style not in DESIGN_STYLES:
            raise ValueError(
                f"Unknown style '{style}'. Choose from: {list(DESIGN_STYLES.keys())}"
            )
        style_obj = DESIGN_STYLES[style]
    else:
        style_obj = style

    nodes = chain_nodes(head)

    dot = graphviz.Digraph(comment="Chain")
    dot.attr(rankdir=orient)
    dot.attr(bgcolor=style_obj.background_color)
    dot.attr(fontname=style_obj.font_name)
    dot.attr(fontsize=str(style_obj.font_size))
    dot.graph_attr.update({"ranksep": "0.6", "nodesep": "0.4", "pad": "0.06"})

    node_attrs = {
        "shape": "box",
        "style": "rounded",
        "fontname": style_obj.font_name,
        "fontsize": str(style_obj.font_size),
        "penwidth": str(style_obj.node_border_width),
    }
    edge_attrs = {
        "color": style_obj.edge_color,
        "penwidth": str(style_obj.edge_width),
        "fontname": style_obj.font_name,
        "fontsize": str(style_obj.edge_font_size),
    }

    # Entry point showing what a driver passes to the head
    input_label = format_types(head.input_types) if show_types else "input"
    dot.node(
        "input",
        label=_truncate(input_label),
        shape="plaintext",
        style="filled",
        fillcolor=style_obj.input_node_color,
        fontname=style_obj.font_name,
        fontsize=str(style_obj.font_size),
    )

    for index, node in enumerate(nodes):
        dot.node(
            f"node_{index}",
            label=_create_node_label(node, style_obj, show_types),
            **node_attrs,
        )

    dot.edge("input", "node_0", **edge_attrs)
    for index, node in enumerate(nodes[1:], start=1):
        upstream = nodes[index - 1]
        label = _truncate(format_types(upstream.output_types)) if show_types else ""
        dot.edge(f"node_{index - 1}", f"node_{index}", label=label, **edge_attrs)

    # An unwired producer at the end: show what the chain still emits
    last = nodes[-1]
    if getattr(last, "is_producer", False):
        output_label = format_types(last.output_types) if show_types else "output"
        dot.node(
            "output",
            label=_truncate(output_label),
            shape="plaintext",
            style="filled",
            fillcolor=style_obj.output_node_color,
            fontname=style_obj.font_name,
            fontsize=str(style_obj.font_size),
        )
        dot.edge(f"node_{len(nodes) - 1}", "output", **edge_attrs)

    # Render to file if filename provided
    if filename:
        if "." in filename:
            base_name, format_ext = filename.rsplit(".", 1)
            dot.render(base_name, format=format_ext, cleanup=True)
        else:
            dot.render(filename, format="svg", cleanup=True)

    return dot
