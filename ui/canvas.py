"""
canvas.py — SVG Frame Renderer
================================
Pure rendering function: Frame → SVG string.

Arrays are drawn as bars coloured by their highlight role.  Traversal
frames (no array) are drawn as a row of visited nodes followed by the
frontier.

Design decisions:
  - NO mutation.  The caller passes a frame (or its to_dict() form) and
    gets back a string.
  - Role-based coloring is a simple dict lookup: role → hex color.
"""

from html import escape
from typing import Any, Dict, Optional, Union

from algorithms.frame import Frame


# ---------------------------------------------------------------------------
# Visual Config — color palette, dimensions
# ---------------------------------------------------------------------------
class CanvasConfig:
    width:  int = 900
    height: int = 320
    bg:     str = "#0d1117"

    role_colors: Dict[str, str] = {
        "default": "#30363d",
        "compare": "#0ea5e9",   # cyan
        "swap":    "#f43f5e",   # rose
        "min":     "#f59e0b",   # amber
        "key":     "#a855f7",   # purple
        "sorted":  "#10b981",   # emerald
        "visited": "#10b981",
        "current": "#06b6d4",
        "frontier": "#0ea5e9",
    }

    bar_gap:      int = 4
    label_color:  str = "#e6edf3"
    label_size:   int = 13
    chip_radius:  int = 20


CONFIG = CanvasConfig()

FrameLike = Union[Frame, Dict[str, Any]]


# ---------------------------------------------------------------------------
# Main Render Function
# ---------------------------------------------------------------------------
def render_frame(
    frame: Optional[FrameLike] = None,
    config: CanvasConfig = CONFIG,
) -> str:
    """
    Returns an SVG string.

    Args:
        frame  : A Frame, its to_dict() form, or None for an empty canvas.
        config : Visual config.
    """
    data = frame.to_dict() if isinstance(frame, Frame) else (frame or {})

    svg_parts = [
        f'<svg id="canvas-svg" width="{config.width}" height="{config.height}" '
        f'viewBox="0 0 {config.width} {config.height}" '
        f'xmlns="http://www.w3.org/2000/svg">',
        f'<rect width="{config.width}" height="{config.height}" fill="{config.bg}"/>',
    ]

    if data.get("array"):
        svg_parts.append(_render_bars(data, config))
    elif data.get("visited") or data.get("frontier"):
        svg_parts.append(_render_traversal(data, config))

    svg_parts.append("</svg>")
    return "\n".join(svg_parts)


# ---------------------------------------------------------------------------
# Bars
# ---------------------------------------------------------------------------
def _render_bars(data: Dict[str, Any], config: CanvasConfig) -> str:
    values = data["array"]
    highlights = {str(k): v for k, v in data.get("highlights", {}).items()}
    numeric = [v for v in values if isinstance(v, (int, float))]
    top = max((abs(v) for v in numeric), default=1) or 1

    n = len(values)
    bar_w = max(2, (config.width - config.bar_gap * (n + 1)) // n)
    usable_h = config.height - 40

    parts = ['<g class="bars">']
    for i, v in enumerate(values):
        role = highlights.get(str(i), "default")
        fill = config.role_colors.get(role, config.role_colors["default"])
        h = int(usable_h * abs(v) / top) if isinstance(v, (int, float)) else usable_h // 2
        x = config.bar_gap + i * (bar_w + config.bar_gap)
        y = config.height - 24 - h
        parts.append(
            f'  <rect class="bar {role}" data-index="{i}" x="{x}" y="{y}" '
            f'width="{bar_w}" height="{h}" fill="{fill}" rx="3"/>'
        )
        parts.append(
            f'  <text x="{x + bar_w // 2}" y="{config.height - 8}" text-anchor="middle" '
            f'font-size="{config.label_size}" fill="{config.label_color}">{escape(str(v))}</text>'
        )
    parts.append("</g>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Traversal chips
# ---------------------------------------------------------------------------
def _render_traversal(data: Dict[str, Any], config: CanvasConfig) -> str:
    r = config.chip_radius
    current = data.get("current_node")
    parts = ['<g class="traversal">']

    def chip(x: int, y: int, node: Any, role: str) -> str:
        fill = config.role_colors[role]
        return (
            f'  <g class="node {role}"><circle cx="{x}" cy="{y}" r="{r}" fill="{fill}"/>'
            f'<text x="{x}" y="{y + 5}" text-anchor="middle" font-size="{config.label_size}" '
            f'fill="{config.label_color}">{escape(str(node))}</text></g>'
        )

    for i, node in enumerate(data.get("visited", [])):
        role = "current" if node == current else "visited"
        parts.append(chip(r + 10 + i * (2 * r + 10), config.height // 3, node, role))
    for i, node in enumerate(data.get("frontier", [])):
        parts.append(chip(r + 10 + i * (2 * r + 10), 2 * config.height // 3, node, "frontier"))

    parts.append("</g>")
    return "\n".join(parts)
