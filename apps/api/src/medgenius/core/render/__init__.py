"""Rendering adapter and report export."""

from medgenius.core.render.adapter import (
    ListNode,
    MappingNode,
    RenderNode,
    TextNode,
    format_medication,
    humanize_key,
    render_text,
    safely_render_value,
    to_render_tree,
)
from medgenius.core.render.report import DISCLAIMER, build_report

__all__ = [
    "DISCLAIMER",
    "ListNode",
    "MappingNode",
    "RenderNode",
    "TextNode",
    "build_report",
    "format_medication",
    "humanize_key",
    "render_text",
    "safely_render_value",
    "to_render_tree",
]
