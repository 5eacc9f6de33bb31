"""
Rendering adapter - Map any normalized value onto a tagged render tree.

The tree has exactly three node kinds, so display code can match on the
node type instead of probing the shape of model output at every call site.
Building a tree never raises: every value is representable as some text.
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any

from medgenius.core.normalizer import loads_strict


@dataclass(frozen=True)
class TextNode:
    """A scalar rendered as text."""

    text: str


@dataclass(frozen=True)
class ListNode:
    """An ordered list of rendered items."""

    items: tuple["RenderNode", ...]


@dataclass(frozen=True)
class MappingNode:
    """Key/value pairs in source order."""

    entries: tuple[tuple[str, "RenderNode"], ...]

    def get(self, key: str) -> "RenderNode | None":
        for entry_key, node in self.entries:
            if entry_key == key:
                return node
        return None


RenderNode = TextNode | ListNode | MappingNode

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_render_tree(value: Any) -> RenderNode:
    """Build a render tree from a normalized value of unknown shape."""
    if isinstance(value, dict):
        return MappingNode(
            entries=tuple((_scalar_text(key), to_render_tree(item)) for key, item in value.items())
        )
    if isinstance(value, (list, tuple)):
        return ListNode(items=tuple(to_render_tree(item) for item in value))
    return TextNode(text=_scalar_text(value))


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def render_text(node: RenderNode, indent: int = 0) -> list[str]:
    """Flatten a render tree into indented plain-text lines."""
    pad = "  " * indent
    lines: list[str] = []

    if isinstance(node, TextNode):
        return [f"{pad}{line}" for line in node.text.splitlines()] or [""]

    if isinstance(node, ListNode):
        for item in node.items:
            if isinstance(item, TextNode):
                lines.append(f"{pad}- {item.text}")
            else:
                lines.append(f"{pad}-")
                lines.extend(render_text(item, indent + 1))
        return lines

    for key, item in node.entries:
        if isinstance(item, TextNode):
            lines.append(f"{pad}{humanize_key(key)}: {item.text}")
        else:
            lines.append(f"{pad}{humanize_key(key)}:")
            lines.extend(render_text(item, indent + 1))
    return lines


def humanize_key(key: str) -> str:
    """Turn camelCase or snake_case keys into display labels (riskFactors -> Risk Factors)."""
    spaced = _CAMEL_BOUNDARY.sub(" ", key).replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


def safely_render_value(value: Any) -> str:
    """One-line text for any value; containers are shown as JSON."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return _scalar_text(value)


def format_medication(med: Any) -> str:
    """Render a medication as 'name (dose) - condition' from a mapping or JSON string."""
    if not med:
        return ""

    if isinstance(med, str):
        try:
            parsed = loads_strict(med)
        except ValueError:
            return med
        if isinstance(parsed, dict) and parsed.get("name"):
            return _format_medication_mapping(parsed)
        return med

    if isinstance(med, dict) and med.get("name"):
        return _format_medication_mapping(med)

    return safely_render_value(med)


def _format_medication_mapping(med: dict[str, Any]) -> str:
    formatted = _scalar_text(med["name"])
    if med.get("dose"):
        formatted += f" ({_scalar_text(med['dose'])})"
    if med.get("condition"):
        formatted += f" - {_scalar_text(med['condition'])}"
    return formatted
