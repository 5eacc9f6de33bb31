"""
Plain-text report export.

Assembles a downloadable report from normalized analysis sections.
Placeholder data is labelled in the header so it can never pass for a
real result.
"""

from datetime import datetime, timezone
from typing import Any

from medgenius.core.render.adapter import humanize_key, render_text, to_render_tree

DISCLAIMER = (
    "This report was generated by an AI system and is not a substitute for "
    "professional medical advice, diagnosis, or treatment."
)

RULE = "=" * 72


def build_report(
    title: str,
    sections: dict[str, Any],
    patient_info: str | None = None,
    is_placeholder: bool = False,
    generated_at: datetime | None = None,
) -> str:
    """
    Build a plain-text report.

    Args:
        title: Report heading
        sections: Section name -> normalized value, rendered in order
        patient_info: Optional free-text patient description
        is_placeholder: Label the whole report as placeholder data
        generated_at: Timestamp for the header (defaults to now, UTC)

    Returns:
        The report text, newline-terminated
    """
    generated_at = generated_at or datetime.now(timezone.utc)

    lines = [RULE, title.upper()]
    if is_placeholder:
        lines.append("PLACEHOLDER DATA - not a real analysis result")
    lines.append(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M UTC')}")
    lines.append(RULE)

    if patient_info:
        lines.extend(["", "PATIENT INFORMATION", "-" * 19, patient_info.strip()])

    for name, value in sections.items():
        heading = humanize_key(name).upper()
        lines.extend(["", heading, "-" * len(heading)])
        body = render_text(to_render_tree(value))
        lines.extend(body if any(body) else ["(none)"])

    lines.extend(["", RULE, DISCLAIMER])
    return "\n".join(lines) + "\n"
