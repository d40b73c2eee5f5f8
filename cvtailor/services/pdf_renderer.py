"""Render structured CV data into a PDF via Markdown."""

from __future__ import annotations

import html
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from markdown_pdf import MarkdownPdf, Section

from cvtailor.core.logging import get_logger

logger = get_logger(__name__)

PAPER_SIZE = "A4"

_LIST_MARKER = re.compile(r"^[-*•]\s+")
_ORDERED_MARKER = re.compile(r"^(\d+)([.)])")
_BLOCK_MARKER_CHARS = "#>+-*=_`~|"

CV_CSS = """
body { font-family: Helvetica, Arial, sans-serif; font-size: 10pt; color: #222; }
h1 { font-size: 20pt; margin-bottom: 0; }
h2 { font-size: 12pt; color: #1f4e79; border-bottom: 1px solid #1f4e79; margin-top: 14pt; }
h3 { font-size: 10.5pt; margin-bottom: 2pt; }
p { margin: 2pt 0; }
li { margin: 1pt 0; }
.meta { color: #555; }
"""


def _text(value: Any) -> str:
    """Escaped single-line text for any scalar, '' for missing values."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v not in (None, ""))
    return html.escape(" ".join(str(value).split()))


def _line(value: Any) -> str:
    """Like _text, for text that starts a Markdown block (paragraph or list item).

    A leading block marker is backslash-escaped so "# x", "1. x" or "---"
    stay literal text.
    """
    text = _text(value)
    ordered = _ORDERED_MARKER.match(text)
    if ordered:
        return f"{ordered.group(1)}\\{text[ordered.end(1):]}"
    if text[:1] and text[:1] in _BLOCK_MARKER_CHARS:
        return f"\\{text}"
    return text


def _items(cv_data: dict[str, Any], key: str) -> list[Any]:
    value = cv_data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if item not in (None, "", {})]


def _date_range(item: dict[str, Any]) -> str:
    start = _text(item.get("start_date"))
    end = _text(item.get("end_date"))
    if start and end:
        return f"{start} - {end}"
    if start:
        return f"{start} - Present"
    return end


def _bullets(value: Any) -> list[str]:
    """Turn a description string or list into bullet lines."""
    if isinstance(value, list):
        return [f"- {_line(v)}" for v in value if _text(v)]
    if isinstance(value, str):
        lines = [_LIST_MARKER.sub("", line.strip()).strip() for line in value.splitlines()]
        lines = [line for line in lines if line]
        if len(lines) > 1:
            return [f"- {_line(line)}" for line in lines]
        if lines:
            return [_line(lines[0])]
    return []


def _entry(heading: str, subtitle: str, dates: str, body: list[str]) -> list[str]:
    lines = [f"### {heading}"] if heading else []
    meta = " | ".join(part for part in (subtitle, dates) if part)
    if meta:
        lines.append(f'<p class="meta">{meta}</p>')
    lines.append("")
    lines.extend(body)
    lines.append("")
    return lines


def _section(title: str, body: list[str]) -> list[str]:
    if not any(line.strip() for line in body):
        return []
    return [f"## {title}", "", *body, ""]


def _experience_section(cv_data: dict[str, Any]) -> list[str]:
    body: list[str] = []
    for item in _items(cv_data, "experiences"):
        if isinstance(item, str):
            body.append(f"- {_line(item)}")
            continue
        if not isinstance(item, dict):
            continue
        details = item.get("highlights") or item.get("description")
        body.extend(
            _entry(
                _text(item.get("position")),
                _text(item.get("company")),
                _date_range(item),
                _bullets(details),
            )
        )
    return _section("Experience", body)


def _education_section(cv_data: dict[str, Any]) -> list[str]:
    body: list[str] = []
    for item in _items(cv_data, "education"):
        if isinstance(item, str):
            body.append(f"- {_line(item)}")
            continue
        if not isinstance(item, dict):
            continue
        body.extend(
            _entry(
                _text(item.get("degree")),
                _text(item.get("institution")),
                _date_range(item),
                _bullets(item.get("description")),
            )
        )
    return _section("Education", body)


def _project_section(cv_data: dict[str, Any]) -> list[str]:
    body: list[str] = []
    for item in _items(cv_data, "projects"):
        if isinstance(item, str):
            body.append(f"- {_line(item)}")
            continue
        if not isinstance(item, dict):
            continue
        technologies = _text(item.get("technologies"))
        details = _bullets(item.get("highlights") or item.get("description"))
        if technologies:
            details.extend(["", f"<p><em>Technologies: {technologies}</em></p>"])
        body.extend(_entry(_text(item.get("name")), "", _date_range(item), details))
    return _section("Projects", body)


def _skills_section(cv_data: dict[str, Any]) -> list[str]:
    skills = cv_data.get("skills")
    if isinstance(skills, dict):
        # Grouped skills: {"Languages": [...], "Tools": [...]}
        body = [f"- **{_text(group)}:** {_text(values)}" for group, values in skills.items() if _text(values)]
        return _section("Skills", body)
    text = _line(skills) if isinstance(skills, str) else _line(_items(cv_data, "skills"))
    return _section("Skills", [text] if text else [])


def _links_section(cv_data: dict[str, Any]) -> list[str]:
    body: list[str] = []
    for item in _items(cv_data, "links"):
        if isinstance(item, str):
            body.append(f"- {_line(item)}")
        elif isinstance(item, dict) and item.get("url"):
            label = _line(item.get("label")) or _line(item.get("url"))
            body.append(f"- {label}: {_text(item.get('url'))}")
    return _section("Links", body)


def _activity_section(cv_data: dict[str, Any]) -> list[str]:
    body: list[str] = []
    for item in _items(cv_data, "activities"):
        if isinstance(item, str):
            body.append(f"- {_line(item)}")
        elif isinstance(item, dict) and item.get("name"):
            description = _text(item.get("description"))
            name = _text(item.get("name"))
            body.append(f"- **{name}**: {description}" if description else f"- **{name}**")
    return _section("Activities", body)


def _volunteering_section(cv_data: dict[str, Any]) -> list[str]:
    body: list[str] = []
    for item in _items(cv_data, "volunteering"):
        if isinstance(item, str):
            body.append(f"- {_line(item)}")
            continue
        if not isinstance(item, dict):
            continue
        body.extend(
            _entry(
                _text(item.get("role")) or _text(item.get("organization")),
                _text(item.get("organization")) if item.get("role") else "",
                _date_range(item),
                _bullets(item.get("description")),
            )
        )
    return _section("Volunteering", body)


def render_markdown(cv_data: dict[str, Any]) -> str:
    """Fill the CV template with structured data.

    Every key is optional; empty sections are left out.
    """
    lines: list[str] = []

    name = _text(cv_data.get("full_name")) or _text(cv_data.get("name"))
    if name:
        lines.extend([f"# {name}", ""])
    title = _text(cv_data.get("title"))
    if title:
        lines.extend([f"**{title}**", ""])

    contact = [
        _text(cv_data.get(key)) for key in ("email", "phone", "location") if _text(cv_data.get(key))
    ]
    if contact:
        lines.extend([f'<p class="meta">{" | ".join(contact)}</p>', ""])

    summary = _line(cv_data.get("summary"))
    lines.extend(_section("Summary", [summary] if summary else []))
    lines.extend(_experience_section(cv_data))
    lines.extend(_education_section(cv_data))
    lines.extend(_project_section(cv_data))
    lines.extend(_skills_section(cv_data))
    lines.extend(_links_section(cv_data))
    lines.extend(_activity_section(cv_data))
    lines.extend(_volunteering_section(cv_data))

    return "\n".join(lines).strip() + "\n"


def render_pdf(cv_data: dict[str, Any], path: str | Path) -> Path:
    """Render CV data to a PDF file at path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    pdf = MarkdownPdf(toc_level=2)
    pdf.add_section(Section(render_markdown(cv_data), toc=False, paper_size=PAPER_SIZE), user_css=CV_CSS)

    name = " ".join(str(cv_data.get("full_name") or "").split())
    pdf.meta["title"] = f"CV - {name}" if name else "CV"
    if name:
        pdf.meta["author"] = name

    pdf.save(str(target))
    logger.debug("Rendered CV PDF to %s", target)
    return target


def render_pdf_bytes(cv_data: dict[str, Any]) -> bytes:
    """Render CV data and return the PDF bytes without keeping a file."""
    fd, tmp_name = tempfile.mkstemp(suffix=".pdf")
    os.close(fd)
    try:
        render_pdf(cv_data, tmp_name)
        return Path(tmp_name).read_bytes()
    finally:
        os.unlink(tmp_name)
