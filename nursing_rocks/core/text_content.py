"""
Conversions between stored element HTML and the plain text an admin edits.

Stored content is HTML where the only markup an admin can introduce is a
line break. Everything else typed into the editor is entity-escaped.
"""

import html
import re
from typing import Dict, Optional, Literal

from pydantic import BaseModel, field_validator


BR_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
TAG_PATTERN = re.compile(r"<[^>]+>")
_LINE_BREAKS = re.compile(r"\r\n|\r|\n|<br\s*/?>", re.IGNORECASE)

_CSS_VALUE = re.compile(r"^[#(),.%\w\s-]*$")


def html_to_editable_text(content: str | None) -> str:
    """innerHTML → textarea text: <br> becomes a newline, other tags drop, entities decode."""
    if not content:
        return ""
    text = BR_PATTERN.sub("\n", content)
    text = TAG_PATTERN.sub("", text)
    return html.unescape(text)


def editable_text_to_html(text: str) -> str:
    """
    textarea text → safe innerHTML. Newlines and literal <br> survive as <br>,
    everything else is escaped.
    """
    parts = _LINE_BREAKS.split(text)
    return "<br>".join(html.escape(part, quote=False) for part in parts)


# ==========================================================
# INLINE STYLES
# ==========================================================

def parse_style(style: str | None) -> Dict[str, str]:
    props: Dict[str, str] = {}
    if not style:
        return props
    for declaration in style.split(";"):
        if ":" not in declaration:
            continue
        name, value = declaration.split(":", 1)
        name = name.strip().lower()
        value = value.strip()
        if name and value:
            props[name] = value
    return props


def format_style(props: Dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in props.items())


class TextStyleOptions(BaseModel):
    color: Optional[str] = None
    font_size: Optional[str] = None
    font_weight: Optional[Literal["normal", "bold", "lighter", "bolder", "100", "200", "300",
                                  "400", "500", "600", "700", "800", "900"]] = None
    text_decoration: Optional[Literal["none", "underline", "line-through", "overline"]] = None
    text_align: Optional[Literal["left", "center", "right", "justify"]] = None

    @field_validator("color", "font_size")
    @classmethod
    def plain_css_value(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        # keeps values from closing the declaration or smuggling url(...)
        if not _CSS_VALUE.match(v) or "url" in v.lower():
            raise ValueError(f"Unsupported CSS value: {v!r}")
        return v or None

    def to_css(self) -> Dict[str, str]:
        mapping = {
            "color": self.color,
            "font-size": self.font_size,
            "font-weight": self.font_weight,
            "text-decoration": self.text_decoration,
            "text-align": self.text_align,
        }
        return {name: value for name, value in mapping.items() if value}

    def merged_into(self, style: str | None) -> str:
        props = parse_style(style)
        props.update(self.to_css())
        return format_style(props)
