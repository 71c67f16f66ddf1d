"""
Stroke - Pure Python wire styling model.

A Stroke carries independent, optional overrides for width, dash style and
color. ``None`` in any field means "inherit from the net class, then the
theme". The persisted format still uses the legacy sentinel
(``width <= 0`` / ``type == "default"``); the conversion happens only in
``to_dict`` / ``from_dict``.
"""

import re
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .settings import DEFAULT_WIRE_COLOR, DEFAULT_WIRE_STYLE, DEFAULT_WIRE_WIDTH

# Dash styles accepted in the document format. 'default' is the file sentinel
# for "no style override" and never appears on a Stroke instance.
STROKE_STYLES = ["solid", "dash", "dot", "dash_dot", "dash_dot_dot"]
DEFAULT_STYLE_SENTINEL = "default"

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$")


class RGBA(NamedTuple):
    """Color with all channels in the 0..1 range."""

    r: float
    g: float
    b: float
    a: float = 1.0

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b, "a": self.a}

    @classmethod
    def from_dict(cls, data: dict) -> "RGBA":
        return cls(
            float(data.get("r", 0.0)),
            float(data.get("g", 0.0)),
            float(data.get("b", 0.0)),
            float(data.get("a", 1.0)),
        )


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def css_to_rgba(css: str) -> RGBA:
    """
    Parse a CSS color string into an RGBA.

    Supports ``#rgb``, ``#rrggbb``, ``#rrggbbaa``, ``rgb(r,g,b)`` and
    ``rgba(r,g,b,a)``.

    Raises:
        ValueError: If the string is not one of the supported forms.
    """
    text = css.strip()
    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        r, g, b = (int(digits[i:i + 2], 16) / 255 for i in (0, 2, 4))
        a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
        return RGBA(r, g, b, a)

    match = _RGB_RE.match(text)
    if match:
        parts = [p.strip() for p in match.group(1).split(",")]
        if len(parts) not in (3, 4):
            raise ValueError(f"Invalid color: {css!r}")
        try:
            channels = [float(p) for p in parts]
        except ValueError:
            raise ValueError(f"Invalid color: {css!r}") from None
        r, g, b = (_clamp01(c / 255) for c in channels[:3])
        a = _clamp01(channels[3]) if len(channels) == 4 else 1.0
        return RGBA(r, g, b, a)

    raise ValueError(f"Invalid color: {css!r}")


def rgba_to_css(color: RGBA) -> str:
    """Format an RGBA as ``rgba(r,g,b,a)`` with 0..255 channels."""
    r = round(color.r * 255)
    g = round(color.g * 255)
    b = round(color.b * 255)
    return f"rgba({r},{g},{b},{_clamp01(color.a):g})"


@dataclass(frozen=True)
class Stroke:
    """
    Per-wire stroke overrides.

    Each field is independent: a wire may override only its color and
    still inherit width and dash style from its net class.
    """

    width: Optional[float] = None
    style: Optional[str] = None
    color: Optional[RGBA] = None

    @property
    def is_default(self) -> bool:
        """True when the stroke overrides nothing."""
        return self.width is None and self.style is None and self.color is None

    def to_dict(self, fallback_color: str = DEFAULT_WIRE_COLOR) -> dict:
        """
        Serialize using the document's sentinel encoding.

        Unset width is written as 0 and unset style as 'default'. The color
        slot is mandatory in the format, so an unset color is filled with
        ``fallback_color``.
        """
        color = self.color if self.color is not None else css_to_rgba(fallback_color)
        return {
            "width": self.width if self.width is not None else 0,
            "type": self.style if self.style is not None else DEFAULT_STYLE_SENTINEL,
            "color": color.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Stroke":
        """
        Deserialize from the document format.

        A width <= 0 and a 'default' type both decode to "unset". When both
        are unset the stored color is also treated as inherited, matching the
        rule that a fully-default stroke takes the net class color.
        """
        raw_width = data.get("width")
        width = float(raw_width) if raw_width is not None and float(raw_width) > 0 else None
        raw_style = data.get("type")
        style = raw_style if raw_style and raw_style != DEFAULT_STYLE_SENTINEL else None
        color = None
        if (width is not None or style is not None) and isinstance(data.get("color"), dict):
            color = RGBA.from_dict(data["color"])
        return cls(width=width, style=style, color=color)


@dataclass(frozen=True)
class ResolvedStroke:
    """A fully concrete stroke, ready for rendering."""

    width: float
    style: str
    color: RGBA

    @property
    def css_color(self) -> str:
        return rgba_to_css(self.color)


@dataclass
class NetClass:
    """Named default styling shared by every wire on a net."""

    id: str
    name: str
    wire: Stroke = field(default_factory=Stroke)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "wire": self.wire.to_dict()}

    @classmethod
    def from_dict(cls, data: dict, net_id: str) -> "NetClass":
        wire = data.get("wire")
        return cls(
            id=data.get("id") or net_id,
            name=data.get("name") or net_id,
            wire=Stroke.from_dict(wire) if isinstance(wire, dict) else Stroke(),
        )


THEME_WIRE = ResolvedStroke(
    width=DEFAULT_WIRE_WIDTH,
    style=DEFAULT_WIRE_STYLE,
    color=css_to_rgba(DEFAULT_WIRE_COLOR),
)


def default_net_classes() -> dict[str, NetClass]:
    """Return a fresh net class table holding only the 'default' class."""
    return {"default": NetClass(id="default", name="Default")}


def _layer(base: ResolvedStroke, over: Optional[Stroke]) -> ResolvedStroke:
    if over is None:
        return base
    return ResolvedStroke(
        width=over.width if over.width is not None else base.width,
        style=over.style if over.style is not None else base.style,
        color=over.color if over.color is not None else base.color,
    )


def effective_stroke(
    stroke: Optional[Stroke],
    net_class: Optional[NetClass] = None,
    theme: ResolvedStroke = THEME_WIRE,
) -> ResolvedStroke:
    """
    Resolve a wire's stroke against its net class and the theme.

    Args:
        stroke: The wire's own overrides (may be None).
        net_class: The wire's net class, if any.
        theme: The theme's concrete wire stroke.

    Returns:
        The concrete stroke to draw with.
    """
    base = _layer(theme, net_class.wire if net_class is not None else None)
    return _layer(base, stroke)
