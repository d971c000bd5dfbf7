"""Theme value objects: fonts, paints, spacing and the resolved metrics the core consumes."""

import re
from typing import Dict, List, Optional, Union, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from carousel.exceptions import ConfigurationError

DEFAULT_BADGE_LINE_HEIGHT = 1.1

_GRADIENT_RE = re.compile(r"^\s*linear-gradient\((.*)\)\s*$", re.IGNORECASE | re.DOTALL)
_ANGLE_RE = re.compile(r"^(-?\d+(?:\.\d+)?)deg$", re.IGNORECASE)
_DIRECTIONS = {
    "to top": 0.0,
    "to right": 90.0,
    "to bottom": 180.0,
    "to left": 270.0,
    "to top right": 45.0,
    "to right top": 45.0,
    "to bottom right": 135.0,
    "to right bottom": 135.0,
    "to bottom left": 225.0,
    "to left bottom": 225.0,
    "to top left": 315.0,
    "to left top": 315.0,
}


class _ThemeModel(BaseModel):
    # Themes are authored in camelCase JSON (badgeText, lineHeight, ...)
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _split_top_level(value: str) -> List[str]:
    """Split on commas that are not inside parentheses (rgba(...) stops)."""
    parts, depth, current = [], 0, []
    for ch in value:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        if ch == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = ''.join(current).strip()
    if tail:
        parts.append(tail)
    return parts


class FontSpec(_ThemeModel):
    """Font for one text role. `family` is a CSS-style fallback list."""
    family: str
    size: float = Field(ge=0)
    weight: str = "normal"

    @field_validator('weight', mode='before')
    @classmethod
    def _weight_as_str(cls, v):
        return str(v)

    @property
    def families(self) -> List[str]:
        return [f.strip().strip('"\'') for f in self.family.split(',') if f.strip()]

    @property
    def is_bold(self) -> bool:
        w = self.weight.lower()
        if w in ('bold', 'bolder', 'black', 'heavy'):
            return True
        return w.isdigit() and int(w) >= 600

    def with_size(self, size: float) -> "FontSpec":
        return self.model_copy(update={'size': size})

    def css(self) -> str:
        return f"{self.weight} {self.size:g}px {self.family}"


class ColorStop(_ThemeModel):
    color: str
    position: float = Field(ge=0, le=1)


class LinearGradient(_ThemeModel):
    """Linear gradient paint. `angle` follows CSS: 0deg points up, 90deg right."""
    angle: float = 180.0
    stops: List[ColorStop] = Field(min_length=2)

    @classmethod
    def parse(cls, value: str) -> "LinearGradient":
        """Parse a CSS `linear-gradient(...)` string.

        Stops without an explicit percentage are spread evenly between their
        neighbours, as in CSS.
        """
        match = _GRADIENT_RE.match(value)
        if not match:
            raise ConfigurationError(f"Not a linear-gradient: {value!r}")
        args = _split_top_level(match.group(1))
        angle = 180.0
        if args:
            head = args[0].strip().lower()
            angle_match = _ANGLE_RE.match(head)
            if angle_match:
                angle = float(angle_match.group(1))
                args = args[1:]
            elif head in _DIRECTIONS:
                angle = _DIRECTIONS[head]
                args = args[1:]
        if len(args) < 2:
            raise ConfigurationError(f"linear-gradient needs at least two colour stops: {value!r}")

        colors: List[str] = []
        positions: List[Optional[float]] = []
        for arg in args:
            color, _, pos = arg.rpartition(' ')
            if pos.endswith('%') and color:
                try:
                    positions.append(float(pos[:-1]) / 100.0)
                    colors.append(color.strip())
                    continue
                except ValueError:
                    pass
            colors.append(arg.strip())
            positions.append(None)

        if positions[0] is None:
            positions[0] = 0.0
        if positions[-1] is None:
            positions[-1] = 1.0
        i = 1
        while i < len(positions) - 1:
            if positions[i] is None:
                j = i
                while positions[j] is None:
                    j += 1
                start, end = positions[i - 1], positions[j]
                for k in range(i, j):
                    positions[k] = start + (end - start) * (k - i + 1) / (j - i + 1)
                i = j
            i += 1

        stops = [ColorStop(color=c, position=min(1.0, max(0.0, p))) for c, p in zip(colors, positions)]
        return cls(angle=angle, stops=stops)

    def css(self) -> str:
        stops = ', '.join(f"{s.color} {s.position * 100:g}%" for s in self.stops)
        return f"linear-gradient({self.angle:g}deg, {stops})"


Paint = Union[LinearGradient, str]


def _coerce_paint(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower().startswith('linear-gradient('):
        return LinearGradient.parse(value)
    return value


class ThemeFonts(_ThemeModel):
    header: FontSpec
    badge: FontSpec
    body: FontSpec
    footer: FontSpec


class ThemeColors(_ThemeModel):
    badge: str
    badge_text: str
    body_text: str
    header_text: str
    footer_text: str


class ThemeSpacing(_ThemeModel):
    padding: float = Field(ge=0)
    line_height: float = Field(ge=0)
    badge_height: float = Field(ge=0)
    badge_padding: float = Field(ge=0)
    badge_line_height: float = Field(default=DEFAULT_BADGE_LINE_HEIGHT, ge=0)

    @field_validator('badge_line_height', mode='before')
    @classmethod
    def _default_badge_line_height(cls, v):
        # Unset and zero both mean "use the documented default"
        return v or DEFAULT_BADGE_LINE_HEIGHT


class CanvasFormat(_ThemeModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ThemeDefinition(_ThemeModel):
    """A catalog entry: one named theme with every format it supports."""
    id: str
    name: str
    formats: Dict[str, CanvasFormat]
    default_format: str = "square"
    background: Paint = "#FFFFFF"
    fonts: ThemeFonts
    colors: ThemeColors
    spacing: ThemeSpacing

    @field_validator('background', mode='before')
    @classmethod
    def _parse_background(cls, v):
        return _coerce_paint(v)


class ThemeMetrics(_ThemeModel):
    """Fully materialised theme for one generation run (canvas size resolved)."""
    theme_id: str = "custom"
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    background: Paint = "#FFFFFF"
    fonts: ThemeFonts
    colors: ThemeColors
    spacing: ThemeSpacing

    @field_validator('background', mode='before')
    @classmethod
    def _parse_background(cls, v):
        return _coerce_paint(v)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThemeMetrics":
        """Build metrics from raw data, reporting missing fields as a configuration error."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            missing = ['.'.join(str(p) for p in err['loc']) for err in e.errors() if err['type'] == 'missing']
            raise ConfigurationError(
                "Theme is missing or has invalid metric fields",
                cause=e,
                context={'missing': missing} if missing else {}
            ) from e
