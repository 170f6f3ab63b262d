import json
import logging
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from app.config import (
    CONFIDENCE_LABELS_PATH,
    LEGEND_LIGHT_THRESHOLD,
    TISSUE_LABELS_PATH,
)
from app.tissue_data import CONFIDENCE_LABELS, TISSUE_LABELS

logger = logging.getLogger(__name__)


class Color(NamedTuple):
    """8-bit sRGB color with straight (non-premultiplied) alpha."""
    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parses '#RRGGBB' or '#RRGGBBAA'."""
        digits = value.lstrip("#")
        if len(digits) not in (6, 8):
            raise ValueError(f"Invalid color literal: {value!r}")
        channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
        return cls(*channels)

    @property
    def hex(self) -> str:
        if self.a == 255:
            return f"#{self.r:02X}{self.g:02X}{self.b:02X}"
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}"

    @property
    def as_uint32(self) -> int:
        """
        Packs the color as 0xAARRGGBB with alpha premultiplied into RGB.
        Stored as a little-endian word this is the B, G, R, A byte layout
        expected by the bitmap compositor.
        """
        a = self.a
        r = (self.r * a + 127) // 255
        g = (self.g * a + 127) // 255
        b = (self.b * a + 127) // 255
        return (a << 24) | (r << 16) | (g << 8) | b

    def brightness(self) -> float:
        """Perceived brightness (0-255), ITU BT.601 luma weights."""
        return (self.r * 299 + self.g * 587 + self.b * 114) / 1000

    def is_light(self) -> bool:
        return self.brightness() >= LEGEND_LIGHT_THRESHOLD


class LabelEntry(NamedTuple):
    name: str
    color: Color


class LabelTable:
    """
    Immutable, index-addressable table of (name, color) entries.

    Index i corresponds to class (or confidence bucket) i of the model output.
    Indices past the end of the table reuse the table colors cyclically and are
    named "Class <i>", so models with more classes than named labels still render.
    """

    def __init__(self, entries: Sequence[Tuple[str, Union[Color, Tuple[int, ...]]]]):
        if not entries:
            raise ValueError("A label table needs at least one entry")
        self._entries = tuple(LabelEntry(name, Color(*color)) for name, color in entries)
        # Legends are keyed by name
        duplicates = sorted({e.name for e in self._entries if self.names.count(e.name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate label names: {duplicates}")
        self._packed = tuple(entry.color.as_uint32 for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> LabelEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[LabelEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"LabelTable({[e.name for e in self._entries]})"

    @property
    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    def entry_for(self, index: int) -> LabelEntry:
        if index < 0:
            raise IndexError(f"Negative label index: {index}")
        if index < len(self._entries):
            return self._entries[index]
        return LabelEntry(f"Class {index}", self._entries[index % len(self._entries)].color)

    def packed_color(self, index: int) -> int:
        """Packed premultiplied 0xAARRGGBB color for a label index."""
        return self._packed[index % len(self._packed)]

    def packed_colors(self, count: int) -> List[int]:
        """Packed colors for indices 0..count-1 (lookup table for vectorized paths)."""
        return [self.packed_color(i) for i in range(count)]

    @classmethod
    def from_json(cls, path: str, fallback: Optional["LabelTable"] = None) -> "LabelTable":
        """
        Loads a label table from JSON.

        Accepts a list of {"name": ..., "color": "#RRGGBB[AA]"} objects, or a
        bare list of names. Names without a color take the fallback table's
        color at the same position (cyclically).
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, list) or not data:
            raise ValueError(f"Label file {path} must contain a non-empty JSON list")

        entries = []
        for i, item in enumerate(data):
            if isinstance(item, str):
                name, color = item, None
            elif isinstance(item, dict) and "name" in item:
                name = item["name"]
                color = Color.from_hex(item["color"]) if item.get("color") else None
            else:
                raise ValueError(f"Invalid label entry #{i} in {path}: {item!r}")

            if color is None:
                if fallback is None:
                    raise ValueError(f"Label {name!r} in {path} has no color and no fallback table")
                color = fallback.entry_for(i).color
            entries.append((name, color))

        logger.info(f"Loaded {len(entries)} labels from {path}")
        return cls(entries)


def _load_table(path: Optional[str], defaults: LabelTable) -> LabelTable:
    if not path:
        return defaults
    return LabelTable.from_json(path, fallback=defaults)


# Built-in tables, optionally overridden from the configured label files.
tissue_label_table = _load_table(TISSUE_LABELS_PATH, LabelTable(TISSUE_LABELS))
confidence_label_table = _load_table(CONFIDENCE_LABELS_PATH, LabelTable(CONFIDENCE_LABELS))
