"""Rendering parameters and sink option overlay."""

from dataclasses import dataclass

from pdf417x.errors import ConfigError

# Bits per codeword; the stop pattern closing every line carries one extra bit
CODEWORD_BITS = 17
STOP_PATTERN_BITS = 18

BLACK = 0
WHITE = 255
BAR_WIDTH = 5
SCALE_FACTOR = 4

# Keys a caller may overlay on the computed sink defaults
SINK_OPTION_KEYS = frozenset({"size", "mode", "on_row", "compress_level", "optimize", "dpi"})


@dataclass(frozen=True)
class RenderConfig:
    """Pixel geometry and sample values for one rendering.

    Attributes:
        bar_width: Pixel width of one module (one bit).
        scale_factor: Height of a logical symbol row, in modules.
        black: Sample value for bit 1.
        white: Sample value for bit 0 and for the quiet zone.
    """
    bar_width: int = BAR_WIDTH
    scale_factor: int = SCALE_FACTOR
    black: int = BLACK
    white: int = WHITE

    def __post_init__(self):
        for name in ("bar_width", "scale_factor"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in ("black", "white"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 255:
                raise ConfigError(f"{name} must be an 8-bit sample (0-255), got {value!r}")

    @property
    def quiet_zone(self) -> int:
        """Blank margin on every side, two modules wide."""
        return 2 * self.bar_width

    @property
    def row_repeat(self) -> int:
        """Pixel rows emitted per logical symbol row."""
        return self.scale_factor * self.bar_width


DEFAULT_CONFIG = RenderConfig()


def sink_options(defaults: dict, overrides: dict | None = None) -> dict:
    """Overlay caller options on the computed sink defaults.

    The caller wins on any shared key. Keys outside SINK_OPTION_KEYS raise
    ConfigError rather than being passed to the sink unnoticed.
    """
    merged = dict(defaults)
    if not overrides:
        return merged
    unknown = sorted(set(overrides) - SINK_OPTION_KEYS)
    if unknown:
        raise ConfigError(f"unknown sink option(s): {', '.join(unknown)}")
    merged.update(overrides)
    return merged
