"""Exceptions raised by the PDF417-X raster encoder."""


class RasterError(Exception):
    """Base class for every error raised while rendering a symbol."""


class MalformedCodewordError(RasterError, ValueError):
    """A codeword does not fit the bit width of its column."""

    def __init__(self, value, width: int, line: int | None = None, column: int | None = None,
                 reason: str | None = None):
        self.value = value
        self.width = width
        self.line = line
        self.column = column
        where = ""
        if line is not None and column is not None:
            where = f" at line {line}, column {column}"
        reason = reason or f"does not fit in {width} bits"
        super().__init__(f"codeword {value!r}{where} {reason}")


class IrregularGridError(RasterError, ValueError):
    """The grid is empty, too narrow, or its lines differ in length."""


class SinkError(RasterError):
    """The image sink was fed rows it cannot turn into an image."""


class ConfigError(RasterError, ValueError):
    """Invalid rendering parameters or sink options."""
