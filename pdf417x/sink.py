"""Row-streamed grayscale PNG sink backed by Pillow."""

import io
from typing import Callable

from PIL import Image

from pdf417x.errors import SinkError
from pdf417x.logging import audit, get_logger

log = get_logger("sink")

SUPPORTED_MODES = ("L",)


class PngSink:
    """Collects pixel rows top to bottom and finalizes them into PNG bytes.

    Rows go into one append-only buffer owned by the sink. Nothing is
    encoded until close(), which hands the buffer to Pillow.

    Pillow's PNG writer takes a whole image, so the raw ``width * height``
    samples are held in memory until close(). The encoder itself never
    materializes the image; it only builds one row per grid line. Callers
    that need rows as they arrive use ``on_row``, which fires on every
    append, before close().
    """

    def __init__(
        self,
        size: tuple[int, int],
        mode: str = "L",
        on_row: Callable[[bytes], None] | None = None,
        compress_level: int | None = None,
        optimize: bool = False,
        dpi: tuple[int, int] | None = None,
    ):
        if mode not in SUPPORTED_MODES:
            raise SinkError(f"unsupported pixel mode {mode!r}, expected one of {SUPPORTED_MODES}")
        width, height = size
        if width <= 0 or height <= 0:
            raise SinkError(f"image size must be positive, got {width}x{height}")
        self.size = (width, height)
        self.mode = mode
        self.on_row = on_row
        self.compress_level = compress_level
        self.optimize = optimize
        self.dpi = dpi
        self.rows_written = 0
        self._buffer: bytearray | None = bytearray()
        self._closed = False

    @classmethod
    def open(cls, size, mode="L", on_row=None, **options) -> "PngSink":
        """Create a sink for an image of ``size`` (width, height)."""
        sink = cls(size, mode=mode, on_row=on_row, **options)
        log.debug("sink.open size=%dx%d mode=%s", size[0], size[1], mode)
        return sink

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def append(self, row: bytes):
        """Buffer one pixel row, then pass it to the on_row callback."""
        if self._buffer is None:
            raise SinkError("sink is closed")
        if len(row) != self.width:
            raise SinkError(
                f"row {self.rows_written} has {len(row)} samples, image width is {self.width}"
            )
        if self.rows_written >= self.height:
            raise SinkError(f"image height is {self.height}, refusing row {self.rows_written}")
        self._buffer += row
        self.rows_written += 1
        if self.on_row is not None:
            self.on_row(bytes(row))

    def close(self) -> bytes:
        """Encode the buffered rows as PNG and return the file bytes."""
        if self._closed:
            raise SinkError("sink already closed")
        if self._buffer is None:
            raise SinkError("sink was released before close")
        if self.rows_written != self.height:
            raise SinkError(f"expected {self.height} rows, got {self.rows_written}")

        img = Image.frombytes(self.mode, self.size, bytes(self._buffer))
        save_kwargs = {"optimize": self.optimize}
        if self.compress_level is not None:
            save_kwargs["compress_level"] = self.compress_level
        if self.dpi is not None:
            save_kwargs["dpi"] = self.dpi

        out = io.BytesIO()
        img.save(out, format="PNG", **save_kwargs)
        data = out.getvalue()
        self._closed = True
        self.release()
        audit("sink.closed", logger=log, size=f"{self.width}x{self.height}", png_bytes=len(data))
        return data

    def release(self):
        """Drop the row buffer. Safe to call more than once."""
        self._buffer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
