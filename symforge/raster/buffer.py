"""
Immutable raster buffers.

A RasterBuffer wraps a private, read-only numpy array of samples together
with its pixel format. Every transformation produces a new buffer; nothing
in symforge writes into an existing one.

Format conversion and PNG I/O are delegated to Pillow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np
from PIL import Image

from ..errors import MissingRasterError, RasterFormatError


@dataclass(frozen=True)
class FormatSpec:
    code: int  # one-byte tag written into the canonical hash header
    channels: int
    dtype: str  # numpy dtype string, explicit byte order for multi-byte samples
    pil_mode: str


class PixelFormat(str, Enum):
    L8 = "L8"
    RGBA32 = "RGBA32"
    RGB24 = "RGB24"
    LA16 = "LA16"
    L16 = "L16"

    @property
    def spec(self) -> FormatSpec:
        return _FORMAT_SPECS[self]

    @property
    def code(self) -> int:
        return self.spec.code

    @property
    def channels(self) -> int:
        return self.spec.channels

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.spec.dtype)

    @property
    def max_value(self) -> int:
        return int(np.iinfo(self.dtype).max)


_FORMAT_SPECS: dict[PixelFormat, FormatSpec] = {
    PixelFormat.L8: FormatSpec(code=1, channels=1, dtype="u1", pil_mode="L"),
    PixelFormat.RGBA32: FormatSpec(code=2, channels=4, dtype="u1", pil_mode="RGBA"),
    PixelFormat.RGB24: FormatSpec(code=3, channels=3, dtype="u1", pil_mode="RGB"),
    PixelFormat.LA16: FormatSpec(code=4, channels=2, dtype="u1", pil_mode="LA"),
    PixelFormat.L16: FormatSpec(code=5, channels=1, dtype="<u2", pil_mode="I;16"),
}

_FORMAT_BY_PIL_MODE = {spec.pil_mode: fmt for fmt, spec in _FORMAT_SPECS.items()}
# Other byte orders of 16-bit gray; np.array casts them to the L16 layout.
_FORMAT_BY_PIL_MODE.update({"I;16L": PixelFormat.L16, "I;16B": PixelFormat.L16, "I;16N": PixelFormat.L16})
# 8-bit modes Pillow converts into a supported format.
_CONVERTIBLE_PIL_MODES = {"1": "L", "P": "RGBA", "PA": "RGBA", "RGBX": "RGBA", "CMYK": "RGBA", "YCbCr": "RGBA"}
_FORMAT_BY_CHANNELS_U8 = {
    1: PixelFormat.L8,
    2: PixelFormat.LA16,
    3: PixelFormat.RGB24,
    4: PixelFormat.RGBA32,
}


def _infer_format(samples: np.ndarray) -> PixelFormat:
    if samples.ndim not in (2, 3):
        raise RasterFormatError(f"Expected a 2D or 3D sample array, got ndim={samples.ndim}")
    channels = 1 if samples.ndim == 2 else samples.shape[2]
    if samples.dtype.kind != "u":
        raise RasterFormatError(f"Samples must be unsigned integers, got dtype={samples.dtype}")
    if samples.dtype.itemsize == 2 and channels == 1:
        return PixelFormat.L16
    if samples.dtype.itemsize == 1 and channels in _FORMAT_BY_CHANNELS_U8:
        return _FORMAT_BY_CHANNELS_U8[channels]
    raise RasterFormatError(f"No pixel format for {channels} channel(s) of dtype={samples.dtype}")


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """
    Fixed-width 2D sample grid.

    Samples have shape (height, width) for single-channel formats and
    (height, width, channels) otherwise. The array is copied on
    construction and flagged read-only.
    """

    samples: np.ndarray
    pixel_format: PixelFormat

    def __post_init__(self) -> None:
        if self.samples is None:
            raise MissingRasterError("samples cannot be None")
        fmt = PixelFormat(self.pixel_format)
        arr = np.asarray(self.samples)

        expected_ndim = 2 if fmt.channels == 1 else 3
        if arr.ndim != expected_ndim:
            raise RasterFormatError(f"{fmt.value} expects ndim={expected_ndim}, got ndim={arr.ndim}")
        if expected_ndim == 3 and arr.shape[2] != fmt.channels:
            raise RasterFormatError(f"{fmt.value} expects {fmt.channels} channels, got {arr.shape[2]}")
        if arr.dtype.kind != "u" or arr.dtype.itemsize != fmt.dtype.itemsize:
            raise RasterFormatError(f"{fmt.value} expects dtype={fmt.dtype}, got dtype={arr.dtype}")

        private = np.array(arr, dtype=fmt.dtype, copy=True, order="C")
        private.setflags(write=False)
        object.__setattr__(self, "samples", private)
        object.__setattr__(self, "pixel_format", fmt)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_array(cls, samples: np.ndarray, pixel_format: PixelFormat | None = None) -> RasterBuffer:
        """Wrap an array, inferring the pixel format from shape and dtype when not given."""
        if samples is None:
            raise MissingRasterError("samples cannot be None")
        arr = np.asarray(samples)
        return cls(samples=arr, pixel_format=pixel_format or _infer_format(arr))

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        value: int | tuple[int, ...],
        pixel_format: PixelFormat = PixelFormat.L8,
    ) -> RasterBuffer:
        """Create a uniform buffer."""
        if width <= 0 or height <= 0:
            raise RasterFormatError(f"Dimensions must be positive, got {width}x{height}")
        fmt = PixelFormat(pixel_format)
        shape = (height, width) if fmt.channels == 1 else (height, width, fmt.channels)
        samples = np.empty(shape, dtype=fmt.dtype)
        samples[...] = value
        return cls(samples=samples, pixel_format=fmt)

    @classmethod
    def from_image(cls, image: Image.Image) -> RasterBuffer:
        """
        Convert a Pillow image.

        Bilevel, palette and other 8-bit modes go through Pillow's converters.
        32-bit integer and float modes have no lossless format and are refused.
        """
        fmt = _FORMAT_BY_PIL_MODE.get(image.mode)
        if fmt is None:
            target = _CONVERTIBLE_PIL_MODES.get(image.mode)
            if target is None:
                raise RasterFormatError(f"Unsupported image mode {image.mode!r}")
            image = image.convert(target)
            fmt = _FORMAT_BY_PIL_MODE[target]
        return cls(samples=np.array(image, dtype=fmt.dtype), pixel_format=fmt)

    @classmethod
    def load(cls, path: Path) -> RasterBuffer:
        """Load an image file (PNG recommended: lossless)."""
        with Image.open(path) as image:
            image.load()
            return cls.from_image(image)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.samples.shape[1])

    @property
    def height(self) -> int:
        return int(self.samples.shape[0])

    @property
    def channels(self) -> int:
        return self.pixel_format.channels

    @property
    def nbytes(self) -> int:
        """Exact byte length of the sample data."""
        return self.width * self.height * self.channels * self.pixel_format.dtype.itemsize

    def shape_key(self) -> tuple[int, int, str]:
        return (self.width, self.height, self.pixel_format.value)

    def to_bytes(self) -> bytes:
        """Row-major sample bytes (channels interleaved, little-endian for 16-bit)."""
        return self.samples.tobytes(order="C")

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.samples))

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().save(path, format="PNG")
        return path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return self.pixel_format == other.pixel_format and np.array_equal(self.samples, other.samples)

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height} {self.pixel_format.value})"
