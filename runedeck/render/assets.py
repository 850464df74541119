"""Icon/background PNG cache.

Assets are addressed by a relative name (``"run/Run_energy_orb_enabled.png"``)
under one root directory. Each name is read from disk at most once; decoded
images are kept for the life of the process. A missing or unreadable file is
remembered as missing so the warning is logged once and the renderer simply
omits that layer.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable

from PIL import Image, UnidentifiedImageError

log = logging.getLogger(__name__)

_MISSING = object()


class AssetStore:
    """Write-once cache of RGBA images keyed by asset name."""

    def __init__(
        self,
        root: str | Path | None = None,
        *,
        reader: Callable[[str], bytes] | None = None,
    ) -> None:
        self._root = Path(root) if root is not None else None
        self._reader = reader
        self._images: dict[str, object] = {}
        self._scaled: dict[tuple[str, int, int], Image.Image] = {}

    @property
    def root(self) -> Path | None:
        return self._root

    def read_bytes(self, name: str) -> bytes:
        if self._reader is not None:
            return self._reader(name)
        if self._root is None:
            raise FileNotFoundError(name)
        return (self._root / name).read_bytes()

    def image(self, name: str) -> Image.Image | None:
        """Return the decoded RGBA image for *name*, or None if unavailable."""
        cached = self._images.get(name)
        if cached is _MISSING:
            return None
        if cached is not None:
            return cached  # type: ignore[return-value]

        try:
            raw = self.read_bytes(name)
            with Image.open(io.BytesIO(raw)) as im:
                rgba = im.convert("RGBA")
                rgba.load()
        except (OSError, UnidentifiedImageError, ValueError) as e:
            log.warning("assets: %s unavailable (%s)", name, e)
            self._images[name] = _MISSING
            return None

        self._images[name] = rgba
        return rgba

    def scaled(self, name: str, size: tuple[int, int]) -> Image.Image | None:
        """Image resized to *size* with nearest-neighbour sampling (pixel art)."""
        w, h = max(1, int(size[0])), max(1, int(size[1]))
        key = (name, w, h)
        hit = self._scaled.get(key)
        if hit is not None:
            return hit
        base = self.image(name)
        if base is None:
            return None
        if base.size == (w, h):
            out = base
        else:
            out = base.resize((w, h), Image.Resampling.NEAREST)
        self._scaled[key] = out
        return out

    def clear(self) -> None:
        self._images.clear()
        self._scaled.clear()
