"""Rotation card compositor."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import tempfile

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from salmonbot.rendering.render_spec import RenderSpec

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
CANVAS_SIZE = (CANVAS_WIDTH, CANVAS_HEIGHT)

STAGE_X = 62
STAGE_Y = 207
STAGE_WIDTH = 800
STAGE_HEIGHT = 450

ITEM_SIZE = 153
ITEM_SLOTS = (
    (896, 224),
    (1095, 224),
    (896, 430),
    (1095, 430),
)

LABEL_CENTER = (700, 635)
LABEL_FONT_SIZE = 40
LABEL_COLOR = (255, 255, 255, 255)

OVERLAY_FILE = "sroverlay.png"
FONT_FILE = Path("fonts") / "splatoonfont.ttf"

DEFAULT_BACKGROUND = "kingdefault.png"
BACKGROUNDS = {
    "Q29vcEVuZW15LTIz": "kingbig.png",
    "Q29vcEVuZW15LTI0": "kingyong.png",
    "Q29vcEVuZW15LTI1": "kingjoe.png",
    "Q29vcEVuZW15LTMw": "kingtri.png",
}

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


class AssetLoadError(Exception):
    """Raised when an image or font needed for compositing cannot be loaded."""


class RenderError(Exception):
    """Raised when drawing or encoding the card fails."""


def background_file(background_key: str) -> str:
    """Map a boss id to its background file name, falling back to the default."""
    return BACKGROUNDS.get(background_key, DEFAULT_BACKGROUND)


def _load_image(path: Path, size: tuple[int, int]) -> Image.Image:
    try:
        with Image.open(path) as image:
            image.load()
            return image.convert("RGBA").resize(size, Image.Resampling.BILINEAR)
    except (OSError, UnidentifiedImageError) as exc:
        raise AssetLoadError(f"Could not load image {path}: {exc}") from exc


def _load_font(path: Path, size: int) -> Font:
    try:
        return ImageFont.truetype(str(path), size)
    except OSError as exc:
        raise AssetLoadError(
            f"Font file not found or unreadable at {path}. "
            "Place the Splatoon pixel font at assets/fonts/splatoonfont.ttf."
        ) from exc


class Compositor:
    """Draw rotation cards onto a fixed 1280x720 layout."""

    def __init__(
        self,
        asset_dir: str | Path,
        output_path: str | Path,
        background_override: str | None = None,
        font: Font | None = None,
    ) -> None:
        self._asset_dir = Path(asset_dir)
        self._output_path = Path(output_path)
        self._background_override = background_override
        self._font = font

    @property
    def output_path(self) -> Path:
        return self._output_path

    def _background_path(self, background_key: str) -> Path:
        if self._background_override:
            return self._asset_dir / self._background_override
        return self._asset_dir / background_file(background_key)

    def _label_font(self) -> Font:
        if self._font is None:
            self._font = _load_font(self._asset_dir / FONT_FILE, LABEL_FONT_SIZE)
        return self._font

    def compose(self, spec: RenderSpec) -> Image.Image:
        """Compose an RGBA card from a RenderSpec."""
        if len(spec.item_image_paths) > len(ITEM_SLOTS):
            raise RenderError(
                f"At most {len(ITEM_SLOTS)} items fit on the card, got {len(spec.item_image_paths)}."
            )

        background = _load_image(self._background_path(spec.background_key), CANVAS_SIZE)
        stage = _load_image(spec.stage_image_path, (STAGE_WIDTH, STAGE_HEIGHT))
        overlay = _load_image(self._asset_dir / OVERLAY_FILE, CANVAS_SIZE)
        items = [_load_image(path, (ITEM_SIZE, ITEM_SIZE)) for path in spec.item_image_paths]
        font = self._label_font()

        try:
            canvas = Image.new("RGBA", CANVAS_SIZE, (0, 0, 0, 0))
            canvas.alpha_composite(background)
            canvas.alpha_composite(stage, dest=(STAGE_X, STAGE_Y))
            canvas.alpha_composite(overlay)
            for slot, item in zip(ITEM_SLOTS, items):
                canvas.alpha_composite(item, dest=slot)

            draw = ImageDraw.Draw(canvas)
            draw.text(LABEL_CENTER, spec.label_text, font=font, fill=LABEL_COLOR, anchor="mm")
        except (ValueError, OSError) as exc:
            raise RenderError(f"Drawing the rotation card failed: {exc}") from exc
        return canvas

    def render(self, spec: RenderSpec) -> Path:
        """Compose the card and publish it as a PNG at the output path.

        The image is written to a temporary file beside the output, flushed to
        disk, then renamed over the output path, so readers only ever see a
        complete file.
        """
        image = self.compose(spec)
        output_dir = self._output_path.parent
        output_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=".render-", suffix=".png", dir=output_dir)
        try:
            with os.fdopen(fd, "wb") as handle:
                image.save(handle, format="PNG")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._output_path)
        except (OSError, ValueError) as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise RenderError(f"Writing {self._output_path} failed: {exc}") from exc

        logger.info("Rendered rotation card to %s", self._output_path)
        return self._output_path


__all__ = [
    "AssetLoadError",
    "BACKGROUNDS",
    "Compositor",
    "DEFAULT_BACKGROUND",
    "RenderError",
    "background_file",
]
