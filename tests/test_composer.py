from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageFont
import pytest

from salmonbot.rendering import AssetLoadError, Compositor, RenderError, RenderSpec
from salmonbot.rendering.composer import (
    BACKGROUNDS,
    CANVAS_SIZE,
    DEFAULT_BACKGROUND,
    ITEM_SIZE,
    ITEM_SLOTS,
    LABEL_CENTER,
    OVERLAY_FILE,
    STAGE_HEIGHT,
    STAGE_WIDTH,
    STAGE_X,
    STAGE_Y,
    background_file,
)

DEFAULT_COLOR = (10, 20, 30, 255)
KING_BIG_COLOR = (200, 100, 50, 255)
OVERRIDE_COLOR = (90, 0, 90, 255)
STAGE_COLOR = (0, 128, 255, 255)
FRAME_COLOR = (0, 255, 0, 255)
ITEM_COLORS = [(255, 0, 0, 255), (0, 0, 255, 255), (255, 255, 0, 255), (0, 255, 255, 255)]

FRAME_BOX = (STAGE_X, STAGE_Y, STAGE_X + 20, STAGE_Y + 20)
BACKGROUND_PROBE = (10, 10)


def _solid(path: Path, size: tuple[int, int], color: tuple[int, int, int, int]) -> Path:
    Image.new("RGBA", size, color).save(path, format="PNG")
    return path


@pytest.fixture()
def asset_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "assets"
    directory.mkdir()
    _solid(directory / DEFAULT_BACKGROUND, CANVAS_SIZE, DEFAULT_COLOR)
    _solid(directory / BACKGROUNDS["Q29vcEVuZW15LTIz"], CANVAS_SIZE, KING_BIG_COLOR)
    _solid(directory / "custom.png", CANVAS_SIZE, OVERRIDE_COLOR)
    overlay = Image.new("RGBA", CANVAS_SIZE, (0, 0, 0, 0))
    overlay.paste(FRAME_COLOR, FRAME_BOX)
    overlay.save(directory / OVERLAY_FILE, format="PNG")
    return directory


@pytest.fixture()
def stage_path(tmp_path: Path) -> Path:
    return _solid(tmp_path / "stage.png", (STAGE_WIDTH, STAGE_HEIGHT), STAGE_COLOR)


@pytest.fixture()
def item_paths(tmp_path: Path) -> list[Path]:
    return [
        _solid(tmp_path / f"weapon{index}.png", (ITEM_SIZE, ITEM_SIZE), color)
        for index, color in enumerate(ITEM_COLORS, start=1)
    ]


@pytest.fixture()
def font() -> ImageFont.FreeTypeFont:
    return ImageFont.load_default(size=40)


def _compositor(asset_dir: Path, tmp_path: Path, font, **kwargs) -> Compositor:
    return Compositor(asset_dir, tmp_path / "out" / "finalImage.png", font=font, **kwargs)


def _spec(stage_path: Path, items: list[Path], key: str = "Q29vcEVuZW15LTIz", label: str = "") -> RenderSpec:
    return RenderSpec(
        background_key=key,
        stage_image_path=stage_path,
        item_image_paths=tuple(items),
        label_text=label,
    )


def _slot_center(index: int) -> tuple[int, int]:
    x, y = ITEM_SLOTS[index]
    return x + ITEM_SIZE // 2, y + ITEM_SIZE // 2


def test_compose_canvas_size_and_mode(asset_dir, tmp_path, stage_path, font) -> None:
    image = _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, []))

    assert image.size == (1280, 720)
    assert image.mode == "RGBA"


def test_background_selected_by_boss_id(asset_dir, tmp_path, stage_path, font) -> None:
    image = _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, []))

    assert image.getpixel(BACKGROUND_PROBE) == KING_BIG_COLOR


def test_unknown_boss_id_uses_default_background(asset_dir, tmp_path, stage_path, font) -> None:
    image = _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, [], key="unmapped"))

    assert image.getpixel(BACKGROUND_PROBE) == DEFAULT_COLOR


def test_background_override_replaces_mapping(asset_dir, tmp_path, stage_path, font) -> None:
    compositor = _compositor(asset_dir, tmp_path, font, background_override="custom.png")

    image = compositor.compose(_spec(stage_path, []))

    assert image.getpixel(BACKGROUND_PROBE) == OVERRIDE_COLOR


def test_background_file_mapping() -> None:
    assert background_file("Q29vcEVuZW15LTI0") == "kingyong.png"
    assert background_file("Q29vcEVuZW15LTI1") == "kingjoe.png"
    assert background_file("Q29vcEVuZW15LTMw") == "kingtri.png"
    assert background_file("") == DEFAULT_BACKGROUND


def test_stage_drawn_at_fixed_rect_under_overlay(asset_dir, tmp_path, stage_path, font) -> None:
    image = _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, []))

    assert image.getpixel((STAGE_X + 100, STAGE_Y + 100)) == STAGE_COLOR
    assert image.getpixel((STAGE_X + STAGE_WIDTH - 1, STAGE_Y + STAGE_HEIGHT - 1)) == STAGE_COLOR
    assert image.getpixel((STAGE_X + 5, STAGE_Y + 5)) == FRAME_COLOR
    assert image.getpixel((STAGE_X - 1, STAGE_Y + 100)) == KING_BIG_COLOR


def test_stage_image_is_stretched(asset_dir, tmp_path, font) -> None:
    small_stage = _solid(tmp_path / "small.png", (16, 9), STAGE_COLOR)

    image = _compositor(asset_dir, tmp_path, font).compose(_spec(small_stage, []))

    assert image.getpixel((STAGE_X + STAGE_WIDTH - 2, STAGE_Y + STAGE_HEIGHT - 2)) == STAGE_COLOR


def test_four_items_fill_slots_in_order(asset_dir, tmp_path, stage_path, item_paths, font) -> None:
    image = _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, item_paths))

    for index, color in enumerate(ITEM_COLORS):
        assert image.getpixel(_slot_center(index)) == color


def test_two_items_leave_trailing_slots_empty(asset_dir, tmp_path, stage_path, item_paths, font) -> None:
    image = _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, item_paths[:2]))

    assert image.getpixel(_slot_center(0)) == ITEM_COLORS[0]
    assert image.getpixel(_slot_center(1)) == ITEM_COLORS[1]
    assert image.getpixel(_slot_center(2)) == KING_BIG_COLOR
    assert image.getpixel(_slot_center(3)) == KING_BIG_COLOR


def test_label_is_drawn_near_fixed_center(asset_dir, tmp_path, stage_path, font) -> None:
    compositor = _compositor(asset_dir, tmp_path, font)
    x, y = LABEL_CENTER
    box = (x - 150, y - 25, x + 150, y + 25)

    blank = compositor.compose(_spec(stage_path, [], label="")).crop(box)
    labelled = compositor.compose(_spec(stage_path, [], label="Spawning Grounds")).crop(box)

    assert blank.tobytes() != labelled.tobytes()
    assert (255, 255, 255, 255) in labelled.getdata()


def test_render_writes_png_to_output_path(asset_dir, tmp_path, stage_path, item_paths, font) -> None:
    compositor = _compositor(asset_dir, tmp_path, font)

    output = compositor.render(_spec(stage_path, item_paths, label="Spawning Grounds"))

    assert output == tmp_path / "out" / "finalImage.png"
    with Image.open(output) as written:
        assert written.format == "PNG"
        assert written.size == CANVAS_SIZE
    assert [path.name for path in output.parent.iterdir()] == ["finalImage.png"]


def test_render_is_deterministic(asset_dir, tmp_path, stage_path, item_paths, font) -> None:
    spec = _spec(stage_path, item_paths, label="Spawning Grounds")
    first = Compositor(asset_dir, tmp_path / "a.png", font=font).render(spec)
    second = Compositor(asset_dir, tmp_path / "b.png", font=font).render(spec)

    assert first.read_bytes() == second.read_bytes()


def test_render_overwrites_previous_output(asset_dir, tmp_path, stage_path, item_paths, font) -> None:
    compositor = _compositor(asset_dir, tmp_path, font)
    compositor.render(_spec(stage_path, []))

    output = compositor.render(_spec(stage_path, item_paths))

    with Image.open(output) as written:
        assert written.getpixel(_slot_center(3)) == ITEM_COLORS[3]


def test_missing_stage_image_raises_asset_load_error(asset_dir, tmp_path, font) -> None:
    with pytest.raises(AssetLoadError):
        _compositor(asset_dir, tmp_path, font).compose(_spec(tmp_path / "missing.png", []))


def test_corrupt_item_image_raises_asset_load_error(asset_dir, tmp_path, stage_path, font) -> None:
    corrupt = tmp_path / "weapon1.png"
    corrupt.write_bytes(b"not an image")

    with pytest.raises(AssetLoadError):
        _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, [corrupt]))


def test_missing_font_raises_asset_load_error(asset_dir, tmp_path, stage_path) -> None:
    compositor = Compositor(asset_dir, tmp_path / "finalImage.png")

    with pytest.raises(AssetLoadError):
        compositor.compose(_spec(stage_path, []))


def test_too_many_items_raises_render_error(asset_dir, tmp_path, stage_path, item_paths, font) -> None:
    with pytest.raises(RenderError):
        _compositor(asset_dir, tmp_path, font).compose(_spec(stage_path, item_paths + item_paths[:1]))
