"""Layout compositor.

Раскладка фото на лист печати 6x4 дюйма: расчёт сетки и локальная сборка
листа через Pillow.
"""

import io
from collections.abc import Iterator
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from idphoto.core.constants import (
    DEFAULT_JPEG_QUALITY,
    LAYOUT_GAP_PX,
    REDUCED_JPEG_QUALITY,
    SHEET_HEIGHT_INCH,
    SHEET_WIDTH_INCH,
    SMALL_TARGET_KB,
)
from idphoto.shared.errors import BadRequestError, LayoutDoesNotFitError

WHITE = (255, 255, 255)


@dataclass(frozen=True)
class LayoutGrid:
    """Сетка фото на листе.

    Attributes:
        sheet_width: Ширина листа в пикселях
        sheet_height: Высота листа в пикселях
        tile_width: Ширина фото
        tile_height: Высота фото
        gap: Зазор между фото
        cols: Число столбцов
        rows: Число строк
        start_x: Отступ первого столбца слева
        start_y: Отступ первой строки сверху

    """

    sheet_width: int
    sheet_height: int
    tile_width: int
    tile_height: int
    gap: int
    cols: int
    rows: int
    start_x: int
    start_y: int

    @property
    def count(self) -> int:
        """Число фото на листе."""
        return self.cols * self.rows

    def positions(self) -> Iterator[tuple[int, int]]:
        """Координаты левого верхнего угла каждого фото, построчно."""
        for row in range(self.rows):
            for col in range(self.cols):
                yield (
                    self.start_x + col * (self.tile_width + self.gap),
                    self.start_y + row * (self.tile_height + self.gap),
                )


def sheet_size(dpi: int) -> tuple[int, int]:
    """Размер листа 6x4 дюйма в пикселях при заданном DPI."""
    return int(dpi * SHEET_WIDTH_INCH), int(dpi * SHEET_HEIGHT_INCH)


def compute_grid(dpi: int, tile_width: int, tile_height: int, gap: int = LAYOUT_GAP_PX) -> LayoutGrid:
    """Рассчитать сетку фото на листе.

    По каждой оси берётся наибольшее count, при котором
    count * (tile + gap) - gap <= размер листа. Остаток делится поровну
    до первого и после последнего фото.

    Args:
        dpi: DPI листа
        tile_width: Ширина фото в пикселях
        tile_height: Высота фото в пикселях
        gap: Зазор между фото

    Returns:
        LayoutGrid.

    Raises:
        BadRequestError: Неположительные DPI или размер фото.
        LayoutDoesNotFitError: Фото не помещается на лист ни разу.

    """
    if dpi <= 0 or tile_width <= 0 or tile_height <= 0:
        raise BadRequestError(
            message="DPI и размер фото должны быть положительными",
            details={"dpi": dpi, "width": tile_width, "height": tile_height},
        )

    sheet_width, sheet_height = sheet_size(dpi)
    cols = (sheet_width + gap) // (tile_width + gap)
    rows = (sheet_height + gap) // (tile_height + gap)
    if cols < 1 or rows < 1:
        raise LayoutDoesNotFitError((sheet_width, sheet_height), (tile_width, tile_height), gap)

    used_width = cols * tile_width + (cols - 1) * gap
    used_height = rows * tile_height + (rows - 1) * gap
    return LayoutGrid(
        sheet_width=sheet_width,
        sheet_height=sheet_height,
        tile_width=tile_width,
        tile_height=tile_height,
        gap=gap,
        cols=cols,
        rows=rows,
        start_x=(sheet_width - used_width) // 2,
        start_y=(sheet_height - used_height) // 2,
    )


def jpeg_quality(target_kb: int) -> int:
    """Качество JPEG для целевого размера файла.

    Маленький целевой размер понижает качество. Это эвристика, а не
    гарантия размера.
    """
    if 0 < target_kb < SMALL_TARGET_KB:
        return REDUCED_JPEG_QUALITY
    return DEFAULT_JPEG_QUALITY


def compose_sheet(image: bytes, grid: LayoutGrid, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """Собрать лист печати.

    Args:
        image: Фото (JPEG/PNG)
        grid: Рассчитанная сетка
        quality: Качество JPEG

    Returns:
        JPEG листа.

    Raises:
        BadRequestError: Фото не удалось прочитать.

    """
    try:
        tile = Image.open(io.BytesIO(image))
        tile.load()
    except (UnidentifiedImageError, OSError) as e:
        raise BadRequestError(message=f"Не удалось прочитать фото для листа: {e}") from e

    tile = tile.convert("RGB")
    if tile.size != (grid.tile_width, grid.tile_height):
        tile = tile.resize((grid.tile_width, grid.tile_height), Image.LANCZOS)

    canvas = Image.new("RGB", (grid.sheet_width, grid.sheet_height), WHITE)
    for position in grid.positions():
        canvas.paste(tile, position)

    out = io.BytesIO()
    canvas.save(out, format="JPEG", quality=quality)
    return out.getvalue()
