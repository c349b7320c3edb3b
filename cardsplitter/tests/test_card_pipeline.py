import pytest
from PySide6.QtGui import QColor

from cardsplitter.errors import ExtractionFailure
from cardsplitter.models.card import CardRegion, CardType
from cardsplitter.models.page import PageDescriptor, PageType, make_pages
from cardsplitter.models.settings import (
    ExtractionSettings, GridSpec, GutterFold, Orientation, Simplex, WorkflowSettings,
)
from cardsplitter.services.card_pipeline import CardPipeline
from cardsplitter.services.page_source import ImageFileRasterizer


def simplex_settings(pages, rows=1, columns=2):
    return WorkflowSettings(processing_mode=Simplex(), pages=pages,
                            extraction=ExtractionSettings(grid=GridSpec(rows, columns)))


def test_preview_of_a_card(make_sheet, memory_rasterizer):
    raster = memory_rasterizer([make_sheet(400, 200, 1, 2, colors=["red", "blue"])])
    pipeline = CardPipeline(simplex_settings(make_pages(1)), raster)

    result = pipeline.preview(1)
    assert result.ok and not result.retryable
    assert str(result.identity) == "Front 2"
    assert result.region == CardRegion(200, 0, 200, 200)
    assert (result.image.width(), result.image.height()) == (200, 200)
    assert result.image.pixelColor(100, 100) == QColor("blue")
    assert result.placement.image_width == pytest.approx(200 / 300)
    assert (result.placement.width, result.placement.height) == (2.5, 3.5)


def test_preview_and_export_paths_agree(make_sheet, memory_rasterizer):
    raster = memory_rasterizer([make_sheet(600, 400, 2, 3)])
    pipeline = CardPipeline(simplex_settings(make_pages(1), 2, 3), raster)
    for i in range(6):
        preview = pipeline.preview(i)
        assert preview.placement == pipeline.placement(i)
        assert preview.image == pipeline.card_image(i)


def test_skipped_pages_map_to_physical_pages(make_sheet, memory_rasterizer):
    images = [make_sheet(200, 200, 1, 1, colors=[c]) for c in ("red", "green", "blue")]
    raster = memory_rasterizer(images)
    pages = (PageDescriptor(0), PageDescriptor(1, PageType.SKIP), PageDescriptor(2))
    pipeline = CardPipeline(simplex_settings(pages, 1, 1), raster)

    assert pipeline.total_cards == 2
    image = pipeline.card_image(1)
    assert image.pixelColor(5, 5) == QColor("blue")
    assert set(raster.requests) == {3}


def test_rasterizer_failure_comes_back_as_retryable(make_sheet, memory_rasterizer):
    raster = memory_rasterizer([make_sheet(200, 200, 1, 1)], fail={1})
    pipeline = CardPipeline(simplex_settings(make_pages(1), 1, 1), raster)

    result = pipeline.preview(0)
    assert result.retryable
    assert result.image is None and result.placement is None
    assert "failed to render" in result.error

    with pytest.raises(ExtractionFailure) as exc:
        pipeline.card_image(0)
    assert exc.value.card_index == 0


def test_cache_reuses_extracted_images(make_sheet, memory_rasterizer):
    raster = memory_rasterizer([make_sheet(400, 200, 1, 2)])
    pipeline = CardPipeline(simplex_settings(make_pages(1)), raster)
    first = pipeline.card_image(0)
    assert pipeline.card_image(0) is first
    assert len(pipeline.cache) > 0
    pipeline.cache.clear()
    assert pipeline.card_image(0) is not first


def test_gutter_fold_back_skips_the_gutter(make_sheet, memory_rasterizer):
    raster = memory_rasterizer([make_sheet(400, 300, 2, 1, colors=["red", "blue"])])
    mode = GutterFold(Orientation.HORIZONTAL)
    settings = WorkflowSettings(processing_mode=mode, pages=make_pages(1),
                                extraction=ExtractionSettings(grid=GridSpec(2, 1),
                                                              gutter_width=100))
    pipeline = CardPipeline(settings, raster)
    back = pipeline.preview(1)
    assert back.identity.card_type is CardType.BACK
    assert back.region == CardRegion(0, 200, 400, 100)
    assert back.image.pixelColor(10, 50) == QColor("blue")


def test_image_file_rasterizer(make_sheet, tmp_path):
    path = tmp_path / "page.png"
    assert make_sheet(300, 600, 1, 1).save(str(path))
    raster = ImageFileRasterizer([path, tmp_path / "missing.png"])

    page = raster.get_page(1)
    assert (page.width, page.height) == (300, 600)
    with pytest.raises(IOError):
        raster.get_page(2)
    with pytest.raises(IndexError):
        raster.get_page(3)

    pages = raster.descriptors(alternate=True)
    assert pages[0].size == (72.0, 144.0)
    assert pages[1].page_type is PageType.BACK and pages[1].size is None
