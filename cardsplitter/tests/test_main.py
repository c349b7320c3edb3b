import json

import pytest

from cardsplitter.main import main
from cardsplitter.models.page import FileKind, make_pages
from cardsplitter.models.settings import (
    Duplex, FlipEdge, GridSpec, Simplex, default_settings_for_mode, with_extraction,
)
from cardsplitter.services.settings_io import load_settings, save_settings


@pytest.fixture
def document(qapp, make_sheet, tmp_path):
    image = tmp_path / "page1.png"
    make_sheet(600, 300, 1, 2).save(str(image))
    settings = default_settings_for_mode(Simplex(), make_pages(1, FileKind.IMAGE))
    settings = with_extraction(settings, grid=GridSpec(1, 2))
    path = save_settings(settings, tmp_path / "settings.json")
    return str(path), str(image)


def test_ids_lists_every_card(document, capsys):
    settings, image = document
    assert main(["ids", settings, image]) == 0
    out = capsys.readouterr().out
    assert "Front 1" in out and "Front 2" in out
    assert "Front: 2 available of 2" in out
    assert "Back: 0 available of 0" in out


def test_export_writes_pdf(document, tmp_path, capsys):
    settings, image = document
    target = tmp_path / "out.pdf"
    assert main(["export", settings, image, "--side", "front", "--output", str(target)]) == 0
    assert target.read_bytes().startswith(b"%PDF")
    assert "Exported 2 front cards" in capsys.readouterr().out


def test_export_requires_pdf_target(document, tmp_path):
    settings, image = document
    with pytest.raises(SystemExit) as exc:
        main(["export", settings, image, "--output", str(tmp_path / "out.txt")])
    assert exc.value.code == 2


def test_bad_settings_file_exits_with_message(document, tmp_path, capsys):
    _, image = document
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"processingMode": {"type": "simplex"},
                               "extraction": {"grid": {"rows": 0, "columns": 1}},
                               "output": {}}))
    with pytest.raises(SystemExit) as exc:
        main(["ids", str(bad), image])
    assert exc.value.code == 2
    assert "extraction->grid->rows" in capsys.readouterr().err


def test_ids_mirror_portrait_long_edge_backs_by_column(qapp, make_sheet, tmp_path, capsys):
    images = []
    for n in (1, 2):
        path = tmp_path / f"page{n}.png"
        make_sheet(600, 800, 2, 2).save(str(path))
        images.append(str(path))
    # pages saved without sizes; the sizes come from the images
    settings = default_settings_for_mode(Duplex(FlipEdge.LONG),
                                         make_pages(2, FileKind.IMAGE, alternate=True))
    settings = with_extraction(settings, grid=GridSpec(2, 2))
    path = save_settings(settings, tmp_path / "duplex.json")

    assert main(["ids", str(path), *images]) == 0
    lines = capsys.readouterr().out.splitlines()
    backs = [line.split()[-1] for line in lines if "Back " in line and "available" not in line]
    assert backs == ["2", "1", "4", "3"]


def test_images_writes_card_pngs(document, tmp_path, capsys):
    settings, image = document
    target = tmp_path / "cards"
    assert main(["images", settings, image, "--output-dir", str(target)]) == 0
    assert sorted(p.name for p in target.iterdir()) == [
        "front_01_page1.png", "front_02_page1.png"]
    assert "Saved 2 front card images" in capsys.readouterr().out


def test_calibration_sheet_writes_pdf(document, tmp_path):
    settings, _ = document
    target = tmp_path / "calibration.pdf"
    assert main(["calibration-sheet", settings, "--output", str(target)]) == 0
    assert target.read_bytes().startswith(b"%PDF")


def test_calibrate_saves_corrected_output(document, capsys):
    settings, _ = document
    args = ["calibrate", settings, "--right", "1.25", "--top", "1.95", "--crosshair", "1.05"]
    assert main(args + ["--save"]) == 0
    out = capsys.readouterr().out
    assert "Printer enlarges by 5.0%" in out
    assert "Scale: 95%" in out
    output = load_settings(settings).output
    assert output.offset == (0.0, -0.2)
    assert output.card_scale_percent == 95
