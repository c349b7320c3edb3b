#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from PySide6.QtGui import QGuiApplication

from cardsplitter.errors import CardSplitterError, ConfigurationError, ExportAborted
from cardsplitter.models.card import CardType
from cardsplitter.models.page import active_pages
from cardsplitter.models.settings import Duplex, WorkflowSettings
from cardsplitter.services.calibration import (
    CalibrationMeasurement, calibration_diagnostics, calibration_settings, write_calibration_pdf,
)
from cardsplitter.services.card_pipeline import CardPipeline
from cardsplitter.services.export_manager import ExportManager
from cardsplitter.services.identity_assigner import identity_table
from cardsplitter.services.page_source import ImageFileRasterizer
from cardsplitter.services.settings_io import apply_loaded_settings, load_settings, save_settings
from cardsplitter.services.skip_filter import available_ids, count_by_type
from cardsplitter.utils.logger import setup_logger

log = logging.getLogger("cardsplitter.main")

# --- Helpers ---------------------------------------------------------------

def _die(msg: str, code: int = 2):
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(code)


def _ensure_pdf_path(path_like) -> Path:
    p = Path(path_like).expanduser().resolve()
    if p.suffix.lower() != ".pdf":
        _die(f"invalid PDF path: {path_like}")
    return p


# --- Argparse --------------------------------------------------------------

def build_parser():
    p = argparse.ArgumentParser(
        prog="cardsplitter",
        description="Split print-and-play card sheets into individual cards"
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    p.add_argument("--log-file", dest="log_file", help="Also write the log to this file")
    sub = p.add_subparsers(dest="command", required=True)

    ids = sub.add_parser("ids", help="List the card identities of a document")
    ids.add_argument("settings", help="settings file (JSON)")
    ids.add_argument("images", nargs="+", help="page images, in page order")

    export = sub.add_parser("export", help="Export one side of the cards to PDF")
    export.add_argument("settings", help="settings file (JSON)")
    export.add_argument("images", nargs="+", help="page images, in page order")
    export.add_argument("--side", choices=[t.value for t in CardType], default="front")
    export.add_argument("--output", "-o", required=True, dest="output", help="PDF file to write")

    images = sub.add_parser("images", help="Save one side of the cards as PNG files")
    images.add_argument("settings", help="settings file (JSON)")
    images.add_argument("images", nargs="+", help="page images, in page order")
    images.add_argument("--side", choices=[t.value for t in CardType], default="front")
    images.add_argument("--output-dir", "-o", required=True, dest="output_dir",
                        help="directory for the card images")

    sheet = sub.add_parser("calibration-sheet", help="Write a printer calibration PDF")
    sheet.add_argument("settings", help="settings file (JSON)")
    sheet.add_argument("--output", "-o", required=True, dest="output", help="PDF file to write")

    cal = sub.add_parser("calibrate", help="Correct offset and scale from calibration measurements")
    cal.add_argument("settings", help="settings file (JSON)")
    cal.add_argument("--right", type=float, required=True,
                     help="crosshair centre to right card edge (in)")
    cal.add_argument("--top", type=float, required=True,
                     help="crosshair centre to top card edge (in)")
    cal.add_argument("--crosshair", type=float, required=True,
                     help="printed length of one crosshair arm (in)")
    cal.add_argument("--save", action="store_true", help="write the corrected settings back")

    return p


# --- Commands --------------------------------------------------------------

def _load(args):
    rasterizer = ImageFileRasterizer(args.images)
    loaded = load_settings(args.settings)
    alternate = isinstance(loaded.processing_mode, Duplex)
    current = replace(WorkflowSettings(), pages=rasterizer.descriptors(alternate))
    result = apply_loaded_settings(current, loaded, len(rasterizer))
    for name in result.skipped:
        log.warning("not applied (page count mismatch): %s", name)
    return result.settings, rasterizer


def cmd_ids(args) -> int:
    settings, _ = _load(args)
    pages = active_pages(settings.pages)
    table = identity_table(pages, settings.extraction, settings.processing_mode)
    for card_index, identity in enumerate(table.value):
        print(f"{card_index:4d}  {identity}")
    for card_type in CardType:
        ids = available_ids(card_type, pages, settings.extraction, settings.processing_mode)
        total = count_by_type(card_type, pages, settings.extraction, settings.processing_mode)
        print(f"{card_type.label}: {len(ids.value)} available of {total}")
    for warning in table.warnings:
        log.warning("%s", warning)
    return 0


def cmd_export(args) -> int:
    output = _ensure_pdf_path(args.output)
    settings, rasterizer = _load(args)
    manager = ExportManager(CardPipeline(settings, rasterizer))
    batch = manager.export_pdf(output, CardType(args.side))
    print(f"Exported {len(batch.cards)} {args.side} cards to {output}")
    return 1 if batch.failures else 0


def cmd_images(args) -> int:
    settings, rasterizer = _load(args)
    manager = ExportManager(CardPipeline(settings, rasterizer))
    batch = manager.export_images(Path(args.output_dir).expanduser(), CardType(args.side))
    print(f"Saved {len(batch.cards)} {args.side} card images to {args.output_dir}")
    return 1 if batch.failures else 0


def cmd_calibration_sheet(args) -> int:
    output = _ensure_pdf_path(args.output)
    settings = load_settings(args.settings)
    write_calibration_pdf(output, settings.output)
    print(f"Wrote calibration sheet to {output}")
    return 0


def cmd_calibrate(args) -> int:
    settings = load_settings(args.settings)
    measured = CalibrationMeasurement(args.right, args.top, args.crosshair)
    for line in calibration_diagnostics(settings.output, measured):
        print(line)
    output = calibration_settings(settings.output, measured)
    print(f"Offset: {output.offset[0]:+.3f}, {output.offset[1]:+.3f} in")
    print(f"Scale: {output.card_scale_percent:g}%")
    if args.save:
        save_settings(replace(settings, output=output), args.settings)
    return 0


COMMANDS = {
    "ids": cmd_ids,
    "export": cmd_export,
    "images": cmd_images,
    "calibration-sheet": cmd_calibration_sheet,
    "calibrate": cmd_calibrate,
}


# --- Main ------------------------------------------------------------------

def main(argv=None) -> int:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    args = build_parser().parse_args(argv)
    setup_logger("cardsplitter", args.log_file,
                 logging.DEBUG if args.verbose else logging.INFO)

    app = QGuiApplication.instance() or QGuiApplication([sys.argv[0]])  # noqa: F841

    try:
        return COMMANDS[args.command](args)
    except ConfigurationError as e:
        _die(f"bad setting {e.setting}: {e.message}")
    except ExportAborted as e:
        _die(str(e), code=3)
    except CardSplitterError as e:
        _die(str(e), code=1)


if __name__ == "__main__":
    sys.exit(main())
