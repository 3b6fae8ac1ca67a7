"""Command line entry point: build booklets and manage baseline snapshots."""
import argparse
import logging
import os
import sys
import time
from dataclasses import replace

from .assembler import APPENDIX, ORIGINAL, assemble
from .baseline import (
    baseline_path,
    load_baseline,
    relative_identifiers,
    reset_baselines,
    resolve_baseline,
    save_baseline,
)
from .catalog import build_catalog, find_images, load_links
from .config import load_config
from .errors import ConfigurationError, TunebookError
from .render import register_fonts, reportlab_measure, write_booklet


def format_duration(seconds):
    """Format duration in a human-readable format"""
    if seconds < 1:
        return f"{seconds*1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds // 60)
        remaining_seconds = seconds % 60
        return f"{minutes}m {remaining_seconds:.1f}s"


def format_file_size(bytes_size):
    """Format file size in human-readable format"""
    if bytes_size < 1024:
        return f"{bytes_size}B"
    elif bytes_size < 1024 * 1024:
        return f"{bytes_size/1024:.1f}KB"
    else:
        return f"{bytes_size/(1024*1024):.1f}MB"


def build_instrument(instrument, settings, images_dir, baseline_dir, output_dir, links=None, fonts=None):
    """Scan, lay out and render one instrument's booklet. Returns (booklet, output_path)."""
    fonts = fonts or register_fonts()
    paths = find_images(images_dir, instrument.pattern)
    catalog = build_catalog(paths, instrument.title_suffix, links=links)
    baseline = resolve_baseline(load_baseline(baseline_path(baseline_dir, instrument.key)), images_dir)

    booklet = assemble(catalog, baseline, instrument, settings, measure=reportlab_measure(fonts[1]))
    output_path = write_booklet(booklet, os.path.join(output_dir, instrument.output_filename), settings, fonts)
    return booklet, output_path


def command_build(args, config):
    instruments = config.select(args.instrument)
    settings = config.layout
    if args.no_upscale:
        settings = replace(settings, allow_upscale=False)
    links = load_links(args.links)
    fonts = register_fonts()

    print("=== Booklet Generation ===")
    failures = []
    for instrument in instruments:
        mode = "appendix" if load_baseline(baseline_path(args.baseline_dir, instrument.key)) else "full"
        print(f"\n🎼 {instrument.name} ({mode} generation mode)")
        start = time.time()
        try:
            booklet, output_path = build_instrument(
                instrument, settings, args.images_dir, args.baseline_dir, args.output_dir, links, fonts,
            )
        except TunebookError as e:
            failures.append((instrument, e))
            print(f"   ❌ {instrument.name} booklet failed: {e}")
            continue

        original = booklet.section_pages(ORIGINAL)
        appendix = booklet.section_pages(APPENDIX)
        print(f"   📄 {len(booklet.entries)} tunes on {len(original)} pages"
              + (f" + {len(appendix)} appendix pages" if appendix else ""))
        print(f"   📑 {len(booklet.index_pages)} index page(s), {booklet.page_count} pages in total")
        print(f"   ✓ {output_path} ({format_file_size(os.path.getsize(output_path))}, "
              f"{format_duration(time.time() - start)})")

    print()
    if failures:
        print(f"⚠️  {len(failures)} booklet(s) failed:")
        for instrument, error in failures:
            print(f"   ❌ {instrument.name}: {error}")
        return 1
    print("🎉 All booklets created successfully!")
    return 0


def command_baseline(args, config):
    instruments = config.select(args.instrument)
    if args.reset:
        removed = reset_baselines(args.baseline_dir, [inst.key for inst in instruments])
        for path in removed:
            print(f"✓ Deleted {path}")
        print("Switched to full generation mode." if removed else "No baseline files to delete.")
        return 0

    print("Creating baseline files from current images...")
    for instrument in instruments:
        paths = find_images(args.images_dir, instrument.pattern)
        path = baseline_path(args.baseline_dir, instrument.key)
        count = save_baseline(path, relative_identifiers(paths, args.images_dir))
        print(f"   {path}: {count} {instrument.name} files")
    print("✓ Baseline files created. New tunes will now be added as an appendix.")
    return 0


def build_arg_parser():
    parser = argparse.ArgumentParser(
        description="Pack sheet-music images into indexed PDF booklets, one per instrument.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", help="JSON file overriding layout settings and instruments.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Generate booklets.",
                                         formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    build_parser.add_argument("--images-dir", default="trimmed", help="Folder of trimmed score images.")
    build_parser.add_argument("--output-dir", default="booklets", help="Folder to write booklet PDFs to.")
    build_parser.add_argument("--baseline-dir", default=".", help="Folder holding baseline_<instrument>.txt files.")
    build_parser.add_argument("--links", help="JSON object mapping image path, file name or title to a URL.")
    build_parser.add_argument("--instrument", action="append", default=[],
                              help="Only build this instrument key (repeatable).")
    build_parser.add_argument("--no-upscale", action="store_true",
                              help="Never draw images larger than their pixel size.")
    build_parser.set_defaults(func=command_build)

    baseline_parser = subparsers.add_parser("baseline", help="Record or reset baseline snapshots.",
                                            formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    baseline_parser.add_argument("--images-dir", default="trimmed", help="Folder of trimmed score images.")
    baseline_parser.add_argument("--baseline-dir", default=".", help="Folder to write baseline files to.")
    baseline_parser.add_argument("--instrument", action="append", default=[],
                                 help="Only this instrument key (repeatable).")
    baseline_parser.add_argument("--reset", action="store_true",
                                 help="Delete baseline files and return to full generation mode.")
    baseline_parser.set_defaults(func=command_baseline)
    return parser


def main(argv=None):
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        return args.func(args, config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
