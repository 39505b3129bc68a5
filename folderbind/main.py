"""folderbind CLI - Combine a folder of PDFs and JPEGs into one paginated PDF."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from folderbind.classify import classify
from folderbind.errors import AssemblyError
from folderbind.project import ProjectRecord, apply_layout, load_project, scan_directory
from folderbind.render import render_document

logger = logging.getLogger("folderbind")


def parse_args(args: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="folderbind: Combine a folder of PDFs and JPEGs into one paginated PDF"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Build command: folderbind build <folder> [-o dir] [--project project.yaml]
    build_parser = subparsers.add_parser(
        "build", help="Build the combined PDF from a folder"
    )
    build_parser.add_argument(
        "source", type=Path, help="Folder whose subfolders become sections"
    )
    build_parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for <pdf_name>.pdf (default: current directory)",
    )
    build_parser.add_argument(
        "--project",
        type=Path,
        default=None,
        help="Project YAML with PDF name, document numbers and layout instructions",
    )
    build_parser.add_argument(
        "--name", default=None, help="PDF name without .pdf (overrides the project)"
    )
    build_parser.add_argument(
        "--front-page", type=Path, default=None, help="Extra PDF placed before the TOC"
    )
    build_parser.add_argument(
        "--cover",
        type=Path,
        default=None,
        help="Standard cover template with optional unitname/date fields",
    )
    build_parser.add_argument(
        "--smart-placement",
        action="store_true",
        help="Rotate header and footer text on landscape pages",
    )

    return parser.parse_args(args)


def read_optional(path: Path | None) -> bytes | None:
    if path is None:
        return None
    if not path.exists():
        logger.info("%s not found, skipping", path)
        return None
    return path.read_bytes()


def cmd_build(args: argparse.Namespace) -> Path:
    """Handle the 'build' subcommand."""
    project = load_project(args.project) if args.project else ProjectRecord()
    if args.name:
        project.pdf_name = args.name
    if args.smart_placement:
        project.smart_placement = True

    hierarchy = classify(scan_directory(args.source))
    apply_layout(hierarchy, project)

    front_page = args.front_page.read_bytes() if args.front_page else None
    document = render_document(
        hierarchy,
        project.render_options(),
        extra_front_page=front_page,
        cover_template=read_optional(args.cover),
    )

    args.output_dir.mkdir(parents=True, exist_ok=True)
    output_path = args.output_dir / document.filename
    output_path.write_bytes(document.data)
    logger.info("Wrote %s", output_path)
    return output_path


def main(args: Sequence[str] | None = None) -> int:
    parsed = parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if parsed.command == "build":
            cmd_build(parsed)
    except (AssemblyError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
