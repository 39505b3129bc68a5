"""Turn a flat list of uploaded files into a hierarchy of sections."""

import logging
import mimetypes
import re
import unicodedata
from typing import Iterable

from folderbind.model import JPEG_MIME, PDF_MIME, Container, Hierarchy, SourceFile

logger = logging.getLogger(__name__)

DEFAULT_SECTION_TITLE = "Uploadede filer"

# Browsers report JPEGs under a few historic names
MIME_ALIASES = {
    "application/pdf": PDF_MIME,
    "image/jpeg": JPEG_MIME,
    "image/jpg": JPEG_MIME,
    "image/pjpeg": JPEG_MIME,
}


def accepted_mime_type(mime_type: str) -> str | None:
    """Return the canonical MIME type for an accepted upload, or None if it is rejected."""
    return MIME_ALIASES.get(mime_type.split(";", 1)[0].strip().lower())


def guess_mime_type(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(path)
    return mime_type or "application/octet-stream"


def split_path(path: str) -> list[str]:
    return [part for part in re.split(r"[\\/]", path) if part and part != "."]


def natural_key(title: str) -> tuple:
    """
    Sort key comparing digit runs numerically and text case- and accent-insensitively,
    so "Unit 2" sorts before "Unit 10" and "b" next to "B".
    """
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()
    parts = re.split(r"(\d+)", base)
    # Alternating (text, number) pairs keep the tuples comparable element-wise
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in parts
        if part
    )


def sort_containers(containers: list[Container]) -> None:
    containers.sort(key=lambda c: natural_key(c.title))
    for container in containers:
        sort_containers(container.children)


def _child(siblings: list[Container], title: str) -> Container:
    found = next((c for c in siblings if c.title == title), None)
    if found is None:
        found = Container(title=title)
        siblings.append(found)
    return found


def classify(
    files: Iterable[SourceFile],
    hierarchy: Hierarchy | None = None,
    default_title: str = DEFAULT_SECTION_TITLE,
) -> Hierarchy:
    """
    Build (or extend) a hierarchy from uploaded files.

    Every folder component of a file's path names a container nested under the
    previous one; the file is attached to the deepest of them. Files without a
    folder go into a shared top-level container called ``default_title``.
    Passing an existing ``hierarchy`` merges a repeated upload into it: folders
    with the same title path reuse the existing container.

    Files that are neither PDF nor JPEG are dropped.
    """
    if hierarchy is None:
        hierarchy = Hierarchy()

    # Containers of this pass keyed by their joined path components
    by_path: dict[tuple[str, ...], Container] = {}
    accepted = 0
    rejected = 0

    for upload in files:
        mime_type = accepted_mime_type(upload.mime_type)
        if mime_type is None:
            logger.warning("File ignored (not PDF/JPEG): %s (%s)", upload.path, upload.mime_type)
            rejected += 1
            continue
        if mime_type != upload.mime_type:
            upload = SourceFile(path=upload.path, mime_type=mime_type, data=upload.data)

        parts = split_path(upload.path)
        folders = tuple(parts[:-1]) or (default_title,)

        container = by_path.get(folders)
        if container is None:
            siblings = hierarchy.containers
            for depth in range(len(folders)):
                prefix = folders[: depth + 1]
                if prefix not in by_path:
                    by_path[prefix] = _child(siblings, folders[depth])
                siblings = by_path[prefix].children
            container = by_path[folders]

        container.files.append(upload)
        accepted += 1

    sort_containers(hierarchy.containers)
    logger.info(
        "Classified %d file(s) into %d section(s), %d ignored",
        accepted,
        hierarchy.container_count(),
        rejected,
    )
    return hierarchy
