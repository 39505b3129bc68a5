"""In-memory hierarchy of sections built from uploaded folders."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from folderbind.errors import HierarchyError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
JPEG_MIME = "image/jpeg"

# Parent id used to address the top-level list in reorder_siblings
ROOT = "root"


def new_id() -> str:
    return "_" + uuid.uuid4().hex[:9]


@dataclass
class SourceFile:
    path: str
    mime_type: str
    data: bytes = field(repr=False)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass
class Container:
    title: str
    files: list[SourceFile] = field(default_factory=list)
    children: list["Container"] = field(default_factory=list)
    show_in_toc: bool = True
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class TocEntry:
    title: str
    level: int
    start_page: int  # 0-based index in the final document
    show_page: bool


@dataclass
class Hierarchy:
    containers: list[Container] = field(default_factory=list)

    def walk(self) -> Iterator[tuple[Container, int]]:
        """Yield (container, level) pairs in depth-first pre-order."""

        def visit(container: Container, level: int) -> Iterator[tuple[Container, int]]:
            yield container, level
            for child in container.children:
                yield from visit(child, level + 1)

        for container in self.containers:
            yield from visit(container, 0)

    def find(self, container_id: str) -> Container | None:
        return next((c for c, _ in self.walk() if c.id == container_id), None)

    def find_parent(self, container_id: str) -> Container | None:
        """Return the parent of a container, or None for top-level (and unknown) ids."""
        for container, _ in self.walk():
            if any(child.id == container_id for child in container.children):
                return container
        return None

    def find_by_path(self, title_path: str) -> Container | None:
        """Find a container by its slash-separated title path, e.g. "Inspections/Unit1"."""
        siblings = self.containers
        found: Container | None = None
        for title in (part for part in title_path.split("/") if part):
            found = next((c for c in siblings if c.title == title), None)
            if found is None:
                return None
            siblings = found.children
        return found

    def container_count(self) -> int:
        return sum(1 for _ in self.walk())

    def file_count(self) -> int:
        return sum(len(container.files) for container, _ in self.walk())


def _verify_permutation(current: Sequence, proposed: Sequence, what: str) -> None:
    if len(proposed) != len(current) or sorted(proposed) != sorted(current):
        raise HierarchyError(
            f"new {what} order {list(proposed)} is not a permutation of {list(current)}"
        )


def set_container_visibility(
    hierarchy: Hierarchy, container_id: str, visible: bool
) -> Hierarchy:
    """Show or hide the page number of a container's TOC entry. Unknown ids are ignored."""
    container = hierarchy.find(container_id)
    if container is None:
        logger.debug("visibility change ignored, no container %s", container_id)
    else:
        container.show_in_toc = visible
    return hierarchy


def reorder_siblings(
    hierarchy: Hierarchy, parent_id: str, new_order: Sequence[str]
) -> Hierarchy:
    """
    Replace the children of ``parent_id`` (or the top-level list for ``ROOT``)
    with the permutation of their ids given in ``new_order``.

    Only the top level and the direct children of top-level containers can be
    reordered; deeper levels keep the order assigned by the classifier.
    """
    if parent_id == ROOT:
        siblings = hierarchy.containers
    else:
        parent = next((c for c in hierarchy.containers if c.id == parent_id), None)
        if parent is None:
            if hierarchy.find(parent_id) is not None:
                raise HierarchyError(
                    f"container {parent_id} is nested too deeply to reorder its children"
                )
            raise HierarchyError(f"no container with id {parent_id}")
        siblings = parent.children

    by_id = {c.id: c for c in siblings}
    _verify_permutation(list(by_id), list(new_order), "sibling")
    siblings[:] = [by_id[container_id] for container_id in new_order]
    return hierarchy


def reorder_files(
    hierarchy: Hierarchy, container_id: str, new_order: Sequence[int]
) -> Hierarchy:
    """Permute the files of a container; ``new_order`` lists the current indices in their new order."""
    container = hierarchy.find(container_id)
    if container is None:
        raise HierarchyError(f"no container with id {container_id}")
    _verify_permutation(range(len(container.files)), list(new_order), "file")
    container.files[:] = [container.files[i] for i in new_order]
    return hierarchy
