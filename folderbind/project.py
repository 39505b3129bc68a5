"""Project records and layout instructions read from YAML, and folder scanning."""

import re
from pathlib import Path
from typing import Dict, List, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from folderbind.classify import guess_mime_type, natural_key
from folderbind.errors import HierarchyError
from folderbind.model import (
    ROOT,
    Hierarchy,
    SourceFile,
    reorder_siblings,
    set_container_visibility,
)
from folderbind.render import RenderOptions


class ProjectRecord(BaseModel):
    """
    A building project as stored by the host application, plus optional
    layout instructions for the uploaded folder.

    ``hidden`` lists title paths (e.g. "Inspections/Unit1") whose TOC entry is
    shown without a page number. ``order`` maps a parent title path ("" for
    the top level) to child titles in the wanted order.

    Without a ``pdf_name`` the output is named after the project, e.g.
    "HVAC Plant 7" of type HVAC becomes "Plant 7 HVAC SQP".
    """

    name: str = ""
    pdf_name: str = ""
    document_number_left: str = ""
    document_number_center: str = ""
    project_type: Literal["HVAC", "BU"] = "HVAC"
    smart_placement: bool = False
    hidden: List[str] = Field(default_factory=list)
    order: Dict[str, List[str]] = Field(default_factory=dict)

    def output_name(self) -> str:
        if self.pdf_name:
            return self.pdf_name
        if self.name:
            # The project name may already carry its type as a prefix
            base = re.sub(r"^(HVAC|BU) ", "", self.name)
            return f"{base} {self.project_type} SQP"
        return "document"

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            output_name=self.output_name(),
            document_number_left=self.document_number_left,
            document_number_center=self.document_number_center,
            smart_placement=self.smart_placement,
        )


def load_project(path: Path) -> ProjectRecord:
    """Read and validate a project YAML file."""
    try:
        with open(str(path), "r", encoding="utf-8") as file:
            raw_data = yaml.safe_load(file)
    except yaml.YAMLError as e:
        # Add file path and line information to YAML parsing errors
        error_msg = f"YAML parsing error in {path}"
        problem_mark = getattr(e, "problem_mark", None)
        if problem_mark is not None:
            error_msg += f" at line {problem_mark.line + 1}, column {problem_mark.column + 1}"
        error_msg += f": {e}"
        raise ValueError(error_msg) from e

    try:
        return ProjectRecord.model_validate(raw_data or {})
    except ValidationError as e:
        raise ValueError(f"Validation error in {path}:\n{e}") from e


def scan_directory(root: Path) -> list[SourceFile]:
    """
    Read every file below ``root`` as an upload, tagged with its path relative
    to ``root``. Folders are visited in natural order so uploads arrive the way
    a file browser lists them.
    """
    files: list[SourceFile] = []
    for path in sorted(
        (p for p in root.rglob("*") if p.is_file()),
        key=lambda p: [natural_key(part) for part in p.relative_to(root).parts],
    ):
        relative = path.relative_to(root).as_posix()
        files.append(SourceFile(relative, guess_mime_type(path.name), path.read_bytes()))
    return files


def _resolve(hierarchy: Hierarchy, title_path: str) -> str:
    container = hierarchy.find_by_path(title_path)
    if container is None:
        raise HierarchyError(f"no section {title_path!r} in the uploaded folders")
    return container.id


def apply_layout(hierarchy: Hierarchy, project: ProjectRecord) -> Hierarchy:
    """
    Apply the project's visibility and ordering instructions.

    Titles not named in an ``order`` list keep their relative order after
    the named ones.
    """
    for title_path in project.hidden:
        set_container_visibility(hierarchy, _resolve(hierarchy, title_path), False)

    for parent_path, titles in project.order.items():
        if parent_path.strip("/"):
            parent = hierarchy.find_by_path(parent_path)
            if parent is None:
                raise HierarchyError(f"no section {parent_path!r} in the uploaded folders")
            parent_id, siblings = parent.id, parent.children
        else:
            parent_id, siblings = ROOT, hierarchy.containers

        by_title = {c.title: c.id for c in siblings}
        unknown = [title for title in titles if title not in by_title]
        if unknown:
            raise HierarchyError(f"unknown section(s) {unknown} under {parent_path!r}")
        named = [by_title[title] for title in dict.fromkeys(titles)]
        rest = [c.id for c in siblings if c.id not in named]
        reorder_siblings(hierarchy, parent_id, named + rest)

    return hierarchy
