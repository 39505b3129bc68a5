"""Tests for the project file handling and the folderbind CLI."""

from pathlib import Path

import pikepdf
import pytest
import yaml

from folderbind.classify import classify
from folderbind.errors import HierarchyError
from folderbind.main import main
from folderbind.project import ProjectRecord, apply_layout, load_project, scan_directory


def create_pdf(path: Path, page_count: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    pdf = pikepdf.Pdf.new()
    for _ in range(page_count):
        pdf.add_blank_page(page_size=(595.28, 841.89))
    pdf.save(path)
    pdf.close()
    return path


def write_project(path: Path, record: dict) -> Path:
    path.write_text(yaml.safe_dump(record, sort_keys=False))
    return path


def create_source_tree(root: Path) -> Path:
    create_pdf(root / "2 Drift" / "manual.pdf", 2)
    create_pdf(root / "10 Service" / "log.pdf", 1)
    create_pdf(root / "1 Tegninger" / "Plan A" / "plan.pdf", 1)
    create_pdf(root / "1 Tegninger" / "Plan B" / "plan.pdf", 1)
    (root / "2 Drift" / "notes.txt").write_text("ignored")
    return root


def test_scan_directory_tags_relative_paths_and_types(tmp_path: Path) -> None:
    root = create_source_tree(tmp_path / "src")

    files = scan_directory(root)

    assert [f.path for f in files] == [
        "1 Tegninger/Plan A/plan.pdf",
        "1 Tegninger/Plan B/plan.pdf",
        "2 Drift/manual.pdf",
        "2 Drift/notes.txt",
        "10 Service/log.pdf",
    ]
    assert files[0].mime_type == "application/pdf"
    assert files[3].mime_type == "text/plain"


def test_load_project_reads_record(tmp_path: Path) -> None:
    path = write_project(
        tmp_path / "project.yaml",
        {
            "name": "Plant 7",
            "pdf_name": "Plant 7 SQP",
            "document_number_left": "DOC-1",
            "document_number_center": "DOC-2",
            "project_type": "BU",
            "hidden": ["2 Drift"],
            "order": {"": ["10 Service"]},
        },
    )

    project = load_project(path)

    assert project.pdf_name == "Plant 7 SQP"
    assert project.project_type == "BU"
    options = project.render_options()
    assert options.output_name == "Plant 7 SQP"
    assert options.document_number_center == "DOC-2"


def test_load_project_reports_yaml_errors(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("name: [unclosed\n")

    with pytest.raises(ValueError, match="YAML parsing error"):
        load_project(path)


def test_load_project_reports_validation_errors(tmp_path: Path) -> None:
    path = write_project(tmp_path / "bad.yaml", {"project_type": "Plumbing"})

    with pytest.raises(ValueError, match="Validation error"):
        load_project(path)


def test_apply_layout_hides_and_reorders(tmp_path: Path) -> None:
    hierarchy = classify(scan_directory(create_source_tree(tmp_path / "src")))
    project = ProjectRecord(
        hidden=["1 Tegninger/Plan B"],
        order={"": ["10 Service"], "1 Tegninger": ["Plan B", "Plan A"]},
    )

    apply_layout(hierarchy, project)

    assert [c.title for c in hierarchy.containers] == ["10 Service", "1 Tegninger", "2 Drift"]
    assert [c.title for c in hierarchy.containers[1].children] == ["Plan B", "Plan A"]
    assert hierarchy.find_by_path("1 Tegninger/Plan B").show_in_toc is False


def test_apply_layout_rejects_unknown_titles(tmp_path: Path) -> None:
    hierarchy = classify(scan_directory(create_source_tree(tmp_path / "src")))

    with pytest.raises(HierarchyError):
        apply_layout(hierarchy, ProjectRecord(hidden=["Nope"]))
    with pytest.raises(HierarchyError):
        apply_layout(hierarchy, ProjectRecord(order={"": ["Nope"]}))


def test_build_writes_combined_pdf(tmp_path: Path) -> None:
    root = create_source_tree(tmp_path / "src")
    front = create_pdf(tmp_path / "front.pdf", 1)
    project = write_project(
        tmp_path / "project.yaml",
        {"pdf_name": "Plant 7 SQP", "document_number_left": "DOC-1"},
    )
    out_dir = tmp_path / "out"

    status = main(
        [
            "build",
            str(root),
            "-o",
            str(out_dir),
            "--project",
            str(project),
            "--front-page",
            str(front),
            "--cover",
            str(tmp_path / "missing-cover.pdf"),
        ]
    )

    assert status == 0
    output = out_dir / "Plant 7 SQP.pdf"
    with pikepdf.Pdf.open(output) as merged:
        # front page + TOC + 5 body pages
        assert len(merged.pages) == 7


def test_build_name_overrides_project(tmp_path: Path) -> None:
    root = create_source_tree(tmp_path / "src")

    status = main(["build", str(root), "-o", str(tmp_path), "--name", "Custom"])

    assert status == 0
    assert (tmp_path / "Custom.pdf").exists()


def test_build_reports_failures(tmp_path: Path) -> None:
    root = tmp_path / "src"
    (root / "A").mkdir(parents=True)
    (root / "A" / "broken.pdf").write_bytes(b"not a pdf")

    assert main(["build", str(root), "-o", str(tmp_path)]) == 1
    assert not (tmp_path / "document.pdf").exists()


@pytest.mark.parametrize(
    "record, expected",
    [
        ({"name": "HVAC Plant 7", "project_type": "HVAC"}, "Plant 7 HVAC SQP"),
        ({"name": "Plant 7", "project_type": "BU"}, "Plant 7 BU SQP"),
        ({"name": "Plant 7", "pdf_name": "Custom"}, "Custom"),
        ({}, "document"),
    ],
)
def test_output_name_is_derived_from_the_project(record: dict, expected: str) -> None:
    assert ProjectRecord(**record).render_options().output_name == expected


def test_build_names_output_after_project(tmp_path: Path) -> None:
    root = create_source_tree(tmp_path / "src")
    project = write_project(
        tmp_path / "project.yaml", {"name": "BU Tower 3", "project_type": "BU"}
    )

    status = main(["build", str(root), "-o", str(tmp_path), "--project", str(project)])

    assert status == 0
    assert (tmp_path / "Tower 3 BU SQP.pdf").exists()


def test_build_reports_missing_front_page(tmp_path: Path) -> None:
    root = create_source_tree(tmp_path / "src")

    status = main(
        ["build", str(root), "-o", str(tmp_path), "--front-page", str(tmp_path / "nope.pdf")]
    )

    assert status == 1
    assert not (tmp_path / "document.pdf").exists()
