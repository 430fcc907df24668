from pathlib import Path

import pytest

from aci_compose.libs.errors import ProjectLoadError
from aci_compose.libs.functions.load_project import load_project

COMPOSE = """\
services:
  web:
    image: "nginx:{{ tag }}"
    ports:
      - "80:80"
  db:
    image: postgres
"""


@pytest.fixture
def compose_file(tmp_path: Path) -> Path:
    project_dir = tmp_path / "MyProject"
    project_dir.mkdir()
    path = project_dir / "compose.yaml"
    path.write_text(COMPOSE, encoding="utf-8")
    return path


def test_load_renders_templates(compose_file: Path):
    project = load_project([compose_file], data={"tag": "1.25"})

    assert project.service_names() == ["web", "db"]
    assert project.services[0].image == "nginx:1.25"
    assert project.services[0].ports[0].target == 80


def test_name_defaults_to_directory(compose_file: Path):
    project = load_project([compose_file], data={"tag": "1"})

    assert project.name == "MyProject"


def test_name_from_compose_file(compose_file: Path):
    compose_file.write_text("name: fromfile\n" + COMPOSE, encoding="utf-8")

    assert load_project([compose_file], data={"tag": "1"}).name == "fromfile"


def test_explicit_name_wins(compose_file: Path):
    compose_file.write_text("name: fromfile\n" + COMPOSE, encoding="utf-8")

    project = load_project([compose_file], name="explicit", data={"tag": "1"})

    assert project.name == "explicit"


def test_files_are_merged_in_order(compose_file: Path):
    override = compose_file.with_name("compose.override.yaml")
    override.write_text(
        "services:\n  web:\n    command: nginx -g 'daemon off;'\n  cache:\n    image: redis\n",
        encoding="utf-8",
    )

    project = load_project([compose_file, override], data={"tag": "1"})

    assert project.service_names() == ["web", "db", "cache"]
    assert project.services[0].image == "nginx:1"
    assert project.services[0].command == "nginx -g 'daemon off;'"


def test_missing_files_are_skipped(compose_file: Path):
    project = load_project(
        [compose_file.with_name("missing.yaml"), compose_file], data={"tag": "1"}
    )

    assert project.service_names() == ["web", "db"]


def test_no_file_found(tmp_path: Path):
    with pytest.raises(ProjectLoadError, match="No compose file found"):
        load_project([tmp_path / "compose.yaml"])


def test_undefined_template_variable(compose_file: Path):
    with pytest.raises(ProjectLoadError):
        load_project([compose_file])


def test_no_services(tmp_path: Path):
    path = tmp_path / "compose.yaml"
    path.write_text("name: empty\n", encoding="utf-8")

    with pytest.raises(ProjectLoadError, match="no services"):
        load_project([path])


def test_invalid_service(tmp_path: Path):
    path = tmp_path / "compose.yaml"
    path.write_text("services:\n  web:\n    ports: ['80']\n", encoding="utf-8")

    with pytest.raises(ProjectLoadError, match="Invalid compose project"):
        load_project([path])


def test_compose_variables_are_kept(tmp_path: Path):
    path = tmp_path / "compose.yaml"
    path.write_text(
        "services:\n"
        "  web:\n"
        "    image: 'nginx:${TAG:-latest}'\n"
        "    environment:\n"
        "      HOST: '${HOST}'\n",
        encoding="utf-8",
    )

    project = load_project([path])

    assert project.services[0].image == "nginx:${TAG:-latest}"
    assert project.services[0].environment == {"HOST": "${HOST}"}
