from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

from jinja2 import Environment, StrictUndefined, TemplateError
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException
from pydantic import ValidationError

from aci_compose.libs.errors import ProjectLoadError
from aci_compose.libs.models.docker_compose import ComposeProject


def _render(path: Path, env: Environment, data: dict[str, Any]) -> DictConfig:
    content = env.from_string(path.read_text(encoding="utf-8")).render(**data)
    conf = OmegaConf.create(content)
    if not isinstance(conf, DictConfig):
        raise ProjectLoadError(f"Compose file {path} is not a mapping")
    return conf


def load_project(
    files: Sequence[Path],
    *,
    name: str | None = None,
    data: dict[str, Any] = {},
) -> ComposeProject:
    existing = [file for file in files if file.is_file()]
    if not existing:
        raise ProjectLoadError(
            f"No compose file found, tried: {', '.join(str(f) for f in files)}"
        )

    env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)
    conf = OmegaConf.create()

    for file in existing:
        try:
            conf = OmegaConf.merge(conf, _render(file, env, data))
        except (TemplateError, OmegaConfBaseException) as e:
            raise ProjectLoadError(f"Cannot load compose file {file}: {e}") from e

    # Compose ${VAR} references are left for the container runtime.
    try:
        content = cast(dict[str, Any], OmegaConf.to_container(conf, resolve=False))
    except OmegaConfBaseException as e:
        raise ProjectLoadError(f"Cannot load compose project: {e}") from e

    if name:
        content["name"] = name
    elif not content.get("name"):
        content["name"] = existing[0].absolute().parent.name

    try:
        project = ComposeProject.model_validate(content)
    except ValidationError as e:
        raise ProjectLoadError(f"Invalid compose project: {e}") from e

    if not project.services:
        raise ProjectLoadError("Compose project has no services")

    return project
