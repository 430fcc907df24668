from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from aci_compose.libs.models.container_group import AciContext


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ACI_COMPOSE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        nested_model_default_partial_update=True,
        extra="ignore",
    )

    compose_files: list[Path] = Field(
        default=[
            Path("compose.yaml"),
            Path("compose.yml"),
            Path("docker-compose.yaml"),
            Path("docker-compose.yml"),
        ],
        validation_alias=AliasChoices(
            "compose_files", "compose-files", "ACI_COMPOSE_COMPOSE_FILES"
        ),
    )
    project_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "project_name", "project-name", "ACI_COMPOSE_PROJECT_NAME"
        ),
    )
    context: AciContext = Field(default_factory=AciContext)
    data: dict[str, Any] = Field(default={})

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
            YamlConfigSettingsSource(settings_cls),
        )


@lru_cache(maxsize=1)
def load_app_config(paths: Sequence[Path]) -> AppConfig:
    """Load settings from ``paths``, earlier files overriding later ones."""
    yaml_files = [path for path in reversed(paths) if path.is_file()]

    class FileAppConfig(AppConfig):
        model_config = SettingsConfigDict(
            yaml_file=yaml_files,
            yaml_file_encoding="utf-8",
        )

    return FileAppConfig()
