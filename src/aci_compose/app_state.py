from dataclasses import dataclass

from aci_compose.app_config import AppConfig


@dataclass
class AppState:
    app_config: AppConfig
