from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Callable, TypeVar

from ..config import Config, DEFAULT_CONFIG_PATH
from ..localization import Localizer
from ..service import OrgChartService

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ContainerSettings:
    config_path: Path = DEFAULT_CONFIG_PATH
    state_path: Path | None = None


class ServiceContainer:
    """Mantem instancias compartilhadas de configuracao e servico."""

    def __init__(
        self,
        config_path: Path | str | None = None,
        state_path: Path | str | None = None,
        *,
        service: OrgChartService | None = None,
    ) -> None:
        cfg_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        st_path = Path(state_path) if state_path else None
        self.settings = ContainerSettings(config_path=cfg_path, state_path=st_path)
        self._lock = RLock()
        self.config: Config
        self.service: OrgChartService
        self.localizer: Localizer
        self._initialise(service)

    def _initialise(self, service: OrgChartService | None) -> None:
        if service is not None:
            config = service.config
        else:
            config = Config.load(path=self.settings.config_path)
            service = OrgChartService.from_config(config, self.settings.state_path)
        self.config = config
        self.service = service
        self.localizer = Localizer(config.general.default_locale)
        self.service.storage.notifier.subscribe(self._log_change)

    @staticmethod
    def _log_change(key: str) -> None:
        logger.debug("[STORE] chave alterada: %s", key)

    def read(self, func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
        with self._lock:
            return func(*args, **kwargs)

    def mutate(self, func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
        with self._lock:
            return func(*args, **kwargs)

    def reload_state(self) -> None:
        with self._lock:
            self.service.reload()

    def reload_config(self) -> Config:
        with self._lock:
            cfg = Config.load(path=self.settings.config_path)
            self._initialise(OrgChartService.from_config(cfg, self.settings.state_path))
            return cfg


__all__ = ["ServiceContainer", "ContainerSettings"]
