from __future__ import annotations

import tomllib
from copy import deepcopy
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping

from .contracts import ContractDefaults
from .errors import ValidationError
from .localization import MESSAGES

CONFIG_ENV_PREFIX = "ARPOLAR_"
DEFAULT_CONFIG_PATH = Path("config.toml")

SECTIONS: tuple[str, ...] = ("general", "storage", "contracts")


@dataclass(slots=True)
class GeneralConfig:
    default_locale: str = "pt-BR"
    name_width: int = 24


@dataclass(slots=True)
class StorageConfig:
    state_path: str = "state.json"
    # 0 desativa o limite
    quota_bytes: int = 5_000_000
    avatar_max_bytes: int = 1_500_000


@dataclass(slots=True)
class ContractsConfig:
    placeholder_address: str = "A definir"
    placeholder_region: str = "A definir"
    placeholder_background: str = "https://placehold.co/600x400"


@dataclass(slots=True)
class Config:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> "Config":
        cfg = cls()
        cfg_path = path or DEFAULT_CONFIG_PATH
        if cfg_path.exists():
            try:
                data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as exc:
                raise ValidationError(f"TOML invalido em {cfg_path}: {exc}") from exc
            cfg = cfg.merge_dict(data)
        if env:
            cfg = cfg.apply_env(env)
        if overrides:
            cfg = cfg.apply_overrides(overrides)
        cfg.validate()
        return cfg

    def merge_dict(self, data: Mapping[str, Any]) -> "Config":
        cfg = deepcopy(self)
        for section in SECTIONS:
            if section in data:
                cfg._assign_dataclass(getattr(cfg, section), data[section])
        return cfg

    def apply_env(self, env: Mapping[str, str]) -> "Config":
        payload: Dict[str, Dict[str, str]] = {}
        for key, value in env.items():
            if not key.startswith(CONFIG_ENV_PREFIX):
                continue
            remainder = key[len(CONFIG_ENV_PREFIX) :]
            pieces = [part for part in remainder.split("__") if part]
            if len(pieces) != 2:
                continue
            section, field_name = pieces
            payload.setdefault(section.lower(), {})[field_name.lower()] = value
        return self.merge_dict(payload)

    def apply_overrides(self, overrides: Mapping[str, Any]) -> "Config":
        cfg = deepcopy(self)
        for key, value in overrides.items():
            section, _, _ = key.partition(".")
            if section not in SECTIONS:
                raise ValidationError(f"Override desconhecido: {key}")
            cfg._set_with_prefix(getattr(cfg, section), key, value)
        return cfg

    def _assign_dataclass(self, instance: Any, data: Mapping[str, Any]) -> None:
        for field_obj in fields(instance):
            name = field_obj.name
            if name not in data:
                continue
            value = self._convert_value(field_obj.type, data[name])
            setattr(instance, name, value)

    def _set_with_prefix(self, instance: Any, dotted_key: str, value: Any) -> None:
        _, field_name = dotted_key.split(".", 1)
        if not hasattr(instance, field_name):
            raise ValidationError(f"Campo desconhecido: {dotted_key}")
        field_obj = next(f for f in fields(instance) if f.name == field_name)
        setattr(instance, field_name, self._convert_value(field_obj.type, value))

    @staticmethod
    def _convert_value(expected_type: Any, value: Any) -> Any:
        # Annotations are strings under "from __future__ import annotations".
        if expected_type in (bool, "bool"):
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "sim"}
            return bool(value)
        if expected_type in (int, "int"):
            return int(value)
        if expected_type in (float, "float"):
            return float(value)
        if expected_type in (str, "str"):
            return str(value)
        return value

    def validate(self) -> None:
        if self.general.default_locale not in MESSAGES:
            raise ValidationError(f"Locale nao suportado: {self.general.default_locale}")
        if self.general.name_width < 8:
            raise ValidationError("name_width minimo e 8")
        if not self.storage.state_path.strip():
            raise ValidationError("state_path nao pode ser vazio")
        if self.storage.quota_bytes < 0:
            raise ValidationError("quota_bytes nao pode ser negativo")
        if self.storage.avatar_max_bytes < 0:
            raise ValidationError("avatar_max_bytes nao pode ser negativo")

    @property
    def quota(self) -> int | None:
        return self.storage.quota_bytes or None

    @property
    def avatar_limit(self) -> int | None:
        return self.storage.avatar_max_bytes or None

    def contract_defaults(self) -> ContractDefaults:
        return ContractDefaults(
            address=self.contracts.placeholder_address,
            region=self.contracts.placeholder_region,
            background_image=self.contracts.placeholder_background,
        )

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {
            section: {f.name: getattr(getattr(self, section), f.name) for f in fields(getattr(self, section))}
            for section in SECTIONS
        }

    def to_toml(self) -> str:
        lines: list[str] = []
        for section, values in self.to_dict().items():
            lines.append(f"[{section}]")
            for name, value in values.items():
                if isinstance(value, str):
                    lines.append(f"{name} = \"{value}\"")
                else:
                    lines.append(f"{name} = {value}")
            lines.append("")
        return "\n".join(lines)
