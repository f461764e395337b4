from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Protocol

from .errors import IOErrorWithCode, PayloadTooLargeError
from .models import ChartSettings, Contract, OrgNode, Ticket

logger = logging.getLogger(__name__)

STATE_FILE_DEFAULT = Path("state.json")

TREE_KEY = "orgChartTree"
CONTRACTS_KEY = "arpolarContracts"
TICKETS_KEY = "dashboardMessages"
SETTINGS_KEY = "contractSettings"
AVATAR_PREFIX = "avatar_"

_MALFORMED = (ValueError, KeyError, TypeError, AttributeError)

Listener = Callable[[str], None]


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


def _usage(data: Mapping[str, str]) -> int:
    return sum(len(key) + len(value) for key, value in data.items())


class MemoryStore:
    """Armazenamento chave/valor em memoria com cota opcional (em caracteres)."""

    def __init__(self, data: Mapping[str, str] | None = None, *, quota_bytes: int | None = None) -> None:
        self._data: Dict[str, str] = dict(data or {})
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_quota(key, value)
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def _check_quota(self, key: str, value: str) -> None:
        if self.quota_bytes is None:
            return
        current = _usage(self._data)
        previous = self._data.get(key)
        if previous is not None:
            current -= len(key) + len(previous)
        needed = current + len(key) + len(value)
        if needed > self.quota_bytes:
            raise PayloadTooLargeError(
                f"Cota de armazenamento excedida ao gravar {key} ({needed} > {self.quota_bytes}).",
                size=needed,
                limit=self.quota_bytes,
            )


class JsonFileStore(MemoryStore):
    """Store persistido em um unico documento JSON, gravado a cada alteracao."""

    def __init__(self, path: Path | None = None, *, quota_bytes: int | None = None) -> None:
        super().__init__(quota_bytes=quota_bytes)
        self.path = path or STATE_FILE_DEFAULT
        if self.path.exists():
            self.load()

    @classmethod
    def open(cls, path: Path, *, quota_bytes: int | None = None) -> "JsonFileStore":
        """Abre o estado; um arquivo corrompido vira ``<nome>.bak`` e o store comeca vazio."""
        try:
            return cls(path, quota_bytes=quota_bytes)
        except IOErrorWithCode as exc:
            backup = path.with_name(f"{path.name}.bak")
            path.replace(backup)
            logger.warning("Estado invalido, usando arvore inicial (copia em %s): %s", backup, exc)
            return cls(path, quota_bytes=quota_bytes)

    def load(self) -> None:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise IOErrorWithCode(f"Arquivo nao encontrado: {self.path}") from exc
        except json.JSONDecodeError as exc:
            raise IOErrorWithCode(f"JSON invalido em {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise IOErrorWithCode(f"Formato inesperado em {self.path}")
        self._data = {str(key): str(value) for key, value in payload.items()}

    def flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(self._data, indent=2, ensure_ascii=False)
        self.path.write_text(data, encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        super().set(key, value)
        self.flush()

    def delete(self, key: str) -> None:
        super().delete(key)
        self.flush()


class ChangeNotifier:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, key: str) -> None:
        for listener in list(self._listeners):
            listener(key)


def _read_json(store: KeyValueStore, key: str) -> Any:
    raw = store.get(key)
    if raw is None:
        return None
    return json.loads(raw)


def _write_json(store: KeyValueStore, key: str, data: Any) -> None:
    store.set(key, json.dumps(data, ensure_ascii=False))


class TreeRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def load(self) -> OrgNode | None:
        try:
            payload = _read_json(self.store, TREE_KEY)
            if payload is None:
                return None
            return OrgNode.from_dict(payload)
        except _MALFORMED as exc:
            logger.warning("Organograma salvo invalido, usando arvore inicial: %s", exc)
            return None

    def save(self, tree: OrgNode) -> None:
        _write_json(self.store, TREE_KEY, tree.to_dict())

    def clear(self) -> None:
        self.store.delete(TREE_KEY)


class AvatarStorage:
    """Imagens dos nos, guardadas fora da arvore e indexadas pelo id do no."""

    def __init__(self, store: KeyValueStore, *, max_bytes: int | None = None) -> None:
        self.store = store
        self.max_bytes = max_bytes

    @staticmethod
    def key(node_id: str) -> str:
        return f"{AVATAR_PREFIX}{node_id}"

    def save(self, node_id: str, image_data: str) -> None:
        if self.max_bytes is not None and len(image_data) > self.max_bytes:
            raise PayloadTooLargeError(
                f"Imagem do no {node_id} excede o limite ({len(image_data)} > {self.max_bytes}).",
                size=len(image_data),
                limit=self.max_bytes,
            )
        self.store.set(self.key(node_id), image_data)

    def get(self, node_id: str) -> str | None:
        return self.store.get(self.key(node_id))

    def remove(self, node_id: str) -> None:
        self.store.delete(self.key(node_id))


class _RecordListRepository:
    """Lista de registros em uma chave JSON.

    Entradas que nao decodificam sao ignoradas na leitura, mas voltam intactas
    para o store em cada ``save``; nenhuma gravacao descarta registros antigos.
    """

    key: str = ""
    label: str = "registros"

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _decode(self, item: Any) -> Any:
        raise NotImplementedError

    def _entries(self, *, warn: bool = True) -> tuple[list[Any], list[Any]]:
        try:
            payload = _read_json(self.store, self.key)
        except ValueError as exc:
            if warn:
                logger.warning("Lista de %s invalida, ignorando: %s", self.label, exc)
            return [], []
        if payload is None:
            return [], []
        if not isinstance(payload, list):
            if warn:
                logger.warning("Lista de %s com formato inesperado, ignorando", self.label)
            return [], []
        records: list[Any] = []
        undecoded: list[Any] = []
        for item in payload:
            try:
                records.append(self._decode(item))
            except _MALFORMED as exc:
                if warn:
                    logger.warning("Registro de %s ignorado: %s", self.label, exc)
                undecoded.append(item)
        return records, undecoded

    def _write(self, encoded: list[dict[str, Any]]) -> None:
        _, undecoded = self._entries(warn=False)
        _write_json(self.store, self.key, [*encoded, *undecoded])


class ContractRepository(_RecordListRepository):
    key = CONTRACTS_KEY
    label = "contratos"

    def _decode(self, item: Any) -> Contract:
        return Contract.from_dict(item)

    def load(self) -> list[Contract]:
        return self._entries()[0]

    def save(self, contracts: list[Contract]) -> None:
        self._write([contract.to_dict() for contract in contracts])


class TicketRepository(_RecordListRepository):
    key = TICKETS_KEY
    label = "ocorrencias"

    def _decode(self, item: Any) -> Ticket:
        return Ticket.from_dict(item)

    def load(self) -> list[Ticket]:
        return self._entries()[0]

    def save(self, tickets: list[Ticket]) -> None:
        self._write([ticket.to_dict() for ticket in tickets])

    def prepend(self, ticket: Ticket) -> list[Ticket]:
        tickets = [ticket, *self.load()]
        self.save(tickets)
        return tickets


class SettingsRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def load(self) -> ChartSettings:
        try:
            payload = _read_json(self.store, SETTINGS_KEY)
            if payload is None:
                return ChartSettings()
            return ChartSettings.from_dict(payload)
        except _MALFORMED as exc:
            logger.warning("Configuracao do organograma invalida, usando padrao: %s", exc)
            return ChartSettings()

    def save(self, settings: ChartSettings) -> None:
        _write_json(self.store, SETTINGS_KEY, settings.to_dict())


@dataclass(slots=True)
class OrgStorage:
    store: KeyValueStore
    tree: TreeRepository
    avatars: AvatarStorage
    contracts: ContractRepository
    tickets: TicketRepository
    settings: SettingsRepository
    notifier: ChangeNotifier = field(default_factory=ChangeNotifier)

    @classmethod
    def from_store(cls, store: KeyValueStore, *, avatar_max_bytes: int | None = None) -> "OrgStorage":
        return cls(
            store=store,
            tree=TreeRepository(store),
            avatars=AvatarStorage(store, max_bytes=avatar_max_bytes),
            contracts=ContractRepository(store),
            tickets=TicketRepository(store),
            settings=SettingsRepository(store),
        )
