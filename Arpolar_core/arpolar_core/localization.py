from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

DEFAULT_LOCALE = "pt-BR"


MESSAGES: Mapping[str, Mapping[str, str]] = {
    "pt-BR": {
        "node.added": "[OK] Membro adicionado ao organograma.",
        "node.updated": "[EDIT] Dados do membro atualizados.",
        "node.removed": "[DEL] Membro removido.",
        "node.moved": "[MOVE] Membro movido.",
        "node.visibility": "[EDIT] Visibilidade na rede alterada.",
        "node.not_found": "[ERR] Membro nao encontrado: {node_id}.",
        "tree.reset": "[RESET] Organograma restaurado para o padrao.",
        "contract.created": "[OK] Contrato {name} registrado automaticamente.",
        "avatar.failed": "[WARN] Imagem nao salva: {error}",
        "ticket.opened": "[OK] Ocorrencia registrada.",
        "settings.saved": "[SAVE] Configuracao do contrato salva.",
    },
    "en-US": {
        "node.added": "[OK] Member added to the chart.",
        "node.updated": "[EDIT] Member updated.",
        "node.removed": "[DEL] Member removed.",
        "node.moved": "[MOVE] Member moved.",
        "node.visibility": "[EDIT] Network visibility toggled.",
        "node.not_found": "[ERR] Member not found: {node_id}.",
        "tree.reset": "[RESET] Chart restored to default.",
        "contract.created": "[OK] Contract {name} registered automatically.",
        "avatar.failed": "[WARN] Image not saved: {error}",
        "ticket.opened": "[OK] Ticket opened.",
        "settings.saved": "[SAVE] Contract settings saved.",
    },
}


@dataclass(slots=True)
class Localizer:
    locale: str = DEFAULT_LOCALE

    def text(self, key: str, **kwargs) -> str:
        table = MESSAGES.get(self.locale, MESSAGES[DEFAULT_LOCALE])
        template = table.get(key, key)
        if kwargs:
            return template.format(**kwargs)
        return template
