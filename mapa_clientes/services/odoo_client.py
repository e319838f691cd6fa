"""Cliente JSON-RPC do Odoo para leitura de parceiros (res.partner)."""

import logging
import random
from typing import Any, Iterable, Optional

import httpx

from mapa_clientes.core.config import Settings
from mapa_clientes.core.exceptions import CrmError
from mapa_clientes.schemas.parceiro import ODOO_FIELDS, ParceiroCrm

logger = logging.getLogger(__name__)

MODEL_PARTNER = "res.partner"


def dominio_or(condicoes: list[list]) -> list:
    """Encadeia condições com OR na notação polonesa do Odoo: ['|', a, b]."""
    if not condicoes:
        return []
    return ["|"] * (len(condicoes) - 1) + list(condicoes)


def termos_busca(nome: str) -> list[str]:
    """Nome inteiro e partes em volta da primeira vírgula, com acentos (o ilike do Odoo não os ignora)."""
    termos = []
    for t in [nome, *nome.split(",", 1)]:
        t = " ".join(t.split())
        if t and t not in termos:
            termos.append(t)
    return termos


def chunks(items: list, size: int) -> Iterable[list]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class OdooClient:
    """Login + search_read via /jsonrpc."""

    def __init__(self, settings: Settings, client: httpx.Client):
        self.url = settings.ODOO_URL
        self.db = settings.ODOO_DB
        self.user = settings.ODOO_USER
        self.password = settings.ODOO_PASS
        self.batch_size = max(1, settings.ODOO_BATCH_SIZE)
        self.limit = settings.ODOO_LIMIT
        self.client = client
        self._uid: Optional[int] = None

    def _rpc(self, service: str, method: str, args: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": random.randint(0, 99999),
        }
        resp = self.client.post(self.url, json=payload, headers={"Content-Type": "application/json"})
        resp.raise_for_status()
        data = resp.json()
        if data.get("error"):
            error = data["error"]
            message = (error.get("data") or {}).get("message") or error.get("message") or str(error)
            raise CrmError(f"Odoo: {message}", error)
        return data.get("result")

    def login(self) -> int:
        if self._uid is None:
            uid = self._rpc("common", "login", [self.db, self.user, self.password])
            if not uid:
                raise CrmError("Odoo: login recusado")
            self._uid = uid
            logger.info("Odoo: login ok (uid=%s)", uid)
        return self._uid

    def search_read(
        self,
        domain: list,
        fields: Optional[list[str]] = None,
        limit: Optional[int] = None,
        model: str = MODEL_PARTNER,
    ) -> list[dict]:
        uid = self.login()
        kwargs: dict = {"fields": fields or ODOO_FIELDS}
        if limit:
            kwargs["limit"] = limit
        result = self._rpc(
            "object",
            "execute_kw",
            [self.db, uid, self.password, model, "search_read", [domain], kwargs],
        )
        return result or []

    def _parse(self, records: list[dict]) -> list[ParceiroCrm]:
        parceiros = []
        for r in records:
            try:
                parceiros.append(ParceiroCrm.model_validate(r))
            except ValueError as e:
                logger.warning("Parceiro ignorado (%s): %s", r.get("id"), e)
        return parceiros

    def buscar_clientes(self) -> list[ParceiroCrm]:
        """Todos os parceiros marcados como cliente (customer_rank > 0)."""
        records = self.search_read([["customer_rank", ">", 0]], limit=self.limit)
        logger.info("Odoo: %d clientes", len(records))
        return self._parse(records)

    def buscar_por_nomes(self, nomes: list[str]) -> list[ParceiroCrm]:
        """Busca exata em lote: name in [...] em blocos de ODOO_BATCH_SIZE."""
        termos = []
        for nome in nomes:
            for t in termos_busca(nome):
                if t not in termos:
                    termos.append(t)

        parceiros = []
        for bloco in chunks(termos, self.batch_size):
            parceiros.extend(self._parse(self.search_read([["name", "in", bloco]])))
        logger.info("Odoo: busca exata de %d termos -> %d parceiros", len(termos), len(parceiros))
        return parceiros

    def buscar_fuzzy(self, nome: str) -> list[ParceiroCrm]:
        """ilike em name/display_name para cada candidato do nome, encadeados com OR."""
        condicoes = []
        for c in termos_busca(nome):
            condicoes.append(["name", "ilike", c])
            condicoes.append(["display_name", "ilike", c])
        if not condicoes:
            return []
        return self._parse(self.search_read(dominio_or(condicoes), limit=50))
