"""Cliente ViaCEP: CEP -> logradouro, bairro, cidade, UF."""

import logging
import time
from typing import Callable, Optional

import httpx

from mapa_clientes.core.config import Settings
from mapa_clientes.core.exceptions import PostalLookupError
from mapa_clientes.schemas.geo import FragmentoCep
from mapa_clientes.services.enderecos import normalizar_cep
from mapa_clientes.services.transporte import aguardar, eh_falha_transitoria

logger = logging.getLogger(__name__)


class ViaCepClient:
    """Consulta o ViaCEP com retry linear só para falhas transitórias."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = settings.VIACEP_URL.rstrip("/")
        self.max_tentativas = max(1, settings.VIACEP_MAX_TENTATIVAS)
        self.backoff = settings.VIACEP_BACKOFF_SEGUNDOS
        self.client = client
        self.sleep = sleep

    def lookup(self, cep: str) -> Optional[FragmentoCep]:
        """
        Retorna o fragmento de endereço, ou None se o CEP não existe.

        Raises:
            PostalLookupError: falha não transitória ou tentativas esgotadas
        """
        cep_limpo = normalizar_cep(cep)
        url = f"{self.base_url}/{cep_limpo}/json/"

        for tentativa in range(1, self.max_tentativas + 1):
            try:
                logger.info("📮 Consultando ViaCEP: %s (tentativa %d/%d)", cep_limpo, tentativa, self.max_tentativas)
                resp = self.client.get(url)
            except httpx.TransportError as e:
                if eh_falha_transitoria(e) and tentativa < self.max_tentativas:
                    aguardar(self.backoff * tentativa, f"ViaCEP: {e}", self.sleep)
                    continue
                raise PostalLookupError(f"ViaCEP indisponível para {cep_limpo}: {e}") from e

            if resp.status_code == 400:
                return None
            if resp.status_code != 200:
                raise PostalLookupError(f"ViaCEP retornou HTTP {resp.status_code} para {cep_limpo}")

            try:
                data = resp.json()
            except ValueError as e:
                raise PostalLookupError(f"Resposta inválida do ViaCEP para {cep_limpo}") from e

            if not isinstance(data, dict) or data.get("erro"):
                logger.info("CEP %s não encontrado no ViaCEP", cep_limpo)
                return None

            return FragmentoCep(
                logradouro=(data.get("logradouro") or "").strip() or None,
                bairro=(data.get("bairro") or "").strip() or None,
                cidade=(data.get("localidade") or "").strip() or None,
                uf=(data.get("uf") or "").strip() or None,
                cep=normalizar_cep(data.get("cep")) or cep_limpo,
            )

        raise PostalLookupError(f"ViaCEP falhou após {self.max_tentativas} tentativas para {cep_limpo}")
