"""
Geocodificação em cascata de endereços de clientes.

Fluxo:
  1. CEP com 8 dígitos -> ViaCEP (endereço normalizado)
  2. Google Geocoding, se houver chave
  3. Nominatim com o endereço do ViaCEP
  4. Fallback: Nominatim com o texto original
  5. Sem resultado -> None

O Nominatim é um recurso público com rate limit: há uma pausa antes de cada
chamada, backoff linear em 429/503 e troca de host nos demais erros. Se todos
os hosts falharem, levanta FatalNetworkError para a sincronização pausar.
"""

import logging
import time
from typing import Callable, Optional

import httpx

from mapa_clientes.core.config import Settings
from mapa_clientes.core.exceptions import FatalNetworkError, ProviderError, RateLimitedError
from mapa_clientes.schemas.geo import ComponentesEndereco, GeoResultado
from mapa_clientes.services.enderecos import (
    CEP_DIGITOS, componentes_do_cep, endereco_do_cep, normalizar_cep,
)
from mapa_clientes.services.transporte import aguardar, eh_falha_transitoria
from mapa_clientes.services.viacep import ViaCepClient

logger = logging.getLogger(__name__)

MIN_TEXTO_FALLBACK = 6
STATUS_RETRY = (429, 503)


class GeocodingResolver:
    """Resolve endereço (+ CEP opcional) em coordenadas."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client,
        viacep: Optional[ViaCepClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.sleep = sleep
        self.viacep = viacep or ViaCepClient(settings, client, sleep=sleep)

        self.google_key = settings.GOOGLE_MAPS_KEY
        self.google_url = settings.GOOGLE_GEOCODE_URL

        self.hosts = settings.nominatim_hosts_list
        self.user_agent = settings.NOMINATIM_USER_AGENT
        self.pais = settings.NOMINATIM_PAIS
        self.delay = settings.NOMINATIM_DELAY_SEGUNDOS
        self.backoff = settings.NOMINATIM_BACKOFF_SEGUNDOS
        self.max_tentativas = max(1, settings.NOMINATIM_MAX_TENTATIVAS)

    def resolve(self, endereco: Optional[str], cep: Optional[str] = None) -> Optional[GeoResultado]:
        """
        Retorna GeoResultado ou None quando nenhum provedor encontra o endereço.

        Raises:
            FatalNetworkError: Nominatim inalcançável em todos os hosts
            PostalLookupError: ViaCEP falhou (erro restrito a este cliente)
        """
        normalized: Optional[ComponentesEndereco] = None
        consulta: Optional[str] = None
        geo: Optional[GeoResultado] = None

        cep_limpo = normalizar_cep(cep)
        if len(cep_limpo) == CEP_DIGITOS:
            fragmento = self.viacep.lookup(cep_limpo)
            if fragmento is not None:
                normalized = componentes_do_cep(fragmento)
                consulta = endereco_do_cep(fragmento)
                logger.info("🏠 Endereço normalizado: %s", consulta)

        if consulta:
            if self.google_key:
                geo = self._google(consulta)
            if geo is None:
                geo = self._nominatim(consulta)

        if geo is None:
            texto = (endereco or "").strip()
            if len(texto) < MIN_TEXTO_FALLBACK:
                logger.info("⚠️ Endereço muito curto para fallback: %r", texto)
                return None
            logger.info("📝 Geocoding fallback: %s", texto)
            geo = self._nominatim(texto)

        if geo is None:
            logger.info("❌ Nenhuma coordenada encontrada para %r", endereco)
            return None

        return geo.model_copy(update={"normalized": normalized})

    # ---- Google ----

    def _google(self, endereco: str) -> Optional[GeoResultado]:
        logger.info("🧭 Tentando Google Geocoding")
        try:
            resp = self.client.get(self.google_url, params={"address": endereco, "key": self.google_key})
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Google Geocoding falhou: %s", e)
            return None

        results = data.get("results") or []
        if not results:
            logger.info("Google sem resultado (status=%s)", data.get("status"))
            return None

        loc = results[0]["geometry"]["location"]
        logger.info("✅ Google retornou coordenadas")
        return GeoResultado(lat=float(loc["lat"]), lng=float(loc["lng"]), fonte="google")

    # ---- Nominatim ----

    def _nominatim(self, q: str) -> Optional[GeoResultado]:
        data = self._nominatim_search(q)
        if not data:
            return None
        first = data[0]
        try:
            return GeoResultado(lat=float(first["lat"]), lng=float(first["lon"]), fonte="nominatim")
        except (KeyError, TypeError, ValueError):
            logger.warning("Resposta do Nominatim sem lat/lon válidos: %s", first)
            return None

    def _nominatim_search(self, q: str) -> list:
        falhas = []
        for host in self.hosts:
            try:
                return self._nominatim_host(host, q)
            except ProviderError as e:
                logger.warning("⚠️ Nominatim %s: %s, trocando de host", host, e)
                falhas.append(f"{host}: {e}")
            except httpx.TransportError as e:
                logger.warning("Nominatim %s inalcançável: %s", host, e)
                falhas.append(f"{host}: {e}")

        logger.error("❌ Nominatim falhou em todos os hosts: %s", "; ".join(falhas))
        raise FatalNetworkError("Nominatim indisponível em todos os hosts", falhas)

    def _nominatim_host(self, host: str, q: str) -> list:
        """
        Raises:
            RateLimitedError: 429/503 até a última tentativa
            ProviderError: outro status não-2xx
            httpx.TransportError: falha de rede não transitória ou persistente
        """
        url = f"{host}/search"
        params = {"format": "json", "limit": 1, "countrycodes": self.pais, "q": q}
        headers = {"User-Agent": self.user_agent}

        for tentativa in range(1, self.max_tentativas + 1):
            aguardar(self.delay, "pausa entre chamadas", self.sleep)
            logger.info("🌍 Nominatim %s tentativa %d/%d", host, tentativa, self.max_tentativas)

            try:
                resp = self.client.get(url, params=params, headers=headers)
            except httpx.TransportError as e:
                if eh_falha_transitoria(e) and tentativa < self.max_tentativas:
                    aguardar(self.backoff * tentativa, f"falha de rede: {e}", self.sleep)
                    continue
                raise

            if resp.status_code == 200:
                try:
                    data = resp.json()
                except ValueError:
                    data = None
                return data if isinstance(data, list) else []

            if resp.status_code in STATUS_RETRY:
                if tentativa < self.max_tentativas:
                    aguardar(self.backoff * tentativa, f"Nominatim retornou {resp.status_code}", self.sleep)
                    continue
                raise RateLimitedError(
                    f"HTTP {resp.status_code} após {self.max_tentativas} tentativas", resp.status_code
                )

            # outros erros -> não adianta insistir neste host
            raise ProviderError(f"HTTP {resp.status_code}", resp.status_code)

        return []
