"""Helpers HTTP compartilhados: classificação de falhas transitórias e esperas."""

import errno
import logging
import time
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)

_ERRNOS_TRANSITORIOS = {errno.ECONNRESET, errno.ECONNABORTED, errno.ETIMEDOUT}
_TRECHOS_TRANSITORIOS = (
    "econnreset",
    "econnaborted",
    "etimedout",
    "connection reset",
    "connection aborted",
    "timed out",
    "socket hang up",
    "timeout",
    "network",
)


def eh_falha_transitoria(exc: BaseException) -> bool:
    """
    Reset/abort de conexão e timeouts valem nova tentativa.
    Conexão recusada, DNS e afins não.
    """
    if isinstance(exc, httpx.TimeoutException):
        return True

    atual: Optional[BaseException] = exc
    while atual is not None:
        code = getattr(atual, "errno", None)
        if code in _ERRNOS_TRANSITORIOS:
            return True
        code = getattr(atual, "code", None)
        texto = f"{code or ''} {atual}".lower()
        if any(t in texto for t in _TRECHOS_TRANSITORIOS):
            return True
        atual = atual.__cause__
    return False


def aguardar(segundos: float, motivo: str = "", sleep: Callable[[float], None] = time.sleep) -> None:
    if segundos <= 0:
        return
    logger.info("Aguardando %.1fs%s", segundos, f" -> {motivo}" if motivo else "")
    sleep(segundos)


def criar_cliente_http(
    timeout: float,
    headers: Optional[dict] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    return httpx.Client(
        timeout=timeout,
        headers={"Accept": "application/json", **(headers or {})},
        transport=transport,
        follow_redirects=True,
    )
