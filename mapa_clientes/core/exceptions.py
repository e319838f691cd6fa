"""
Exceções do pipeline de resolução de endereços e sincronização.

"Não encontrado" nunca é exceção: CEP inexistente, cliente sem match no CRM
ou endereço sem coordenadas retornam None.
"""


class MapaClientesError(Exception):
    """Base para erros do pipeline."""

    pass


class ProviderError(MapaClientesError):
    """Provedor respondeu com status não-2xx que não justifica nova tentativa."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    """Provedor respondeu 429/503 e as tentativas no host se esgotaram."""

    pass


class FatalNetworkError(MapaClientesError):
    """Todos os hosts do Nominatim falharam em todas as tentativas.

    Único erro que interrompe a passagem inteira e grava a pausa.
    """

    def __init__(self, message: str, falhas: list[str] | None = None):
        super().__init__(message)
        self.falhas = falhas or []


class PostalLookupError(MapaClientesError):
    """Falha na consulta ao ViaCEP; afeta apenas o cliente corrente."""

    pass


class CrmError(MapaClientesError):
    """Erro retornado pelo Odoo (campo "error" da resposta JSON-RPC)."""

    def __init__(self, message: str, data: dict | None = None):
        super().__init__(message)
        self.data = data or {}
