import httpx
import pytest

from mapa_clientes.core.exceptions import FatalNetworkError
from mapa_clientes.services.geocoding import GeocodingResolver

PAULISTA = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
}
NOMINATIM_OK = [{"lat": "-23.5614", "lon": "-46.6559", "display_name": "Avenida Paulista"}]
GOOGLE_OK = {
    "status": "OK",
    "results": [{"geometry": {"location": {"lat": -23.56, "lng": -46.65}}}],
}


class Providers:
    """Roteia as requisições por host e guarda o histórico."""

    def __init__(self, viacep=None, google=None, nominatim=None):
        self.viacep = viacep or (lambda request: httpx.Response(200, json=PAULISTA))
        self.google = google or (lambda request: httpx.Response(200, json=GOOGLE_OK))
        self.nominatim = nominatim or (lambda request: httpx.Response(200, json=NOMINATIM_OK))
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        host = request.url.host
        if host == "viacep.test":
            return self.viacep(request)
        if host == "google.test":
            return self.google(request)
        return self.nominatim(request)

    def hosts(self):
        return [r.url.host for r in self.requests]

    def nominatim_queries(self):
        return [r.url.params["q"] for r in self.requests if r.url.host.startswith("nom")]


@pytest.fixture
def resolver_factory(settings, make_client, fake_sleep):
    def _make(providers, **overrides):
        s = settings.model_copy(update=overrides) if overrides else settings
        return GeocodingResolver(s, make_client(providers), sleep=fake_sleep)

    return _make


class TestResolveCascata:
    def test_cep_normalizado_vai_para_nominatim(self, resolver_factory):
        providers = Providers()
        geo = resolver_factory(providers).resolve("Av Paulista 1000, SP", "01310-100")

        assert geo.lat == pytest.approx(-23.5614)
        assert geo.lng == pytest.approx(-46.6559)
        assert geo.fonte == "nominatim"
        assert geo.normalized.uf == "SP"
        assert geo.normalized.cidade == "São Paulo"
        assert providers.nominatim_queries() == ["Avenida Paulista, Bela Vista, São Paulo, SP, Brasil"]

    def test_parametros_do_nominatim(self, resolver_factory, settings):
        providers = Providers()
        resolver_factory(providers).resolve("Av Paulista 1000, SP", "01310100")

        req = providers.requests[-1]
        assert req.url.path == "/search"
        assert req.url.params["format"] == "json"
        assert req.url.params["limit"] == "1"
        assert req.url.params["countrycodes"] == "br"
        assert req.headers["User-Agent"] == settings.NOMINATIM_USER_AGENT

    def test_google_primeiro_quando_ha_chave(self, resolver_factory):
        providers = Providers()
        geo = resolver_factory(providers, GOOGLE_MAPS_KEY="chave").resolve("Av Paulista 1000", "01310100")

        assert geo.fonte == "google"
        assert geo.lat == pytest.approx(-23.56)
        assert geo.normalized.uf == "SP"
        assert providers.hosts() == ["viacep.test", "google.test"]

    def test_google_sem_resultado_cai_no_nominatim(self, resolver_factory):
        providers = Providers(
            google=lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}),
        )
        geo = resolver_factory(providers, GOOGLE_MAPS_KEY="chave").resolve("Av Paulista 1000", "01310100")

        assert geo.fonte == "nominatim"
        assert providers.nominatim_queries() == ["Avenida Paulista, Bela Vista, São Paulo, SP, Brasil"]

    def test_google_com_erro_cai_no_nominatim(self, resolver_factory):
        providers = Providers(google=lambda request: httpx.Response(500))
        geo = resolver_factory(providers, GOOGLE_MAPS_KEY="chave").resolve("Av Paulista 1000", "01310100")
        assert geo.fonte == "nominatim"

    def test_cep_inexistente_pula_google_e_usa_texto(self, resolver_factory):
        providers = Providers(viacep=lambda request: httpx.Response(200, json={"erro": True}))
        geo = resolver_factory(providers, GOOGLE_MAPS_KEY="chave").resolve(
            "Rua das Flores, 123, Maceió, AL", "57000000"
        )

        assert "google.test" not in providers.hosts()
        assert providers.nominatim_queries() == ["Rua das Flores, 123, Maceió, AL"]
        assert geo.normalized is None

    def test_sem_cep_usa_texto(self, resolver_factory):
        providers = Providers()
        geo = resolver_factory(providers).resolve("Rua das Flores, 123, Maceió, AL", None)

        assert "viacep.test" not in providers.hosts()
        assert geo is not None
        assert geo.normalized is None

    def test_normalizado_sem_resultado_tenta_texto_original(self, resolver_factory):
        def nominatim(request):
            if request.url.params["q"].startswith("Avenida Paulista"):
                return httpx.Response(200, json=[])
            return httpx.Response(200, json=NOMINATIM_OK)

        providers = Providers(nominatim=nominatim)
        geo = resolver_factory(providers).resolve("Av Paulista 1000, São Paulo", "01310100")

        assert geo is not None
        assert providers.nominatim_queries() == [
            "Avenida Paulista, Bela Vista, São Paulo, SP, Brasil",
            "Av Paulista 1000, São Paulo",
        ]
        # o normalizado do ViaCEP continua valendo
        assert geo.normalized.uf == "SP"

    def test_texto_curto_sem_cep_nao_consulta(self, resolver_factory):
        providers = Providers()
        assert resolver_factory(providers).resolve("Rua", None) is None
        assert providers.requests == []

    def test_nenhum_resultado(self, resolver_factory):
        providers = Providers(nominatim=lambda request: httpx.Response(200, json=[]))
        assert resolver_factory(providers).resolve("Rua Inexistente, Lugar Nenhum", None) is None


class TestNominatimRetry:
    def test_429_depois_200_no_mesmo_host(self, resolver_factory, sleeps):
        respostas = [httpx.Response(429), httpx.Response(200, json=NOMINATIM_OK)]
        providers = Providers(nominatim=lambda request: respostas.pop(0))

        geo = resolver_factory(
            providers, NOMINATIM_DELAY_SEGUNDOS=1.5, NOMINATIM_BACKOFF_SEGUNDOS=3.0,
        ).resolve("Rua das Flores, 123, Maceió", None)

        assert geo is not None
        assert providers.hosts() == ["nom1.test", "nom1.test"]
        # pausa, backoff da 1ª tentativa, pausa
        assert sleeps == [1.5, 3.0, 1.5]

    def test_503_em_todos_os_hosts_e_fatal(self, resolver_factory):
        providers = Providers(nominatim=lambda request: httpx.Response(503))

        with pytest.raises(FatalNetworkError) as exc_info:
            resolver_factory(providers).resolve("Rua das Flores, 123, Maceió", None)

        assert providers.hosts() == ["nom1.test"] * 3 + ["nom2.test"] * 3
        assert len(exc_info.value.falhas) == 2
        assert "nom1.test" in exc_info.value.falhas[0]

    def test_outro_status_troca_de_host_sem_repetir(self, resolver_factory):
        def nominatim(request):
            if request.url.host == "nom1.test":
                return httpx.Response(500)
            return httpx.Response(200, json=NOMINATIM_OK)

        providers = Providers(nominatim=nominatim)
        geo = resolver_factory(providers).resolve("Rua das Flores, 123, Maceió", None)

        assert geo is not None
        assert providers.hosts() == ["nom1.test", "nom2.test"]

    def test_falha_de_rede_em_todos_os_hosts_e_fatal(self, resolver_factory):
        def nominatim(request):
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        providers = Providers(nominatim=nominatim)
        with pytest.raises(FatalNetworkError):
            resolver_factory(providers).resolve("Rua das Flores, 123, Maceió", None)
        # conexão recusada não é transitória: uma tentativa por host
        assert providers.hosts() == ["nom1.test", "nom2.test"]

    def test_timeout_tenta_de_novo(self, resolver_factory):
        chamadas = []

        def nominatim(request):
            chamadas.append(request)
            if len(chamadas) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json=NOMINATIM_OK)

        providers = Providers(nominatim=nominatim)
        assert resolver_factory(providers).resolve("Rua das Flores, 123, Maceió", None) is not None
        assert providers.hosts() == ["nom1.test", "nom1.test"]

    def test_pausa_antes_de_cada_chamada(self, resolver_factory, sleeps):
        providers = Providers()
        resolver_factory(providers, NOMINATIM_DELAY_SEGUNDOS=1.5).resolve("Rua das Flores, 123, Maceió", None)
        assert sleeps == [1.5]
