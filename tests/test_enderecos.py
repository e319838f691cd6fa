from mapa_clientes.schemas.geo import ComponentesEndereco, FragmentoCep
from mapa_clientes.schemas.parceiro import ParceiroCrm
from mapa_clientes.services.enderecos import (
    cep_valido,
    componentes_do_parceiro,
    endereco_do_cep,
    limpar_uf,
    montar_endereco,
    normalizar_cep,
)


class TestCepUf:
    def test_normalizar_cep_remove_formatacao(self):
        assert normalizar_cep("57000-000") == "57000000"
        assert normalizar_cep(" 01.310-100 ") == "01310100"
        assert normalizar_cep(None) == ""

    def test_cep_valido_exige_oito_digitos(self):
        assert cep_valido("57000-000")
        assert not cep_valido("5700")
        assert not cep_valido(None)

    def test_limpar_uf(self):
        assert limpar_uf("sp") == "SP"
        assert limpar_uf(" al ") == "AL"

    def test_limpar_uf_rejeita_pais_e_nomes(self):
        assert limpar_uf("BR") is None
        assert limpar_uf("São Paulo") is None
        assert limpar_uf(None) is None


class TestMontarEndereco:
    def test_endereco_completo_na_ordem(self):
        comp = ComponentesEndereco(
            logradouro="Rua das Flores",
            numero="123",
            bairro="Centro",
            cidade="Maceió",
            uf="AL",
            cep="57000-000",
            pais="Brasil",
        )
        assert montar_endereco(comp) == "Rua das Flores, 123, Centro, Maceió, AL, 57000000, Brasil"

    def test_pais_padrao_quando_ausente(self):
        comp = ComponentesEndereco(logradouro="Rua do Sol", cidade="Recife")
        assert montar_endereco(comp) == "Rua do Sol, Recife, Brasil"

    def test_colapsa_espacos_e_virgulas(self):
        comp = ComponentesEndereco(logradouro="  Rua   A ,", numero=",", cidade="Recife")
        assert montar_endereco(comp) == "Rua A, Recife, Brasil"

    def test_so_pais_retorna_none(self):
        assert montar_endereco(ComponentesEndereco()) is None
        assert montar_endereco(ComponentesEndereco(pais="Brasil")) is None

    def test_texto_curto_retorna_none(self):
        assert montar_endereco(ComponentesEndereco(cidade="X")) is None

    def test_uf_br_descartada(self):
        comp = ComponentesEndereco(logradouro="Rua do Sol", cidade="Recife", uf="BR")
        assert montar_endereco(comp) == "Rua do Sol, Recife, Brasil"

    def test_idempotente_com_componentes_canonicos(self):
        comp = ComponentesEndereco(
            logradouro=" Av.  Brasil ", numero="10", cidade="Natal", uf="rn", cep="59000-000",
        )
        primeiro = montar_endereco(comp)
        canonico = ComponentesEndereco(
            logradouro="Av. Brasil", numero="10", cidade="Natal", uf="RN", cep="59000000", pais="Brasil",
        )
        assert montar_endereco(canonico) == primeiro


class TestComponentes:
    def test_componentes_do_parceiro(self):
        parceiro = ParceiroCrm.model_validate({
            "id": 7,
            "name": "Acme",
            "street": "Rua A",
            "l10n_br_endereco_numero": "99",
            "city": "Recife",
            "state_id": [16, "Pernambuco (PE)"],
            "zip": "50000-000",
            "country_id": False,
        })
        comp = componentes_do_parceiro(parceiro)
        assert comp.numero == "99"
        assert comp.uf == "PE"
        assert comp.cep == "50000000"
        assert comp.pais == "Brasil"

    def test_cep_com_dois_valores_descartado(self):
        parceiro = ParceiroCrm.model_validate({
            "id": 8,
            "name": "Acme",
            "street": "Rua A",
            "city": "Maceió",
            "zip": "57000-000 / 57001-000",
        })
        comp = componentes_do_parceiro(parceiro)
        assert comp.cep is None
        assert montar_endereco(comp) == "Rua A, Maceió, Brasil"

    def test_cep_incompleto_fora_do_endereco(self):
        comp = ComponentesEndereco(logradouro="Rua do Sol", cidade="Recife", cep="5000")
        assert montar_endereco(comp) == "Rua do Sol, Recife, Brasil"

    def test_endereco_do_cep_sem_o_cep(self):
        fragmento = FragmentoCep(
            logradouro="Avenida Paulista", bairro="Bela Vista", cidade="São Paulo", uf="SP", cep="01310100",
        )
        assert endereco_do_cep(fragmento) == "Avenida Paulista, Bela Vista, São Paulo, SP, Brasil"


def test_exemplo_maceio():
    comp = ComponentesEndereco(
        logradouro="Rua A", numero="10", bairro="Centro", cidade="Maceió", uf="AL", cep="57000000", pais="Brasil",
    )
    assert montar_endereco(comp) == "Rua A, 10, Centro, Maceió, AL, 57000000, Brasil"
