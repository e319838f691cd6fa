"""
Sincronização Odoo + planilha -> base local, com geocodificação.

Fluxo de uma passagem:
  1. Checa a pausa (a primeira passagem do processo sempre limpa pausa e cursor)
  2. Lê a planilha (ou todos os clientes do CRM, sem planilha)
  3. Casa cada entrada com um parceiro do Odoo; não encontrados são só contados
  4. Retoma do cursor, se houver
  5. Processa um cliente por vez: endereço canônico, geocode, diagnóstico de
     duplicados, upsert do cliente, troca dos equipamentos, commit e cursor
  6. Falha fatal de rede grava a pausa e encerra a passagem; qualquer outro
     erro afeta só o cliente corrente
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx
from sqlalchemy.orm import Session

from mapa_clientes.core.config import Settings
from mapa_clientes.core.exceptions import CrmError, FatalNetworkError
from mapa_clientes.schemas.geo import ComponentesEndereco, GeoResultado
from mapa_clientes.schemas.parceiro import EntradaPlanilha, ParceiroCrm
from mapa_clientes.schemas.sync import ResumoPassagem, SyncStatus
from mapa_clientes.services.enderecos import componentes_do_parceiro, limpar_uf, montar_endereco
from mapa_clientes.services.equipamentos import parse_equipamentos
from mapa_clientes.services.geocoding import GeocodingResolver
from mapa_clientes.services.nomes import find_match, is_found, normalizar_nome
from mapa_clientes.services.odoo_client import OdooClient
from mapa_clientes.services.planilha import ler_planilha
from mapa_clientes.services.repositorio import ClienteRepository
from mapa_clientes.services.transporte import criar_cliente_http

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_PAUSED = "paused"
STATUS_PAUSED_ON_ERROR = "paused_on_error"
STATUS_SOURCE_ERROR = "source_error"


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite devolve datetime sem fuso
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SyncSession:
    """Estado que vive enquanto o processo vive (não vai para o banco)."""

    def __init__(self):
        self.primeira_passagem = True
        self.passagens = 0


class SyncService:
    """Executa passagens de sincronização, uma de cada vez."""

    def __init__(
        self,
        settings: Settings,
        session_factory: Callable[[], Session],
        crm: OdooClient,
        geocoder: GeocodingResolver,
        carregar_entradas: Optional[Callable[[], Optional[list[EntradaPlanilha]]]] = None,
        clock: Callable[[], datetime] = agora_utc,
        sync_session: Optional[SyncSession] = None,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.crm = crm
        self.geocoder = geocoder
        self.carregar_entradas = carregar_entradas or self._entradas_da_planilha
        self.clock = clock
        self.sync_session = sync_session or SyncSession()
        self.pausa = timedelta(hours=settings.PAUSA_HORAS)

    def _entradas_da_planilha(self) -> Optional[list[EntradaPlanilha]]:
        if not self.settings.ROSTER_PATH:
            return None
        return ler_planilha(
            self.settings.ROSTER_PATH,
            self.settings.ROSTER_NAME_COLUMN,
            self.settings.ROSTER_EQUIPMENT_COLUMN,
            sheet=self.settings.roster_sheet,
        )

    # ---- Passagem ----

    def run_pass(self) -> ResumoPassagem:
        self.sync_session.passagens += 1
        logger.info("🔄 Sincronização #%d iniciada", self.sync_session.passagens)

        db = self.session_factory()
        try:
            repo = ClienteRepository(db)

            pausa_vigente = self._checar_pausa(repo, db)
            if pausa_vigente is not None:
                return ResumoPassagem(status=STATUS_PAUSED, motivo_pausa=pausa_vigente)

            try:
                casadas, nao_encontrados = self._montar_lista()
            except Exception as e:
                logger.error("❌ Falha ao montar a lista de clientes: %s", e, exc_info=True)
                return ResumoPassagem(status=STATUS_SOURCE_ERROR)

            inicio = self._indice_retomada(repo, casadas)
            resumo = ResumoPassagem(
                status=STATUS_COMPLETED,
                total_entradas=len(casadas) + len(nao_encontrados),
                nao_encontrados=nao_encontrados,
                indice_inicial=inicio,
            )
            return self._processar_lista(repo, db, casadas, inicio, resumo)
        finally:
            db.close()

    def _checar_pausa(self, repo: ClienteRepository, db: Session) -> Optional[str]:
        """Retorna o motivo se a pausa ainda vale; None para seguir."""
        if self.sync_session.primeira_passagem:
            # Reinício do processo: operador já interveio
            repo.limpar_pausa()
            repo.limpar_cursor()
            db.commit()
            self.sync_session.primeira_passagem = False
            logger.info("Primeira passagem do processo: pausa e cursor limpos")
            return None

        pausa = repo.obter_pausa()
        if pausa is None:
            return None

        desde = _as_utc(pausa.pausado_desde)
        agora = self.clock()
        if agora - desde < self.pausa:
            retomar = desde + self.pausa
            logger.warning(
                "⏸️ Sincronização pausada desde %s (%s). Retoma após %s",
                desde.isoformat(), pausa.motivo, retomar.isoformat(),
            )
            return pausa.motivo or "pausado"

        repo.limpar_pausa()
        db.commit()
        logger.info("▶️ Pausa expirada, retomando sincronização")
        return None

    def _montar_lista(self) -> tuple[list[tuple[EntradaPlanilha, ParceiroCrm]], list[str]]:
        entradas = self.carregar_entradas()

        if entradas is None:
            parceiros = self.crm.buscar_clientes()
            logger.info("Sem planilha: sincronizando %d clientes do CRM", len(parceiros))
            return [(EntradaPlanilha(nome=p.name), p) for p in parceiros], []

        pool = self.crm.buscar_por_nomes([e.nome for e in entradas])
        vistos = {p.id for p in pool}
        encontrados = {n for p in pool for n in (p.name, p.display_name) if n}

        for e in entradas:
            if is_found(e.nome, encontrados):
                continue
            try:
                extras = self.crm.buscar_fuzzy(e.nome)
            except (CrmError, httpx.HTTPError) as exc:
                logger.warning("Busca aproximada falhou para %r: %s", e.nome, exc)
                continue
            for p in extras:
                if p.id not in vistos:
                    vistos.add(p.id)
                    pool.append(p)

        # Clientes de verdade antes de contatos genéricos
        pool.sort(key=lambda p: not p.is_customer)

        casadas: list[tuple[EntradaPlanilha, ParceiroCrm]] = []
        por_id: dict[int, int] = {}
        nao_encontrados = []
        for e in entradas:
            p = find_match(e.nome, pool)
            if p is None:
                logger.warning("🔎 Não encontrado no CRM: %s", e.nome)
                nao_encontrados.append(e.nome)
                continue
            if p.id in por_id:
                # Duas linhas para o mesmo parceiro: uma entrada, equipamentos juntos
                i = por_id[p.id]
                anterior, _ = casadas[i]
                texto = "\n".join(t for t in (anterior.equipamentos_texto, e.equipamentos_texto) if t)
                casadas[i] = (anterior.model_copy(update={"equipamentos_texto": texto}), p)
                continue
            por_id[p.id] = len(casadas)
            casadas.append((e, p))

        logger.info(
            "Planilha: %d entradas, %d casadas, %d não encontradas",
            len(entradas), len(casadas), len(nao_encontrados),
        )
        return casadas, nao_encontrados

    def _indice_retomada(
        self,
        repo: ClienteRepository,
        casadas: list[tuple[EntradaPlanilha, ParceiroCrm]],
    ) -> int:
        cursor = repo.obter_cursor()
        if cursor is None:
            return 0

        if cursor.ultimo_id_odoo is not None:
            for i, (_, p) in enumerate(casadas):
                if p.id == cursor.ultimo_id_odoo:
                    logger.info("⏩ Retomando após %s (id %s)", p.name, p.id)
                    return i + 1

        nome = normalizar_nome(cursor.ultimo_nome)
        if nome:
            for i, (e, _) in enumerate(casadas):
                if normalizar_nome(e.nome) == nome:
                    logger.info("⏩ Retomando após %s", e.nome)
                    return i + 1

        logger.info("Cursor não corresponde a nenhuma entrada, começando do início")
        return 0

    def _processar_lista(
        self,
        repo: ClienteRepository,
        db: Session,
        casadas: list[tuple[EntradaPlanilha, ParceiroCrm]],
        inicio: int,
        resumo: ResumoPassagem,
    ) -> ResumoPassagem:
        total = len(casadas)
        for i in range(inicio, total):
            entrada, parceiro = casadas[i]
            logger.info("[%d/%d] %s", i + 1, total, parceiro.name)
            try:
                geocodificado = self.processar_entrada(repo, entrada, parceiro)
                repo.salvar_cursor(parceiro.id, entrada.nome, self.clock())
                db.commit()
            except FatalNetworkError as e:
                db.rollback()
                motivo = f"{e}: {'; '.join(e.falhas)}" if e.falhas else str(e)
                repo.salvar_pausa(self.clock(), motivo)
                db.commit()
                logger.error("🛑 Falha fatal de rede em %s; sincronização pausada: %s", parceiro.name, motivo)
                resumo.status = STATUS_PAUSED_ON_ERROR
                resumo.motivo_pausa = motivo
                return resumo
            except Exception as e:
                db.rollback()
                resumo.falhas += 1
                logger.error("⚠️ Erro processando cliente %s: %s", parceiro.name, e, exc_info=True)
                continue

            resumo.processados += 1
            if geocodificado:
                resumo.geocodificados += 1

        repo.limpar_cursor()
        db.commit()
        logger.info(
            "✅ Sincronização concluída: %d processados, %d geocodificados, %d falhas, %d não encontrados",
            resumo.processados, resumo.geocodificados, resumo.falhas, len(resumo.nao_encontrados),
        )
        return resumo

    # ---- Cliente ----

    def processar_entrada(
        self,
        repo: ClienteRepository,
        entrada: EntradaPlanilha,
        parceiro: ParceiroCrm,
    ) -> bool:
        """Geocodifica e grava um cliente. Retorna True se obteve coordenadas."""
        comp = componentes_do_parceiro(parceiro)
        endereco = montar_endereco(comp)

        geo: Optional[GeoResultado] = None
        if endereco is None:
            logger.warning("⚠️ Endereço muito incompleto para %s, salvando sem coordenadas", parceiro.name)
        else:
            geo = self.geocoder.resolve(endereco, comp.cep)

        final = self._endereco_final(comp, geo)

        self._diagnosticar_duplicados(repo, parceiro, final)

        repo.upsert_cliente({
            "id_odoo": parceiro.id,
            "nome": parceiro.name,
            "telefone": parceiro.phone,
            "celular": parceiro.mobile,
            "email": parceiro.email,
            "site": parceiro.website,
            "logradouro": final.logradouro,
            "numero": final.numero,
            "complemento": parceiro.street2,
            "bairro": final.bairro,
            "cidade": final.cidade,
            "estado": final.uf,
            "cep": final.cep,
            "pais": final.pais,
            "endereco_completo": montar_endereco(final) or endereco,
            "latitude": geo.lat if geo else None,
            "longitude": geo.lng if geo else None,
            "atualizado_em": self.clock(),
        })

        if entrada.equipamentos_texto.strip():
            itens = parse_equipamentos(entrada.equipamentos_texto)
            gravados = repo.substituir_equipamentos(parceiro.id, itens)
            logger.info("🔧 %d equipamentos gravados para %s", gravados, parceiro.name)

        return geo is not None

    @staticmethod
    def _endereco_final(comp: ComponentesEndereco, geo: Optional[GeoResultado]) -> ComponentesEndereco:
        """Campos do CRM; o que faltar vem do endereço normalizado pelo provedor."""
        norm = geo.normalized if geo and geo.normalized else ComponentesEndereco()
        return ComponentesEndereco(
            logradouro=comp.logradouro or norm.logradouro,
            numero=comp.numero or norm.numero,
            bairro=comp.bairro or norm.bairro,
            cidade=comp.cidade or norm.cidade,
            uf=limpar_uf(comp.uf) or limpar_uf(norm.uf),
            cep=comp.cep or norm.cep,
            pais=comp.pais or norm.pais,
        )

    @staticmethod
    def _diagnosticar_duplicados(
        repo: ClienteRepository,
        parceiro: ParceiroCrm,
        final: ComponentesEndereco,
    ) -> None:
        vizinhos = repo.buscar_duplicados(parceiro.id, final.cep, final.cidade, final.logradouro)
        if not vizinhos:
            return
        logger.info("%d outros clientes no mesmo endereço de %s", len(vizinhos), parceiro.name)
        for v in vizinhos:
            if is_found(parceiro.name, [v["nome"]]):
                logger.warning(
                    "👥 Possível duplicado: %s (id %s) e %s (id %s)",
                    parceiro.name, parceiro.id, v["nome"], v["id_odoo"],
                )


def obter_status(repo: ClienteRepository, settings: Settings) -> SyncStatus:
    pausa = repo.obter_pausa()
    cursor = repo.obter_cursor()
    desde = _as_utc(pausa.pausado_desde) if pausa else None
    return SyncStatus(
        pausado=pausa is not None,
        pausado_desde=desde,
        motivo=pausa.motivo if pausa else None,
        retomar_em=desde + timedelta(hours=settings.PAUSA_HORAS) if desde else None,
        cursor_id_odoo=cursor.ultimo_id_odoo if cursor else None,
        cursor_nome=cursor.ultimo_nome if cursor else None,
    )


def criar_sync_service(
    settings: Settings,
    session_factory: Callable[[], Session],
    http_client: Optional[httpx.Client] = None,
) -> SyncService:
    client = http_client or criar_cliente_http(settings.HTTP_TIMEOUT_SEGUNDOS)
    return SyncService(
        settings,
        session_factory,
        crm=OdooClient(settings, client),
        geocoder=GeocodingResolver(settings, client),
    )
