# app/services/demanda_service.py
import logging
import time
from datetime import timedelta
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ErroConflito, ErroNaoEncontrado, ErroValidacao
from app.core.security import Ator
from app.models.demanda import Demanda
from app.schemas.common import mensagem_de_validacao
from app.schemas.demanda import (
    ComentarioCreate,
    ComentarioUsuario,
    DemandaBase,
    DemandaCreate,
    DemandaUpdate,
    ProrrogacaoIn,
    ReatribuicaoIn,
    StatusDemanda,
)
from app.services.auditoria import RegistradorAuditoria
from app.services.backup_service import MotorBackup
from app.services.normalizacao import normalizar_demanda
from app.services.notificacoes import DespachanteNotificacoes
from app.services.serializacao import aplicar_na_linha, demanda_para_dict, demanda_para_wire
from app.services.tarefas import SupervisorTarefas
from app.utils.datas import agora, agora_iso, data_br

logger = logging.getLogger("demandas.demandas")

TABELA = "demandas"
M = TypeVar("M", bound=BaseModel)

S = StatusDemanda

# Transições aceitas por update. Manter o mesmo status é sempre permitido;
# a reatribuição pode entrar em ATRIBUIDA_PENDENTE_ACEITACAO de qualquer estado.
TRANSICOES: Dict[str, set] = {
    S.PENDENTE.value: {
        S.APROVADA.value,
        S.REPROVADA.value,
        S.FINALIZADO_PENDENTE_APROVACAO.value,
        S.ATRIBUIDA_PENDENTE_ACEITACAO.value,
    },
    S.ATRIBUIDA_PENDENTE_ACEITACAO.value: {
        S.PENDENTE.value,
        S.REPROVADA.value,
        S.FINALIZADO_PENDENTE_APROVACAO.value,
    },
    S.FINALIZADO_PENDENTE_APROVACAO.value: {
        S.APROVADA.value,
        S.REPROVADA.value,
        S.PENDENTE.value,
    },
    S.APROVADA.value: {S.PENDENTE.value},
    S.REPROVADA.value: {S.PENDENTE.value, S.FINALIZADO_PENDENTE_APROVACAO.value},
}

STATUS_COM_BACKUP = {S.APROVADA.value, S.REPROVADA.value}


def validar_transicao(atual: str, novo: str) -> None:
    if atual == novo:
        return
    if novo not in TRANSICOES.get(atual, ()):
        raise ErroValidacao(f"Transição de status inválida: {atual} -> {novo}")


def validar_payload(modelo: Type[M], payload: Any) -> M:
    if not isinstance(payload, dict):
        raise ErroValidacao("Payload deve ser um objeto JSON")
    try:
        return modelo.model_validate(payload)
    except ValidationError as e:
        raise ErroValidacao(mensagem_de_validacao(e)) from e


def exigir_campos(dados: DemandaBase) -> None:
    """Mesmas regras da criação: nome (>= 3), categoria e data limite."""
    if not dados.nome_demanda or len(dados.nome_demanda) < 3:
        raise ErroValidacao("Nome da demanda é obrigatório")
    if not dados.categoria:
        raise ErroValidacao("Categoria é obrigatória")
    if not dados.data_limite:
        raise ErroValidacao("Data limite é obrigatória")


def anexar_nota(texto_atual: Optional[str], nota: str) -> str:
    texto_atual = (texto_atual or "").rstrip()
    return f"{texto_atual}\n{nota}" if texto_atual else nota


class GeradorTags:
    """Tags DEM-<ms> estritamente crescentes dentro do processo."""

    def __init__(self) -> None:
        self._ultimo_ms = 0

    def _proximo(self) -> str:
        ms = int(time.time() * 1000)
        if ms <= self._ultimo_ms:
            ms = self._ultimo_ms + 1
        self._ultimo_ms = ms
        return f"DEM-{ms}"

    async def gerar(self, session: AsyncSession) -> str:
        while True:
            tag = self._proximo()
            if not await tag_em_uso(session, tag):
                return tag


async def tag_em_uso(session: AsyncSession, tag: str, ignore_id: Optional[int] = None) -> bool:
    q = select(Demanda.id).where(Demanda.tag == tag)
    if ignore_id is not None:
        q = q.where(Demanda.id != ignore_id)
    return (await session.execute(q)).first() is not None


class ServicoDemandas:
    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        auditoria: RegistradorAuditoria,
        notificacoes: DespachanteNotificacoes,
        backups: MotorBackup,
        tarefas: SupervisorTarefas,
        tags: GeradorTags,
    ):
        self._sessionmaker = sessionmaker
        self._auditoria = auditoria
        self._notificacoes = notificacoes
        self._backups = backups
        self._tarefas = tarefas
        self._tags = tags

    # ---------------------------
    # Efeitos colaterais
    # ---------------------------
    def _auditar(self, acao: str, registro_id: int, antes, depois, ator: Ator) -> None:
        self._tarefas.disparar(
            self._auditoria.registrar(acao, TABELA, registro_id, antes, depois, ator.id, ator.ip),
            f"auditoria {acao} #{registro_id}",
        )

    def _backup(self, tipo: str) -> None:
        self._tarefas.disparar(self._backups.criar_backup(tipo), f"backup {tipo}")

    def _efeitos_de_status(self, status_anterior: str, depois: Dict[str, Any]) -> None:
        novo = depois["status"]
        if novo == status_anterior:
            return
        nome = depois.get("nome_demanda") or depois.get("tag")
        if novo == S.APROVADA.value:
            self._notificacoes.agendar(
                depois["funcionario_id"],
                "demanda_aprovada",
                "Demanda Aprovada",
                f'Sua demanda "{nome}" foi aprovada!',
                depois.get("tag"),
            )
        elif novo == S.REPROVADA.value:
            self._notificacoes.agendar(
                depois["funcionario_id"],
                "demanda_reprovada",
                "Demanda Reprovada",
                f'Sua demanda "{nome}" foi reprovada.',
                depois.get("tag"),
            )
        if novo in STATUS_COM_BACKUP:
            self._backup("status_change")

    # ---------------------------
    # Leitura
    # ---------------------------
    async def _get(self, session: AsyncSession, demanda_id: int) -> Demanda:
        obj = await session.get(Demanda, demanda_id)
        if not obj:
            raise ErroNaoEncontrado("Demanda não encontrada")
        return obj

    async def obter(self, demanda_id: int) -> Dict[str, Any]:
        async with self._sessionmaker() as session:
            return demanda_para_wire(await self._get(session, demanda_id))

    async def listar(
        self,
        status: Optional[str] = None,
        funcionario_id: Optional[int] = None,
        categoria: Optional[str] = None,
        prioridade: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        q = select(Demanda)
        if status:
            q = q.where(Demanda.status == status)
        if funcionario_id is not None:
            q = q.where(Demanda.funcionario_id == funcionario_id)
        if categoria:
            q = q.where(Demanda.categoria == categoria)
        if prioridade:
            q = q.where(Demanda.prioridade == prioridade)
        # data_criacao é ISO-8601: YYYY-MM-...
        if month:
            q = q.where(func.substr(Demanda.data_criacao, 6, 2) == str(month).zfill(2))
        if year:
            q = q.where(func.substr(Demanda.data_criacao, 1, 4) == str(year))
        q = q.order_by(Demanda.data_criacao.desc(), Demanda.id.desc())

        async with self._sessionmaker() as session:
            rows = (await session.execute(q)).scalars().all()
        return [demanda_para_wire(r) for r in rows]

    async def buscar(self, termo: Optional[str], limit: int = 20) -> List[Dict[str, Any]]:
        termo = (termo or "").strip()
        if len(termo) < 2:
            return []
        escapado = termo.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        padrao = f"%{escapado}%"
        q = (
            select(Demanda)
            .where(or_(
                Demanda.nome_demanda.ilike(padrao, escape="\\"),
                Demanda.descricao.ilike(padrao, escape="\\"),
                Demanda.tag.ilike(padrao, escape="\\"),
            ))
            .order_by(Demanda.data_criacao.desc(), Demanda.id.desc())
            .limit(limit)
        )
        async with self._sessionmaker() as session:
            rows = (await session.execute(q)).scalars().all()
        return [demanda_para_wire(r) for r in rows]

    async def estatisticas(self, periodo: int = 30) -> Dict[str, int]:
        corte = (agora() - timedelta(days=periodo)).isoformat()

        def _conta(cond):
            return func.count(case((cond, 1)))

        q = select(
            func.count().label("total"),
            _conta(Demanda.status == S.APROVADA.value).label("aprovadas"),
            _conta(Demanda.status == S.PENDENTE.value).label("pendentes"),
            _conta(Demanda.status == S.REPROVADA.value).label("reprovadas"),
            _conta(Demanda.status == S.FINALIZADO_PENDENTE_APROVACAO.value).label("em_analise"),
            _conta(Demanda.status == S.ATRIBUIDA_PENDENTE_ACEITACAO.value).label("atribuidas"),
            _conta(Demanda.is_rotina.is_(True)).label("rotina"),
        ).where(Demanda.data_criacao >= corte)

        async with self._sessionmaker() as session:
            row = (await session.execute(q)).one()
        return dict(row._mapping)

    async def contar(self) -> int:
        async with self._sessionmaker() as session:
            return (await session.execute(select(func.count()).select_from(Demanda))).scalar_one()

    # ---------------------------
    # Criação
    # ---------------------------
    async def criar(self, payload: Dict[str, Any], ator: Ator) -> Dict[str, Any]:
        dados = validar_payload(DemandaCreate, payload)
        exigir_campos(dados)

        agora_txt = agora_iso()
        registro = dados.model_dump(mode="json")
        registro["funcionario_id"] = registro.get("funcionario_id") or ator.id
        registro["status"] = registro.get("status") or S.PENDENTE.value
        registro["data_criacao"] = registro.get("data_criacao") or agora_txt
        registro["data_atualizacao"] = agora_txt
        registro["criado_por"] = ator.id
        registro["atualizado_por"] = ator.id

        try:
            async with self._sessionmaker() as session, session.begin():
                if registro.get("tag"):
                    if await tag_em_uso(session, registro["tag"]):
                        raise ErroConflito(f"Tag já cadastrada: {registro['tag']}")
                else:
                    registro["tag"] = await self._tags.gerar(session)

                obj = aplicar_na_linha(Demanda(), registro)
                session.add(obj)
                await session.flush()
        except IntegrityError as e:
            raise ErroConflito("Tag já cadastrada") from e

        depois = demanda_para_dict(obj)
        logger.info("Demanda %s criada (#%s) por %s", depois["tag"], obj.id, ator.id)

        self._auditar("CREATE", obj.id, None, demanda_para_wire(depois), ator)

        for atribuido in depois["atribuidos"]:
            aid = atribuido.get("id") if isinstance(atribuido, dict) else None
            if aid is not None and aid != depois["funcionario_id"]:
                self._notificacoes.agendar(
                    aid,
                    "nova_demanda",
                    "Nova Tarefa Atribuída",
                    f"{depois.get('nome_funcionario') or 'Um colega'} atribuiu uma tarefa a você: {depois.get('nome_demanda')}",
                    depois["tag"],
                )

        return demanda_para_wire(depois)

    # ---------------------------
    # Atualização
    # ---------------------------
    async def atualizar(self, demanda_id: int, payload: Dict[str, Any], ator: Ator) -> Dict[str, Any]:
        mudancas = validar_payload(DemandaUpdate, payload).model_dump(exclude_unset=True, mode="json")

        if "nome_demanda" in mudancas and len(mudancas["nome_demanda"] or "") < 3:
            raise ErroValidacao("Nome da demanda é obrigatório")
        if "categoria" in mudancas and not mudancas["categoria"]:
            raise ErroValidacao("Categoria é obrigatória")
        if "data_limite" in mudancas and not mudancas["data_limite"]:
            raise ErroValidacao("Data limite é obrigatória")
        if "status" in mudancas and mudancas["status"] is None:
            mudancas.pop("status")
        if "funcionario_id" in mudancas and mudancas["funcionario_id"] is None:
            mudancas.pop("funcionario_id")
        if "tag" in mudancas and not mudancas["tag"]:
            mudancas.pop("tag")

        try:
            async with self._sessionmaker() as session, session.begin():
                obj = await self._get(session, demanda_id)
                antes = demanda_para_dict(obj)

                if "status" in mudancas:
                    validar_transicao(antes["status"], mudancas["status"])
                if "tag" in mudancas and mudancas["tag"] != antes["tag"]:
                    if await tag_em_uso(session, mudancas["tag"], ignore_id=demanda_id):
                        raise ErroConflito(f"Tag já cadastrada: {mudancas['tag']}")

                mesclado = {**antes, **normalizar_demanda(mudancas, parcial=True)}
                mesclado["data_atualizacao"] = agora_iso()
                mesclado["atualizado_por"] = ator.id
                aplicar_na_linha(obj, mesclado)
        except IntegrityError as e:
            raise ErroConflito("Tag já cadastrada") from e

        depois = demanda_para_dict(obj)
        self._auditar("UPDATE", demanda_id, demanda_para_wire(antes), demanda_para_wire(depois), ator)
        self._efeitos_de_status(antes["status"], depois)
        return demanda_para_wire(depois)

    # ---------------------------
    # Exclusão
    # ---------------------------
    async def excluir(self, demanda_id: int, ator: Ator) -> None:
        async with self._sessionmaker() as session, session.begin():
            obj = await self._get(session, demanda_id)
            antes = demanda_para_wire(obj)
            await session.delete(obj)

        logger.info("Demanda #%s excluída por %s", demanda_id, ator.id)
        self._auditar("DELETE", demanda_id, antes, None, ator)
        # snapshot lido depois do commit: reflete a tabela sem a demanda
        self._backup("delete")

    # ---------------------------
    # Reatribuição
    # ---------------------------
    async def reatribuir(self, demanda_id: int, dados: ReatribuicaoIn, ator: Ator) -> Dict[str, Any]:
        novo = dados.atribuido.model_dump(exclude_none=True)

        async with self._sessionmaker() as session, session.begin():
            obj = await self._get(session, demanda_id)
            antes = demanda_para_dict(obj)

            atribuidos = list(antes["atribuidos"])
            ja_atribuido = any(isinstance(a, dict) and a.get("id") == novo["id"] for a in atribuidos)
            if not ja_atribuido:
                atribuidos.append(novo)

            quem = novo.get("nome") or f"usuário {novo['id']}"
            nota = f"[{data_br()}] Reatribuída para {quem} por usuário {ator.id}"
            if dados.motivo:
                nota += f": {dados.motivo.strip()}"

            aplicar_na_linha(obj, {
                "atribuidos": atribuidos,
                "status": S.ATRIBUIDA_PENDENTE_ACEITACAO.value,
                "comentario_gestor": anexar_nota(antes.get("comentario_gestor"), nota),
                "data_atualizacao": agora_iso(),
                "atualizado_por": ator.id,
            })

        depois = demanda_para_dict(obj)
        self._auditar("REASSIGN", demanda_id, demanda_para_wire(antes), demanda_para_wire(depois), ator)

        if not ja_atribuido and novo["id"] != depois["funcionario_id"]:
            self._notificacoes.agendar(
                novo["id"],
                "nova_demanda",
                "Nova Tarefa Atribuída",
                f"Uma tarefa foi atribuída a você: {depois.get('nome_demanda')}",
                depois.get("tag"),
            )
        return demanda_para_wire(depois)

    # ---------------------------
    # Prorrogação de prazo
    # ---------------------------
    async def prorrogar(self, demanda_id: int, dados: ProrrogacaoIn, ator: Ator) -> Dict[str, Any]:
        nova = dados.nova_data_limite.strip()
        if not nova:
            raise ErroValidacao("Nova data limite é obrigatória")

        async with self._sessionmaker() as session, session.begin():
            obj = await self._get(session, demanda_id)
            antes = demanda_para_dict(obj)

            nota = f"[{data_br()}] Prazo prorrogado de {antes.get('data_limite') or '-'} para {nova} por usuário {ator.id}"
            if dados.motivo:
                nota += f": {dados.motivo.strip()}"

            aplicar_na_linha(obj, {
                "data_limite": nova,
                "comentario_gestor": anexar_nota(antes.get("comentario_gestor"), nota),
                "data_atualizacao": agora_iso(),
                "atualizado_por": ator.id,
            })

        depois = demanda_para_dict(obj)
        self._auditar("EXTEND_DEADLINE", demanda_id, demanda_para_wire(antes), demanda_para_wire(depois), ator)
        return demanda_para_wire(depois)

    # ---------------------------
    # Comentários de usuários
    # ---------------------------
    async def comentar(self, demanda_id: int, dados: ComentarioCreate, ator: Ator) -> Dict[str, Any]:
        texto = (dados.texto or "").strip()
        if not texto:
            raise ErroValidacao("Texto do comentário vazio")

        async with self._sessionmaker() as session, session.begin():
            obj = await self._get(session, demanda_id)
            antes = demanda_para_dict(obj)

            comentarios = list(antes["comentarios_usuarios"])
            ids = [c.get("id") for c in comentarios if isinstance(c, dict) and isinstance(c.get("id"), int)]
            comentario = ComentarioUsuario(
                id=max(ids, default=0) + 1,
                autor_id=ator.id,
                autor_nome=(dados.autor_nome or "").strip() or ator.email or "Colaborador",
                texto=texto,
                data=agora_iso(),
            ).dump()
            comentarios.append(comentario)

            aplicar_na_linha(obj, {
                "comentarios_usuarios": comentarios,
                "data_atualizacao": agora_iso(),
                "atualizado_por": ator.id,
            })

        depois = demanda_para_dict(obj)
        self._auditar("COMMENT", demanda_id, demanda_para_wire(antes), demanda_para_wire(depois), ator)
        return comentario
