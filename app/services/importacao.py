# app/services/importacao.py
"""
Importação em lote e restauração de backup.

As duas rodam numa única transação, com um SAVEPOINT por item: um item
inválido é desfeito sozinho e o resto segue. Os contadores só são devolvidos
depois que todos os itens terminaram e o commit aconteceu.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ErroAplicacao, ErroConflito, ErroInterno, ErroValidacao
from app.core.security import Ator
from app.models.demanda import COLUNAS, Demanda
from app.schemas.demanda import DemandaImport, ItemLoteErro, ItemLoteOk, ResultadoLote, StatusDemanda
from app.services.auditoria import RegistradorAuditoria
from app.services.backup_service import MotorBackup
from app.services.demanda_service import GeradorTags, exigir_campos, tag_em_uso, validar_payload
from app.services.serializacao import aplicar_na_linha, demanda_para_dict, demanda_para_wire
from app.services.tarefas import SupervisorTarefas
from app.utils.datas import agora_iso

logger = logging.getLogger("demandas.importacao")

TABELA = "demandas"
MAX_ERROS = 20
MAX_RESULTADOS = 50

# (id, snapshot anterior ou None, snapshot novo)
Alteracao = Tuple[int, Optional[Dict[str, Any]], Dict[str, Any]]


class ImportadorDemandas:
    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        auditoria: RegistradorAuditoria,
        backups: MotorBackup,
        tarefas: SupervisorTarefas,
        tags: GeradorTags,
    ):
        self._sessionmaker = sessionmaker
        self._auditoria = auditoria
        self._backups = backups
        self._tarefas = tarefas
        self._tags = tags

    # ---------------------------
    # Upsert de um item (dentro do SAVEPOINT)
    # ---------------------------
    async def _upsert(
        self,
        session: AsyncSession,
        dados: DemandaImport,
        ator: Ator,
        restauracao: bool,
    ) -> Alteracao:
        registro = dados.model_dump(mode="json")
        demanda_id = registro.get("id")

        existente = await session.get(Demanda, demanda_id) if demanda_id is not None else None
        antes = demanda_para_dict(existente) if existente else None

        tag = registro.get("tag")
        if tag:
            if await tag_em_uso(session, tag, ignore_id=demanda_id):
                raise ErroConflito(f"Tag já cadastrada: {tag}")
        elif antes and antes.get("tag"):
            tag = antes["tag"]
        else:
            tag = await self._tags.gerar(session)

        agora_txt = agora_iso()
        # sobrescrita completa: coluna ausente no registro volta ao padrão
        linha = {c: registro.get(c) for c in COLUNAS if c != "id"}
        linha["tag"] = tag
        linha["status"] = linha.get("status") or StatusDemanda.PENDENTE.value
        linha["data_criacao"] = linha.get("data_criacao") or agora_txt
        linha["criado_por"] = linha.get("criado_por") or ator.id
        if restauracao:
            linha["data_atualizacao"] = linha.get("data_atualizacao") or agora_txt
            linha["atualizado_por"] = linha.get("atualizado_por") or ator.id
        else:
            linha["funcionario_id"] = linha.get("funcionario_id") or ator.id
            linha["data_atualizacao"] = agora_txt
            linha["atualizado_por"] = ator.id

        if linha.get("funcionario_id") is None:
            raise ErroValidacao("funcionarioId é obrigatório")

        if existente:
            obj = existente
        else:
            obj = Demanda(id=demanda_id) if demanda_id is not None else Demanda()
            session.add(obj)
        aplicar_na_linha(obj, linha)
        await session.flush()

        return obj.id, antes, demanda_para_dict(obj)

    async def _processar(
        self,
        itens: List[Any],
        ator: Ator,
        restauracao: bool,
    ) -> Tuple[ResultadoLote, List[Alteracao]]:
        resultado = ResultadoLote()
        alteracoes: List[Alteracao] = []

        try:
            async with self._sessionmaker() as session, session.begin():
                for indice, item in enumerate(itens):
                    tag = item.get("tag") if isinstance(item, dict) else None
                    try:
                        async with session.begin_nested():
                            dados = validar_payload(DemandaImport, item)
                            if not restauracao:
                                exigir_campos(dados)
                            alteracao = await self._upsert(session, dados, ator, restauracao)
                    except (ErroAplicacao, SQLAlchemyError) as e:
                        mensagem = e.mensagem if isinstance(e, ErroAplicacao) else str(getattr(e, "orig", e))
                        logger.warning("Item %d do lote rejeitado: %s", indice, mensagem)
                        resultado.error_count += 1
                        if len(resultado.errors) < MAX_ERROS:
                            resultado.errors.append(ItemLoteErro(indice=indice, tag=tag, error=mensagem))
                        continue

                    alteracoes.append(alteracao)
                    resultado.success_count += 1
                    if len(resultado.results) < MAX_RESULTADOS:
                        resultado.results.append(
                            ItemLoteOk(indice=indice, id=alteracao[0], tag=alteracao[2].get("tag"))
                        )
        except SQLAlchemyError as e:
            logger.error("Transação do lote falhou: %s", e)
            raise ErroInterno(f"Erro na transação: {e}") from e

        return resultado, alteracoes

    def _auditar(self, acao: str, alteracoes: List[Alteracao], ator: Ator) -> None:
        for registro_id, antes, depois in alteracoes:
            self._tarefas.disparar(
                self._auditoria.registrar(
                    acao,
                    TABELA,
                    registro_id,
                    demanda_para_wire(antes) if antes else None,
                    demanda_para_wire(depois),
                    ator.id,
                    ator.ip,
                ),
                f"auditoria {acao} #{registro_id}",
            )

    # ---------------------------
    # API pública
    # ---------------------------
    async def importar(self, itens: List[Any], ator: Ator) -> ResultadoLote:
        resultado, alteracoes = await self._processar(itens, ator, restauracao=False)
        logger.info(
            "Importação em lote: %d sucesso(s), %d erro(s)",
            resultado.success_count, resultado.error_count,
        )
        self._auditar("IMPORT", alteracoes, ator)
        if resultado.success_count:
            self._tarefas.disparar(self._backups.criar_backup("batch_import"), "backup batch_import")
        return resultado

    async def restaurar(self, itens: List[Any], ator: Ator) -> Dict[str, int]:
        resultado, alteracoes = await self._processar(itens, ator, restauracao=True)
        logger.info(
            "Restauração: %d sucesso(s), %d erro(s)",
            resultado.success_count, resultado.error_count,
        )
        self._auditar("RESTORE", alteracoes, ator)
        return {"successCount": resultado.success_count, "errorCount": resultado.error_count}
