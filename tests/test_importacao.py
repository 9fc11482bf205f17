import os

from sqlalchemy import select

from app.models.demanda import Demanda


def _lote(n, payload_demanda):
    return [payload_demanda(nomeDemanda=f"Demanda {i:02d}") for i in range(n)]


class TestImportacaoEmLote:
    async def test_um_invalido_em_dez(self, sistema, config, gestor, payload_demanda):
        """9 persistem, 1 é rejeitado, e sai um backup batch_import."""
        itens = _lote(10, payload_demanda)
        itens[4].pop("categoria")

        resultado = await sistema.importador.importar(itens, gestor)
        await sistema.tarefas.aguardar()

        assert resultado.success_count == 9
        assert resultado.error_count == 1
        assert resultado.errors[0].indice == 4
        assert "Categoria" in resultado.errors[0].error
        assert len(resultado.results) == 9

        todas = await sistema.demandas.listar()
        assert len(todas) == 9
        for ok in resultado.results:
            assert (await sistema.demandas.obter(ok.id))["tag"] == ok.tag

        assert len([f for f in os.listdir(config.BACKUP_DIR) if f.startswith("backup_batch_import_")]) == 1

    async def test_tag_duplicada_no_lote_isolada(self, sistema, gestor, payload_demanda):
        itens = [payload_demanda(tag="X-1"), payload_demanda(tag="X-1"), payload_demanda(tag="X-2")]
        resultado = await sistema.importador.importar(itens, gestor)

        assert (resultado.success_count, resultado.error_count) == (2, 1)
        assert resultado.errors[0].tag == "X-1"
        assert sorted(d["tag"] for d in await sistema.demandas.listar()) == ["X-1", "X-2"]

    async def test_upsert_por_id(self, sistema, gestor, payload_demanda):
        criada = await sistema.demandas.criar(payload_demanda(descricao="antiga"), gestor)
        item = payload_demanda(id=criada["id"], nomeDemanda="Substituída")

        resultado = await sistema.importador.importar([item], gestor)

        assert resultado.success_count == 1
        obtida = await sistema.demandas.obter(criada["id"])
        assert obtida["nomeDemanda"] == "Substituída"
        # sobrescrita completa, sem merge
        assert obtida["descricao"] is None
        assert obtida["tag"] == criada["tag"]

    async def test_sem_sucesso_sem_backup(self, sistema, config, gestor):
        resultado = await sistema.importador.importar([{"nomeDemanda": "x"}, "nao sou objeto"], gestor)
        await sistema.tarefas.aguardar()

        assert (resultado.success_count, resultado.error_count) == (0, 2)
        assert not os.path.isdir(config.BACKUP_DIR) or os.listdir(config.BACKUP_DIR) == []

    async def test_listas_limitadas(self, sistema, gestor, payload_demanda):
        itens = [{"nomeDemanda": "ruim"}] * 25 + _lote(60, payload_demanda)
        resultado = await sistema.importador.importar(itens, gestor)

        assert (resultado.success_count, resultado.error_count) == (60, 25)
        assert len(resultado.errors) == 20
        assert len(resultado.results) == 50

    async def test_auditoria_import(self, sistema, gestor, payload_demanda):
        resultado = await sistema.importador.importar(_lote(2, payload_demanda), gestor)
        await sistema.tarefas.aguardar()

        for ok in resultado.results:
            [registro] = await sistema.auditoria.listar("demandas", ok.id)
            assert registro["acao"] == "IMPORT"
            assert registro["dadosAntigos"] == {}


class TestRestauracao:
    async def test_restaurar_backup(self, sistema, gestor, payload_demanda):
        """Exporta, altera, restaura: volta ao estado exportado."""
        a = await sistema.demandas.criar(payload_demanda(), gestor)
        await sistema.demandas.criar(payload_demanda(nomeDemanda="Outra"), gestor)
        envelope = await sistema.backups.exportar("manual")

        await sistema.demandas.atualizar(a["id"], {"status": "aprovada", "descricao": "mudou"}, gestor)
        await sistema.demandas.excluir(a["id"], gestor)
        await sistema.tarefas.aguardar()

        contagem = await sistema.importador.restaurar(envelope["demandas"], gestor)
        await sistema.tarefas.aguardar()

        assert contagem == {"successCount": 2, "errorCount": 0}
        restaurada = await sistema.demandas.obter(a["id"])
        assert restaurada == a

        acoes = [r["acao"] for r in await sistema.auditoria.listar("demandas", a["id"])]
        assert acoes[-1] == "RESTORE"

    async def test_restaurar_item_invalido(self, sistema, gestor):
        itens = [
            {"id": 50, "tag": "R-1", "funcionarioId": 3, "nomeDemanda": "Ok", "status": "pendente"},
            {"id": 51, "tag": "R-2", "nomeDemanda": "Sem dono"},
            {"id": 52, "tag": "R-3", "funcionarioId": 3, "status": "inexistente"},
        ]
        contagem = await sistema.importador.restaurar(itens, gestor)

        assert contagem == {"successCount": 1, "errorCount": 2}
        async with sistema.sessionmaker() as session:
            ids = (await session.execute(select(Demanda.id))).scalars().all()
        assert ids == [50]

    async def test_restauracao_nao_gera_backup(self, sistema, config, gestor):
        await sistema.importador.restaurar(
            [{"id": 1, "tag": "R-1", "funcionarioId": 3, "nomeDemanda": "Ok"}], gestor
        )
        await sistema.tarefas.aguardar()
        assert not os.path.isdir(config.BACKUP_DIR) or os.listdir(config.BACKUP_DIR) == []

    async def test_restaura_listas_como_vieram(self, sistema, gestor):
        """Conteúdo de lista fora do formato usual é restaurado sem alteração."""
        item = {
            "id": 7,
            "tag": "R-7",
            "funcionarioId": 3,
            "nomeDemanda": "Legado",
            "diasSemana": ["seg"],
            "atribuidos": [{"nome": "Bia"}],
        }
        contagem = await sistema.importador.restaurar([item], gestor)

        assert contagem == {"successCount": 1, "errorCount": 0}
        restaurada = await sistema.demandas.obter(7)
        assert restaurada["diasSemana"] == ["seg"]
        assert restaurada["atribuidos"] == [{"nome": "Bia"}]

    async def test_ids_seguem_crescendo_apos_restauracao(self, sistema, gestor, payload_demanda):
        await sistema.importador.restaurar(
            [{"id": 40, "tag": "R-40", "funcionarioId": 3, "nomeDemanda": "Ok"}], gestor
        )
        await sistema.demandas.excluir(40, gestor)
        nova = await sistema.demandas.criar(payload_demanda(), gestor)
        assert nova["id"] > 40
