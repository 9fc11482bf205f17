import pytest

from app.core.errors import ErroNaoEncontrado
from app.core.security import Ator
from app.services import notificacoes as svc
from app.services.tempo_real import GerenciadorConexoes, sala_do_usuario


class FakeWebSocket:
    def __init__(self, falhar=False):
        self.enviados = []
        self.aceito = False
        self.falhar = falhar

    async def accept(self):
        self.aceito = True

    async def send_json(self, dados):
        if self.falhar:
            raise RuntimeError("conexão caiu")
        self.enviados.append(dados)


class TestGerenciadorConexoes:
    async def test_emitir_so_para_a_sala(self):
        canal = GerenciadorConexoes()
        ws_ana, ws_rui = FakeWebSocket(), FakeWebSocket()
        await canal.conectar(ws_ana)
        await canal.conectar(ws_rui)
        canal.entrar(ws_ana, 2)
        canal.entrar(ws_rui, 7)

        entregues = await canal.emitir(2, "notificacao", {"titulo": "Oi"})

        assert entregues == 1
        assert ws_ana.enviados == [{"evento": "notificacao", "dados": {"titulo": "Oi"}}]
        assert ws_rui.enviados == []
        assert sala_do_usuario(2) == "user_2"

    async def test_sair_da_sala(self):
        canal = GerenciadorConexoes()
        ws = FakeWebSocket()
        await canal.conectar(ws)
        canal.entrar(ws, 2)
        canal.sair(ws, 2)
        assert await canal.emitir(2, "notificacao", {}) == 0

    async def test_falha_de_envio_desconecta(self):
        canal = GerenciadorConexoes()
        ws = FakeWebSocket(falhar=True)
        await canal.conectar(ws)
        canal.entrar(ws, 2)

        assert await canal.emitir(2, "notificacao", {}) == 0
        assert canal.total_conexoes == 0


class TestDespachante:
    async def test_persiste_e_empurra(self, sistema):
        ws = FakeWebSocket()
        await sistema.canal.conectar(ws)
        sistema.canal.entrar(ws, 4)

        notif_id = await sistema.notificacoes.notificar(4, "feedback", "Novo Feedback", "Olá", prioridade=True)
        await sistema.tarefas.aguardar()

        [msg] = ws.enviados
        assert msg["evento"] == "notificacao"
        assert msg["dados"]["id"] == notif_id
        assert msg["dados"]["usuarioId"] == 4
        assert msg["dados"]["prioridade"] is True
        assert msg["dados"]["lida"] is False

    async def test_push_falho_nao_perde_notificacao(self, sistema):
        ws = FakeWebSocket(falhar=True)
        await sistema.canal.conectar(ws)
        sistema.canal.entrar(ws, 4)

        await sistema.notificacoes.notificar(4, "feedback", "Novo Feedback", "Olá")
        await sistema.tarefas.aguardar()

        async with sistema.sessionmaker() as db:
            itens = await svc.listar_notificacoes(db, Ator(id=4))
        assert len(itens) == 1


class TestCrudDoDestinatario:
    async def test_dono_marca_e_exclui(self, sistema):
        dono = Ator(id=4)
        nid = await sistema.notificacoes.notificar(4, "x", "T", "M")

        async with sistema.sessionmaker() as db:
            await svc.marcar_lida(db, nid, dono)
            [item] = await svc.listar_notificacoes(db, dono)
            assert item["lida"] is True
            await svc.excluir_notificacao(db, nid, dono)
            assert await svc.listar_notificacoes(db, dono) == []

    async def test_outro_usuario_nao_ve(self, sistema):
        nid = await sistema.notificacoes.notificar(4, "x", "T", "M")

        async with sistema.sessionmaker() as db:
            with pytest.raises(ErroNaoEncontrado):
                await svc.marcar_lida(db, nid, Ator(id=5))
            assert await svc.listar_notificacoes(db, Ator(id=5), usuario_id=4) == []

    async def test_gestor_consulta_e_limpa(self, sistema):
        gestor = Ator(id=1, role="gestor")
        for _ in range(3):
            await sistema.notificacoes.notificar(4, "x", "T", "M")

        async with sistema.sessionmaker() as db:
            assert len(await svc.listar_notificacoes(db, gestor, usuario_id=4)) == 3
            assert await svc.limpar_notificacoes(db, gestor, usuario_id=4) == 3
            assert await svc.listar_notificacoes(db, Ator(id=4)) == []
