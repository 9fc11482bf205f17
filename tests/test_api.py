class TestAutenticacao:
    async def test_sem_token(self, client):
        resp = await client.get("/api/demandas")
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Token não fornecido"}

    async def test_token_invalido(self, client):
        resp = await client.get("/api/demandas", headers={"Authorization": "Bearer nao-e-jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Token inválido"

    async def test_health_sem_token(self, client):
        resp = await client.get("/health")
        body = resp.json()
        assert resp.status_code == 200
        assert body["status"] == "ok"
        assert body["totalDemandas"] == 0
        assert body["conexoesWebSocket"] == 0


class TestRotasDemandas:
    async def test_ciclo_completo(self, client, sistema, auth_gestor, payload_demanda):
        resp = await client.post("/api/demandas", json=payload_demanda(), headers=auth_gestor)
        assert resp.status_code == 201
        criada = resp.json()["data"]
        assert criada["tag"].startswith("DEM-")
        assert criada["status"] == "pendente"

        resp = await client.put(
            f"/api/demandas/{criada['id']}", json={"status": "aprovada"}, headers=auth_gestor
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "aprovada"

        resp = await client.get(f"/api/demandas/{criada['id']}", headers=auth_gestor)
        assert resp.json()["data"]["status"] == "aprovada"

        resp = await client.delete(f"/api/demandas/{criada['id']}", headers=auth_gestor)
        assert resp.json() == {"success": True, "message": "Demanda excluída com sucesso"}
        await sistema.tarefas.aguardar()

        resp = await client.get(f"/api/demandas/{criada['id']}", headers=auth_gestor)
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Demanda não encontrada"}

    async def test_validacao_400(self, client, auth_gestor, payload_demanda):
        resp = await client.post("/api/demandas", json=payload_demanda(categoria=""), headers=auth_gestor)
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Categoria é obrigatória"}

    async def test_conflito_de_tag_400(self, client, auth_gestor, payload_demanda):
        await client.post("/api/demandas", json=payload_demanda(tag="T-1"), headers=auth_gestor)
        resp = await client.post("/api/demandas", json=payload_demanda(tag="T-1"), headers=auth_gestor)
        assert resp.status_code == 400
        assert "T-1" in resp.json()["error"]

    async def test_filtros_e_busca(self, client, auth_gestor, payload_demanda):
        await client.post("/api/demandas", json=payload_demanda(nomeDemanda="Folha de pagamento"), headers=auth_gestor)
        await client.post("/api/demandas", json=payload_demanda(funcionarioId=9), headers=auth_gestor)

        resp = await client.get("/api/demandas", params={"funcionarioId": 9}, headers=auth_gestor)
        assert resp.json()["total"] == 1

        resp = await client.get("/api/demandas/search", params={"q": "FOLHA"}, headers=auth_gestor)
        assert [d["nomeDemanda"] for d in resp.json()["data"]] == ["Folha de pagamento"]

        resp = await client.get("/api/demandas/search", params={"q": "f"}, headers=auth_gestor)
        assert resp.json()["data"] == []

    async def test_reatribuir_prorrogar_comentar(self, client, auth_gestor, payload_demanda):
        did = (await client.post("/api/demandas", json=payload_demanda(), headers=auth_gestor)).json()["data"]["id"]

        resp = await client.post(
            f"/api/demandas/{did}/reatribuir",
            json={"atribuido": {"id": 3, "nome": "Léo"}, "motivo": "férias"},
            headers=auth_gestor,
        )
        assert resp.json()["data"]["status"] == "atribuida_pendente_aceitacao"

        resp = await client.post(
            f"/api/demandas/{did}/prorrogar", json={"novaDataLimite": "2030-06-30"}, headers=auth_gestor
        )
        assert resp.json()["data"]["dataLimite"] == "2030-06-30"

        resp = await client.post(f"/api/demandas/{did}/comentarios", json={"texto": "ok"}, headers=auth_gestor)
        assert resp.status_code == 201
        assert resp.json()["data"]["texto"] == "ok"

    async def test_importar(self, client, auth_gestor, payload_demanda):
        itens = [payload_demanda(), payload_demanda(), {"nomeDemanda": "sem categoria"}]
        resp = await client.post("/api/demandas/importar", json={"demandas": itens}, headers=auth_gestor)
        body = resp.json()
        assert body["success"] is True
        assert (body["successCount"], body["errorCount"]) == (2, 1)
        assert body["errors"][0]["indice"] == 2

    async def test_estatisticas(self, client, auth_gestor, payload_demanda):
        await client.post("/api/demandas", json=payload_demanda(), headers=auth_gestor)
        resp = await client.get("/api/demandas/estatisticas", headers=auth_gestor)
        assert resp.json()["data"]["total"] == 1


class TestRotasBackup:
    async def test_backup_manual_e_listagem(self, client, auth_gestor):
        resp = await client.post("/api/backup", json={"tipo": "manual"}, headers=auth_gestor)
        assert resp.json()["arquivo"].startswith("backup_manual_")

        resp = await client.get("/api/backups", headers=auth_gestor)
        assert [b["tipo"] for b in resp.json()["data"]] == ["manual"]

    async def test_download(self, client, auth_gestor, payload_demanda):
        await client.post("/api/demandas", json=payload_demanda(), headers=auth_gestor)
        resp = await client.get("/api/backup", headers=auth_gestor)
        assert "attachment" in resp.headers["content-disposition"]
        assert resp.json()["totalDemandas"] == 1

    async def test_restore(self, client, auth_gestor):
        itens = [{"id": 10, "tag": "R-10", "funcionarioId": 2, "nomeDemanda": "Restaurada"}]
        resp = await client.post("/api/restore", json={"demandas": itens}, headers=auth_gestor)
        assert resp.json()["successCount"] == 1

        resp = await client.get("/api/demandas/10", headers=auth_gestor)
        assert resp.json()["data"]["tag"] == "R-10"


class TestOutrasRotas:
    async def test_notificacoes(self, client, sistema, auth_funcionario):
        await sistema.notificacoes.notificar(2, "x", "Título", "Mensagem")

        resp = await client.get("/api/notificacoes", headers=auth_funcionario)
        body = resp.json()
        assert body["naoLidas"] == 1
        nid = body["data"][0]["id"]

        resp = await client.put(f"/api/notificacoes/{nid}/lida", headers=auth_funcionario)
        assert resp.json()["success"] is True

        resp = await client.delete("/api/notificacoes", headers=auth_funcionario)
        assert resp.json()["removidas"] == 1

    async def test_anotacoes(self, client, sistema, auth_gestor):
        resp = await client.post(
            "/api/anotacoes", json={"titulo": "Lembrete", "conteudo": "Ligar", "atribuidoA": 2}, headers=auth_gestor
        )
        assert resp.status_code == 201
        anotacao = resp.json()["data"]
        assert anotacao["cor"] == "#3498db"
        await sistema.tarefas.aguardar()

        resp = await client.put(f"/api/anotacoes/{anotacao['id']}", json={"cor": "#fff"}, headers=auth_gestor)
        assert resp.json()["data"]["cor"] == "#fff"

        resp = await client.get("/api/anotacoes", params={"atribuidoA": 2}, headers=auth_gestor)
        assert len(resp.json()["data"]) == 1

        resp = await client.delete(f"/api/anotacoes/{anotacao['id']}", headers=auth_gestor)
        assert resp.json()["success"] is True

    async def test_feedbacks(self, client, sistema, auth_gestor, auth_funcionario):
        resp = await client.post(
            "/api/feedbacks", json={"funcionarioId": 2, "tipo": "elogio", "mensagem": "Ótimo trabalho"}, headers=auth_gestor
        )
        assert resp.status_code == 201
        await sistema.tarefas.aguardar()

        resp = await client.get("/api/feedbacks", headers=auth_funcionario)
        assert [f["tipo"] for f in resp.json()["data"]] == ["elogio"]

        resp = await client.get("/api/notificacoes", headers=auth_funcionario)
        assert resp.json()["data"][0]["titulo"] == "Novo Feedback"

    async def test_rota_inexistente(self, client):
        resp = await client.get("/api/nada")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Rota não encontrada"


class TestConfigDoApp:
    async def test_limite_de_busca_vem_do_app(self, client, config, auth_gestor, payload_demanda):
        """O teto da busca segue o Settings passado para create_app."""
        for _ in range(3):
            await client.post("/api/demandas", json=payload_demanda(), headers=auth_gestor)

        config.SEARCH_MAX_LIMIT = 2
        resp = await client.get("/api/demandas/search", params={"q": "Conciliar", "limit": 50}, headers=auth_gestor)
        assert len(resp.json()["data"]) == 2

        config.SEARCH_DEFAULT_LIMIT = 1
        resp = await client.get("/api/demandas/search", params={"q": "Conciliar"}, headers=auth_gestor)
        assert len(resp.json()["data"]) == 1
