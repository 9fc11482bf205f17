# app/routers/tempo_real.py
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger("demandas.tempo_real")

router = APIRouter(tags=["tempo-real"])


@router.websocket("/ws")
async def canal(ws: WebSocket):
    """
    Mensagens aceitas:
      {"evento": "join_room", "usuarioId": 7}
      {"evento": "leave_room", "usuarioId": 7}
    O servidor só empurra {"evento": "notificacao", "dados": {...}}.
    """
    gerenciador = ws.app.state.sistema.canal
    await gerenciador.conectar(ws)
    try:
        while True:
            msg = await ws.receive_json()
            if not isinstance(msg, dict) or msg.get("usuarioId") is None:
                await ws.send_json({"evento": "erro", "dados": {"error": "usuarioId obrigatório"}})
                continue

            evento = msg.get("evento")
            if evento == "join_room":
                gerenciador.entrar(ws, msg["usuarioId"])
                await ws.send_json({"evento": "joined", "dados": {"usuarioId": msg["usuarioId"]}})
            elif evento == "leave_room":
                gerenciador.sair(ws, msg["usuarioId"])
            else:
                await ws.send_json({"evento": "erro", "dados": {"error": f"Evento desconhecido: {evento}"}})
    except WebSocketDisconnect:
        pass
    finally:
        gerenciador.desconectar(ws)
        logger.info("Conexão WebSocket encerrada (%d ativas)", gerenciador.total_conexoes)
