# app/services/tempo_real.py
import logging
from collections import defaultdict
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger("demandas.tempo_real")


def sala_do_usuario(usuario_id: Any) -> str:
    return f"user_{usuario_id}"


class GerenciadorConexoes:
    """
    Salas de WebSocket por usuário (user_<id>). Entrega best-effort: quem
    estava offline busca as notificações persistidas ao reconectar.
    """

    def __init__(self) -> None:
        self._salas: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._conexoes: Set[WebSocket] = set()

    @property
    def total_conexoes(self) -> int:
        return len(self._conexoes)

    async def conectar(self, ws: WebSocket) -> None:
        await ws.accept()
        self._conexoes.add(ws)
        logger.info("Conexão WebSocket aberta (%d ativas)", len(self._conexoes))

    def entrar(self, ws: WebSocket, usuario_id: Any) -> None:
        self._salas[sala_do_usuario(usuario_id)].add(ws)
        logger.info("Usuário %s entrou na sala", usuario_id)

    def sair(self, ws: WebSocket, usuario_id: Any) -> None:
        sala = sala_do_usuario(usuario_id)
        membros = self._salas.get(sala)
        if membros is None:
            return
        membros.discard(ws)
        if not membros:
            del self._salas[sala]
        logger.info("Usuário %s saiu da sala", usuario_id)

    def desconectar(self, ws: WebSocket) -> None:
        self._conexoes.discard(ws)
        for sala in [s for s, membros in self._salas.items() if ws in membros]:
            self._salas[sala].discard(ws)
            if not self._salas[sala]:
                del self._salas[sala]

    async def emitir(self, usuario_id: Any, evento: str, payload: Dict[str, Any]) -> int:
        """Envia para todos na sala do usuário; devolve quantos receberam."""
        entregues = 0
        for ws in list(self._salas.get(sala_do_usuario(usuario_id), ())):
            try:
                await ws.send_json({"evento": evento, "dados": payload})
                entregues += 1
            except Exception as e:
                logger.warning("Falha ao emitir para usuário %s: %s", usuario_id, e)
                self.desconectar(ws)
        return entregues
