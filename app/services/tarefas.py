# app/services/tarefas.py
import asyncio
import logging
from typing import Any, Awaitable, Optional, Set

logger = logging.getLogger("demandas.tarefas")


class SupervisorTarefas:
    """
    Efeitos colaterais (auditoria, notificação, backup) disparados depois do
    commit principal. Falhas são logadas e nunca chegam a quem disparou.
    """

    def __init__(self) -> None:
        self._tarefas: Set[asyncio.Task] = set()

    @property
    def pendentes(self) -> int:
        return len(self._tarefas)

    def disparar(self, coro: Awaitable[Any], descricao: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._executar(coro, descricao), name=descricao)
        self._tarefas.add(task)
        task.add_done_callback(self._tarefas.discard)
        return task

    async def _executar(self, coro: Awaitable[Any], descricao: str) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Falha na tarefa em segundo plano '%s'", descricao)
            return None

    async def aguardar(self, timeout: Optional[float] = None) -> bool:
        """
        Espera todas as tarefas (inclusive as disparadas por outras tarefas).
        Retorna False se o timeout estourar com tarefas ainda pendentes.
        """
        loop = asyncio.get_running_loop()
        limite = None if timeout is None else loop.time() + timeout
        while self._tarefas:
            restante = None if limite is None else max(limite - loop.time(), 0)
            _, pendentes = await asyncio.wait(set(self._tarefas), timeout=restante)
            if pendentes and limite is not None and loop.time() >= limite:
                logger.warning("%d tarefa(s) ainda pendente(s) após %.1fs", len(pendentes), timeout)
                return False
        return True
