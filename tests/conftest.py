"""Fixtures compartilhadas: sistema isolado em SQLite temporário."""
import pytest
from httpx import ASGITransport, AsyncClient

from app.core.auth import create_token
from app.core.config import Settings
from app.core.security import Ator
from app.main import create_app
from app.sistema import SistemaDemandas


@pytest.fixture
def config(tmp_path):
    return Settings(
        ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'demandas.db'}",
        BACKUP_DIR=str(tmp_path / "backups"),
        BACKUP_RETENTION=10,
        SHUTDOWN_BACKUP_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
async def sistema(config):
    s = SistemaDemandas(config)
    await s.iniciar(agendar=False)
    yield s
    await s.encerrar(backup_final=False)


@pytest.fixture
def gestor():
    return Ator(id=1, email="gestor@empresa.com", role="gestor", ip="127.0.0.1")


@pytest.fixture
def funcionario():
    return Ator(id=2, email="ana@empresa.com", role="funcionario", ip="127.0.0.1")


@pytest.fixture
def payload_demanda():
    def _payload(**extra):
        base = {
            "funcionarioId": 2,
            "nomeFuncionario": "Ana",
            "nomeDemanda": "Conciliar extratos",
            "categoria": "Financeiro",
            "prioridade": "alta",
            "dataLimite": "2030-01-31",
        }
        base.update(extra)
        return base
    return _payload


@pytest.fixture
async def client(sistema, config):
    app = create_app(config)
    # ASGITransport não roda o lifespan; o sistema vem da fixture
    app.state.sistema = sistema
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


def _headers(sub, role):
    token = create_token(sub=str(sub), email=f"user{sub}@empresa.com", role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_gestor():
    return _headers(1, "gestor")


@pytest.fixture
def auth_funcionario():
    return _headers(2, "funcionario")
