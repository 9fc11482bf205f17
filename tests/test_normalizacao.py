import pytest

from app.schemas.demanda import DemandaCreate
from app.services.normalizacao import (
    codificar_lista,
    normalizar_booleano,
    normalizar_demanda,
    normalizar_lista,
)


class TestNormalizarLista:
    def test_texto_json_vira_lista(self):
        """Texto JSON de lista é decodificado."""
        assert normalizar_lista('[1, 2, 3]') == [1, 2, 3]

    def test_texto_invalido_vira_vazia(self):
        """JSON ilegível degrada para lista vazia, sem exceção."""
        assert normalizar_lista("{not json") == []

    def test_json_que_nao_e_lista(self):
        """JSON válido que não é lista também vira []."""
        assert normalizar_lista('{"a": 1}') == []
        assert normalizar_lista('"texto"') == []

    def test_lista_passa_intacta(self):
        dados = [{"id": 1}, {"id": 2}]
        assert normalizar_lista(dados) == dados

    @pytest.mark.parametrize("valor", [None, 42, 3.5, {"a": 1}, object()])
    def test_outros_tipos(self, valor):
        assert normalizar_lista(valor) == []


class TestNormalizarBooleano:
    @pytest.mark.parametrize("valor", ["0", "false", "FALSE", " nao ", "não", "no", "off", "", "null", "None"])
    def test_strings_falsas(self, valor):
        assert normalizar_booleano(valor) is False

    @pytest.mark.parametrize("valor", ["1", "true", "sim", "yes", "x"])
    def test_strings_verdadeiras(self, valor):
        assert normalizar_booleano(valor) is True

    def test_numeros_e_none(self):
        assert normalizar_booleano(1) is True
        assert normalizar_booleano(0) is False
        assert normalizar_booleano(None) is False


class TestNormalizarDemanda:
    def test_idempotente(self):
        """Aplicar duas vezes dá o mesmo resultado que uma."""
        raw = {
            "dias_semana": "[1,3,5]",
            "atribuidos": "lixo",
            "anexos_criacao": None,
            "anexos_resolucao": ["a.pdf"],
            "comentarios_usuarios": 7,
            "is_rotina": "false",
            "nome_demanda": "X",
        }
        uma = normalizar_demanda(raw)
        assert normalizar_demanda(uma) == uma
        assert uma["dias_semana"] == [1, 3, 5]
        assert uma["atribuidos"] == []
        assert uma["anexos_resolucao"] == ["a.pdf"]
        assert uma["is_rotina"] is False

    def test_nao_altera_original(self):
        raw = {"dias_semana": "[1]"}
        normalizar_demanda(raw)
        assert raw == {"dias_semana": "[1]"}

    def test_parcial_preserva_ausentes(self):
        """Em update parcial, listas não enviadas não são zeradas."""
        out = normalizar_demanda({"status": "aprovada"}, parcial=True)
        assert out == {"status": "aprovada"}

    def test_none(self):
        assert normalizar_demanda(None) is None

    def test_codificar_lista(self):
        assert codificar_lista("[1, 2]") == "[1, 2]"
        assert codificar_lista("ruim") == "[]"


class TestPayloadDeEntrada:
    def test_listas_em_texto_no_payload(self):
        """O schema aplica a mesma normalização no payload de entrada."""
        dados = DemandaCreate.model_validate({
            "nomeDemanda": "Fechamento",
            "diasSemana": "[1, 2]",
            "atribuidos": '[{"id": 4, "nome": "Bia"}]',
            "isRotina": "sim",
        })
        assert dados.dias_semana == [1, 2]
        assert dados.atribuidos == [{"id": 4, "nome": "Bia"}]
        assert dados.is_rotina is True
