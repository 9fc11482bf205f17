# app/services/normalizacao.py
"""
Normalização dos campos de uma demanda.

No banco, os campos de lista ficam como texto JSON e ``is_rotina`` pode vir
como 0/1, bool ou string (importações antigas). Tudo que sai para o cliente, e
tudo que é mesclado num update, passa por aqui primeiro.

As funções nunca levantam exceção: valor ilegível vira lista vazia / False.
``normalizar_demanda(normalizar_demanda(x)) == normalizar_demanda(x)``.
"""
import json
from typing import Any, Dict, List, Mapping

CAMPOS_LISTA = (
    "dias_semana",
    "atribuidos",
    "anexos_criacao",
    "anexos_resolucao",
    "comentarios_usuarios",
)

_FALSOS = {"", "0", "false", "f", "nao", "não", "no", "n", "off", "null", "none"}


def normalizar_lista(valor: Any) -> List[Any]:
    if isinstance(valor, str):
        try:
            decodificado = json.loads(valor)
        except ValueError:
            return []
        return list(decodificado) if isinstance(decodificado, list) else []
    if isinstance(valor, (list, tuple)):
        return list(valor)
    return []


def normalizar_booleano(valor: Any) -> bool:
    if isinstance(valor, bool):
        return valor
    if valor is None:
        return False
    if isinstance(valor, (int, float)):
        return valor != 0
    if isinstance(valor, str):
        return valor.strip().lower() not in _FALSOS
    return bool(valor)


def normalizar_demanda(raw: Mapping[str, Any] | None, *, parcial: bool = False) -> Dict[str, Any] | None:
    """
    Devolve uma cópia com os campos de lista e ``is_rotina`` canônicos.

    Com ``parcial=True`` (payload de update) só mexe nas chaves presentes,
    para que um PUT com apenas ``status`` não zere as listas já gravadas.
    """
    if raw is None:
        return None

    dados = dict(raw)
    for campo in CAMPOS_LISTA:
        if parcial and campo not in dados:
            continue
        dados[campo] = normalizar_lista(dados.get(campo))

    if not parcial or "is_rotina" in dados:
        dados["is_rotina"] = normalizar_booleano(dados.get("is_rotina"))

    return dados


def codificar_lista(valor: Any) -> str:
    """Forma gravada no banco (texto JSON) de um campo de lista."""
    return json.dumps(normalizar_lista(valor), ensure_ascii=False)
