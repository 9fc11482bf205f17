# app/services/serializacao.py
from enum import Enum
from typing import Any, Dict, Mapping, Union

from app.models.demanda import COLUNAS, Demanda
from app.schemas.demanda import DemandaRead
from app.services.normalizacao import CAMPOS_LISTA, codificar_lista, normalizar_booleano, normalizar_demanda


def demanda_para_dict(obj: Demanda) -> Dict[str, Any]:
    """Linha do banco -> dict snake_case já normalizado."""
    return normalizar_demanda({c: getattr(obj, c) for c in COLUNAS})


def demanda_para_wire(fonte: Union[Demanda, Mapping[str, Any]]) -> Dict[str, Any]:
    """Linha (ou dict snake_case) -> JSON camelCase que vai para o cliente."""
    dados = demanda_para_dict(fonte) if isinstance(fonte, Demanda) else normalizar_demanda(fonte)
    return DemandaRead.model_validate(dados).dump()


def aplicar_na_linha(obj: Demanda, dados: Mapping[str, Any]) -> Demanda:
    """Copia `dados` (snake_case) para a linha, codificando as listas em JSON."""
    for campo, valor in dados.items():
        if campo == "id" or campo not in COLUNAS:
            continue
        if campo in CAMPOS_LISTA:
            valor = codificar_lista(valor)
        elif campo == "is_rotina":
            valor = normalizar_booleano(valor)
        elif isinstance(valor, Enum):
            valor = valor.value
        setattr(obj, campo, valor)
    return obj
