# app/schemas/common.py
from typing import Any, Annotated, List

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from app.services.normalizacao import normalizar_booleano, normalizar_lista

# Campos de lista aceitam tanto a lista quanto o texto JSON gravado no banco
# (ou qualquer lixo, que vira []). Mesmo contrato da normalização das linhas.
ListaNormalizada = Annotated[List[Any], BeforeValidator(normalizar_lista)]
BoolNormalizado = Annotated[bool, BeforeValidator(normalizar_booleano)]


class CamelModel(BaseModel):
    # Atributos em snake_case; no JSON saem/entram em camelCase
    # (nomeDemanda, funcionarioId, isRotina...)
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def dump(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, mode="json", **kwargs)


def mensagem_de_validacao(exc: ValidationError) -> str:
    """Primeira mensagem de um ValidationError do pydantic, com o campo."""
    erros = exc.errors()
    if not erros:
        return "Dados inválidos"
    primeiro = erros[0]
    campo = ".".join(str(p) for p in primeiro.get("loc", ()))
    msg = primeiro.get("msg", "inválido")
    return f"{campo}: {msg}" if campo else msg
