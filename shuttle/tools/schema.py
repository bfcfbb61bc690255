"""Tool schema: optional Pydantic-based argument validation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class PydanticSchema:
    """Argument schema backed by a Pydantic model."""

    def __init__(self, model: type[BaseModel]) -> None:
        self._model = model

    def parse(self, raw: Any) -> BaseModel:
        if isinstance(raw, str):
            return self._model.model_validate_json(raw)
        return self._model.model_validate(raw if raw is not None else {})

    def to_json_schema(self) -> dict:
        return self._model.model_json_schema()

