"""Middleware options."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from routedoc.convert import extract_path

UI = Literal["redoc", "swagger-ui"]


class Options(BaseModel):
    """Options accepted by ``OpenAPI``.

    ``coerce`` turns type coercion on or off; by default it runs against a
    copy of the request data. ``coerce_in_place`` makes the coerced values
    visible to later handlers through ``request.state.data``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    base_path: str | None = Field(default=None, alias="basePath")
    coerce: bool = True
    coerce_in_place: bool = Field(default=False, alias="coerceInPlace")
    htmlui: list[UI] = []

    @field_validator("base_path")
    @classmethod
    def _path_only(cls, value: str | None) -> str | None:
        if not value:
            return None
        return extract_path(value).split("?", 1)[0].rstrip("/") or None

    @field_validator("htmlui", mode="before")
    @classmethod
    def _as_list(cls, value):
        if value is None or value is False:
            return []
        if value is True:
            return ["redoc"]
        if isinstance(value, str):
            return [value]
        return value
