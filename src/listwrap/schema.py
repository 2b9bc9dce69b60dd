from __future__ import annotations

import shlex
from typing import List

from pydantic import BaseModel, Field, field_validator

from listwrap.config import DEFAULT_INDENT, DEFAULT_MAX_WIDTH, DEFAULT_TAB_WIDTH, WrapConfig


class WrapSettingsDTO(BaseModel):
    max_width: int = Field(DEFAULT_MAX_WIDTH, ge=1)
    tab_width: int = Field(DEFAULT_TAB_WIDTH, ge=1)
    indent: str = DEFAULT_INDENT
    formatter: List[str] = []

    @field_validator("indent")
    @classmethod
    def _indent_is_blank(cls, value: str) -> str:
        if not value or value.strip(" \t"):
            raise ValueError("indent must be a non-empty run of spaces or tabs")
        return value

    @field_validator("formatter", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        if isinstance(value, str):
            return shlex.split(value)
        return value

    def to_config(self) -> WrapConfig:
        return WrapConfig(max_width=self.max_width, tab_width=self.tab_width, indent=self.indent)
