# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Prefixer configuration model.

Typically built from settings or passed straight to the middleware:

    app.add_middleware(
        AutoprefixerMiddleware,
        browsers=["Chrome > 30", "Firefox >= 20"],
        cascade=False,
    )

Invalid config is rejected at load time, never at request time.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from .browsers import parse_query


class PrefixerConfig(BaseModel):
    """Which browsers to target and how prefixed declarations are written."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    browsers: tuple[str, ...] = ("defaults",)
    cascade: bool = True  # Right-align prefixed copies on multi-line rules
    remove: bool = True  # Drop prefixes no selected browser needs

    @field_validator("browsers", mode="before")
    @classmethod
    def split_queries(cls, v: Any) -> tuple[str, ...]:
        if isinstance(v, str):
            v = v.split(",")
        queries = tuple(q.strip() for q in v if isinstance(q, str) and q.strip())
        if not queries:
            raise ValueError("browsers must contain at least one query")
        return queries

    @field_validator("browsers")
    @classmethod
    def queries_known(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for query in v:
            parse_query(query)
        return v
