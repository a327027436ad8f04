"""Tree index settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EncodingName = Literal["classic", "dyadic"]


class TreeIndexSettings(BaseSettings):
    """Nested-set index configuration.

    Environment variables use TREE_ prefix.
    Example: TREE_ENCODING=dyadic, TREE_DYADIC_MAX_DENOMINATOR_BITS=31
    """

    encoding: EncodingName = Field(
        default="classic",
        description="Interval encoding used by build_tree_index().",
    )

    # Numerators and denominators live in BIGINT columns and are compared by
    # cross-multiplication, so a product of two of them must fit in 63 bits.
    dyadic_max_denominator_bits: int = Field(
        default=31,
        ge=1,
        le=31,
        description=(
            "Dyadic denominators may not exceed 2**bits. Each sibling and "
            "each level below the root costs one bit."
        ),
    )

    lock_tree_rows: bool = Field(
        default=True,
        description=(
            "Take SELECT ... FOR UPDATE on the tree root inside every mutation. "
            "Serializes writers across processes; SQLite ignores it."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )
