"""Targeting encodings and the list-query compiler."""

from __future__ import annotations

from ad_targeting.targeting.compiler import CompiledQuery, ListFilter, compile_list_query
from ad_targeting.targeting.encoder import (
    ALL_PLATFORMS,
    Gender,
    Platform,
    decode_platforms,
    encode_gender,
    encode_platforms,
    is_recognized_platform,
    platform_mask,
)

__all__ = [
    "ALL_PLATFORMS",
    "CompiledQuery",
    "Gender",
    "ListFilter",
    "Platform",
    "compile_list_query",
    "decode_platforms",
    "encode_gender",
    "encode_platforms",
    "is_recognized_platform",
    "platform_mask",
]
