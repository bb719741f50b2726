"""Shared helpers."""

from scriptcontinuity.utils.lenient_json import parse_lenient
from scriptcontinuity.utils.merge import merge_by_key

__all__ = ["merge_by_key", "parse_lenient"]
