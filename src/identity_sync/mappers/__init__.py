"""Conversions between configuration trees and typed API payloads."""

from .connection import expand_connection, flatten_connection
from .connection_options import (
    EXPANDERS,
    STRATEGY_OPTIONS,
    expand_connection_options,
    expand_scopes,
    flatten_connection_options,
    flattened_types,
    parse_strategy,
)
from .tenant import expand_tenant, flatten_tenant

__all__ = [
    "expand_connection",
    "flatten_connection",
    "EXPANDERS",
    "STRATEGY_OPTIONS",
    "expand_connection_options",
    "expand_scopes",
    "flatten_connection_options",
    "flattened_types",
    "parse_strategy",
    "expand_tenant",
    "flatten_tenant",
]
