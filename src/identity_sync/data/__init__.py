"""Configuration tree access, coercion, change gating and set differences."""

from .tree import ABSENT, UNKNOWN, Change, ResourceData, is_known, lookup
from .conditions import Condition, any_of, has_change, is_new_resource, not_
from .values import (
    get_bool,
    get_float,
    get_int,
    get_json,
    get_string,
    get_string_list,
    get_string_map,
    parse_json_object,
)
from .difference import Difference, apply_difference, difference, set_difference

__all__ = [
    "ABSENT",
    "UNKNOWN",
    "Change",
    "ResourceData",
    "is_known",
    "lookup",
    "Condition",
    "any_of",
    "has_change",
    "is_new_resource",
    "not_",
    "get_bool",
    "get_float",
    "get_int",
    "get_json",
    "get_string",
    "get_string_list",
    "get_string_map",
    "parse_json_object",
    "Difference",
    "apply_difference",
    "difference",
    "set_difference",
]
