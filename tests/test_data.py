import pytest

from identity_sync.data import (
    ABSENT,
    UNKNOWN,
    Change,
    ResourceData,
    any_of,
    apply_difference,
    get_bool,
    get_float,
    get_int,
    get_json,
    get_string,
    get_string_list,
    get_string_map,
    has_change,
    is_new_resource,
    lookup,
    not_,
    set_difference,
)
from identity_sync.data.difference import difference
from identity_sync.utils.errors import AggregateError, AttributeSetError, ValidationConflict


def test_lookup_treats_single_dict_as_first_block():
    tree = {"options": {"validation": {"username": {"min": 3}}}}

    assert lookup(tree, ["options", "0", "validation", "0", "username", "0", "min"]) == 3
    assert lookup(tree, ["options", "1"]) is ABSENT
    assert lookup(tree, ["missing", "key"]) is ABSENT


def test_lookup_stops_at_unknown():
    tree = {"options": UNKNOWN}

    assert lookup(tree, ["options", "0", "client_id"]) is UNKNOWN


def test_get_ok_distinguishes_unset_values():
    d = ResourceData.for_create({"name": "", "secret": None, "pending": UNKNOWN})

    assert d.get_ok("name") == ("", True)
    assert d.get_ok("secret") == (None, False)
    assert d.get_ok("missing") == (None, False)
    assert d.get_ok("pending")[1] is False


def test_has_change_compares_old_and_new():
    d = ResourceData(Change(old={"name": "a", "tags": ["x"]}, new={"name": "a", "tags": ["x", "y"]}))

    assert not d.has_change("name")
    assert d.has_change("tags")
    assert d.has_change("added") is False
    assert d.get_change("tags") == (["x"], ["x", "y"])


def test_elements_scope_change_detection_to_each_block():
    d = ResourceData(Change(
        old={"pages": [{"html": "a"}, {"html": "b"}]},
        new={"pages": [{"html": "a"}, {"html": "c"}]},
    ))

    blocks = list(d.elements("pages"))

    assert [block.get("html") for block in blocks] == ["a", "c"]
    assert [block.has_change("html") for block in blocks] == [False, True]


def test_block_is_readable_when_absent():
    d = ResourceData.for_create({})

    assert d.block("options").get("client_id") is None
    assert list(d.elements("options")) == []


def test_set_copies_value_into_observed():
    d = ResourceData.for_create({}, "role")
    value = {"colors": {"primary": "#fff"}}

    d.set("branding", value)
    value["colors"]["primary"] = "#000"

    assert d.observed["branding"] == {"colors": {"primary": "#fff"}}


def test_set_leaves_out_null_block_members():
    d = ResourceData.for_create({}, "connection")

    d.set("options", {"client_id": "cid", "client_secret": None, "totp": {"length": 6, "time_step": None}})
    d.set("display_name", None)

    assert d.observed["options"] == {"client_id": "cid", "totp": {"length": 6}}
    assert "display_name" in d.observed
    assert d.observed["display_name"] is None


def test_set_fields_reports_every_failure():
    d = ResourceData(Change(), resource_id="rol_1", resource_type="role")

    with pytest.raises(AggregateError) as exc_info:
        d.set_fields({"name": "ok", "bad": object(), "worse": {1: "x"}})

    assert len(exc_info.value) == 2
    assert all(isinstance(error, AttributeSetError) for error in exc_info.value)
    assert d.observed == {"name": "ok"}


def test_id_lifecycle():
    d = ResourceData.for_create({"name": "x"})
    assert d.is_new_resource()

    d.set_id("con_1")
    d.mark_created()
    assert d.id == "con_1"
    assert not d.is_new_resource()

    d.set_id("")
    assert d.id is None


def test_coercion_helpers():
    d = ResourceData.for_create({
        "name": "acme",
        "count": "5",
        "ratio": 1,
        "enabled": "True",
        "disabled": False,
        "zero": 0,
        "urls": ["a", None, "b"],
        "single": "only",
        "labels": {"team": "core", "size": 3, "empty": None},
        "not_a_map": ["x"],
    })

    assert get_string(d, "name") == "acme"
    assert get_int(d, "count") == 5
    assert get_float(d, "ratio") == 1.0
    assert get_bool(d, "enabled") is True
    assert get_bool(d, "disabled") is False
    assert get_int(d, "zero") == 0
    assert get_string_list(d, "urls") == ["a", "b"]
    assert get_string_list(d, "single") == ["only"]
    assert get_string_map(d, "labels") == {"team": "core", "size": "3"}
    assert get_string_map(d, "not_a_map") is None
    assert get_string(d, "missing") is None


def test_malformed_scalars_are_validation_conflicts():
    d = ResourceData.for_create({"enabled": "yes", "flag": 1, "count": "abc", "ratio": "fast", "lifetime": [1]})

    with pytest.raises(ValidationConflict, match="enabled must be a boolean, got 'yes'"):
        get_bool(d, "enabled")
    with pytest.raises(ValidationConflict, match="flag must be a boolean"):
        get_bool(d, "flag")
    with pytest.raises(ValidationConflict, match="count must be a number, got 'abc'") as exc_info:
        get_int(d, "count")
    assert isinstance(exc_info.value.cause, ValueError)
    with pytest.raises(ValidationConflict, match="ratio must be a number"):
        get_float(d, "ratio")
    with pytest.raises(ValidationConflict, match="lifetime must be a number"):
        get_int(d, "lifetime")
    assert get_bool(ResourceData.for_create({"enabled": " FALSE "}), "enabled") is False


def test_difference_leaves_unmanaged_collections_alone():
    observed = {"roles": ["r1", "r2"]}

    assert difference(ResourceData(Change(old=observed, new={})), "roles").is_empty()
    assert difference(ResourceData(Change(old=observed, new={"roles": None})), "roles").is_empty()
    assert difference(ResourceData(Change(old=observed, new={"roles": UNKNOWN})), "roles").is_empty()

    cleared = difference(ResourceData(Change(old=observed, new={"roles": []})), "roles")
    assert cleared.to_remove == ["r1", "r2"]


def test_conditions_gate_values():
    d = ResourceData(Change(old={"name": "a", "secret": "s"}, new={"name": "b", "secret": "s"}), resource_id="x")

    assert get_string(d, "name", has_change()) == "b"
    assert get_string(d, "secret", has_change()) is None
    assert get_string(d, "secret", is_new_resource()) is None
    assert get_string(d, "secret", not_(is_new_resource())) == "s"
    # Conditions are ANDed
    assert get_string(d, "name", has_change(), is_new_resource()) is None
    assert get_string(d, "name", any_of(is_new_resource(), has_change())) == "b"


def test_get_json_accepts_dicts_and_strings():
    d = ResourceData.for_create({
        "as_dict": {"a": 1},
        "as_string": '{"b": 2}',
        "blank": "  ",
        "broken": "{nope",
        "array": "[1, 2]",
    })

    assert get_json(d, "as_dict") == {"a": 1}
    assert get_json(d, "as_string") == {"b": 2}
    assert get_json(d, "blank") == {}
    with pytest.raises(ValidationConflict, match="not valid JSON"):
        get_json(d, "broken")
    with pytest.raises(ValidationConflict, match="must be a JSON object"):
        get_json(d, "array")


def test_set_difference_with_compound_key():
    old = [
        {"name": "read", "api": "a"},
        {"name": "write", "api": "a"},
        {"name": "read", "api": "b", "description": "old"},
    ]
    new = [
        {"name": "read", "api": "a"},
        {"name": "read", "api": "b", "description": "new"},
        {"name": "admin", "api": "a"},
    ]

    diff = set_difference(old, new, ("name", "api"))

    assert diff.to_add == [{"name": "admin", "api": "a"}]
    assert diff.to_remove == [{"name": "write", "api": "a"}]
    assert diff.modified == [{"name": "read", "api": "b", "description": "new"}]
    assert len(diff.retained) == 2


def test_set_difference_of_scalars_ignores_order_and_duplicates():
    diff = set_difference(["b", "a", "a"], ["a", "c", None])

    assert diff.to_add == ["c"]
    assert diff.to_remove == ["b"]
    assert diff.retained == ["a"]
    assert not diff.is_empty()
    assert set_difference(None, []).is_empty()


def test_difference_reads_the_change_at_a_path():
    d = ResourceData(Change(old={"roles": ["r1", "r2"]}, new={"roles": ["r2", "r3"]}))

    diff = difference(d, "roles")

    assert diff.to_add == ["r3"]
    assert diff.to_remove == ["r1"]


def test_apply_difference_keeps_unrelated_members():
    remote = [
        {"value": "read", "description": "Read"},
        {"value": "managed_elsewhere", "description": "Other tool"},
        {"value": "stale", "description": "Stale"},
    ]
    diff = set_difference(
        [{"value": "read", "description": "Read"}, {"value": "stale", "description": "Stale"}],
        [{"value": "read", "description": "Read all"}, {"value": "write", "description": "Write"}],
        "value",
    )

    result = apply_difference(remote, diff, "value")

    assert result == [
        {"value": "read", "description": "Read all"},
        {"value": "managed_elsewhere", "description": "Other tool"},
        {"value": "write", "description": "Write"},
    ]


@pytest.mark.parametrize("old, new", [
    (["openid", "profile"], ["openid", "email"]),
    ([], ["a", "b"]),
    (["a", "b"], []),
    (["x"], ["x"]),
])
def test_applying_a_difference_to_old_yields_new(old, new):
    diff = set_difference(old, new)

    result = [item for item in old if item not in diff.to_remove] + diff.to_add

    assert sorted(result) == sorted(new)
    assert not set(diff.to_add) & set(diff.to_remove)
    assert set_difference(new, new).is_empty()
