import json

import pytest
import yaml

from identity_sync.config import Config, ConfigValidationError, ResourceConfig
from identity_sync.data import Change, ResourceData
from identity_sync.state import ResourceState, State, StateError, StateManager, StateNotFoundError
from identity_sync.utils.errors import ConfigurationError, ErrorCategory

VALID = """
version: "1"
resources:
  - type: connection
    name: users-db
    attributes:
      name: users-db
      strategy: auth0
  - type: role
    name: admin
    attributes:
      name: admin
      description: Administrators
  - type: organization_connection
    name: acme-users
    attributes:
      organization_id: org_1
      connection_id: con_1
    depends_on:
      - connection.users-db
"""


def write(tmp_path, text):
    path = tmp_path / "identity-sync.yaml"
    path.write_text(text)
    return str(path)


class TestConfig:

    def test_load_valid_config(self, tmp_path):
        config = Config(write(tmp_path, VALID)).load()

        assert [resource.address for resource in config.resources] == [
            "connection.users-db",
            "role.admin",
            "organization_connection.acme-users",
        ]
        assert config.get_resource("role", "admin").attributes["description"] == "Administrators"
        assert config.get_resource("role", "missing") is None
        assert config.to_dict()["resources"][2]["depends_on"] == ["connection.users-db"]

    def test_every_broken_resource_is_reported(self, tmp_path):
        text = """
resources:
  - type: widget
    name: a
  - type: connection
    name: b
    attributes:
      strategy: myspace
  - type: role
    name: ""
"""
        with pytest.raises(ConfigValidationError) as exc_info:
            Config(write(tmp_path, text)).load()

        message = str(exc_info.value)
        assert "3 error(s)" in message
        assert "Unknown resource type 'widget'" in message
        assert "Unknown connection strategy 'myspace'" in message
        assert "resources -> 2 -> name" in message

    def test_duplicates_and_unknown_dependencies(self, tmp_path):
        text = """
resources:
  - type: role
    name: admin
  - type: role
    name: admin
"""
        with pytest.raises(ConfigValidationError, match="Duplicate resource names: role.admin"):
            Config(write(tmp_path, text)).load()

        text = """
resources:
  - type: role
    name: admin
    depends_on: [resource_server.api]
"""
        with pytest.raises(ConfigValidationError, match="depends on unknown resource 'resource_server.api'"):
            Config(write(tmp_path, text)).load()

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Failed to parse YAML") as exc_info:
            Config(write(tmp_path, "resources: [unclosed")).load()

        error = exc_info.value
        assert isinstance(error, ConfigurationError)
        assert error.category == ErrorCategory.CONFIGURATION
        assert isinstance(error.cause, yaml.YAMLError)
        assert "Check the YAML syntax" in error.to_user_message()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config(str(tmp_path / "missing.yaml")).load()

    def test_empty_file_is_an_empty_config(self, tmp_path):
        assert Config(write(tmp_path, "")).load().resources == []


def role(name="admin", **attributes):
    return ResourceConfig(type="role", name=name, attributes=dict(attributes, name=name))


class TestState:

    def test_untracked_resource_is_new(self):
        d = State().resource_data_for(role(description="Administrators"))

        assert d.is_new_resource()
        assert d.id is None
        assert d.root.resource_type == "role"
        assert d.get("description") == "Administrators"

    def test_configured_id_is_adopted(self):
        config = ResourceConfig(type="role", name="admin", id="rol_existing", attributes={"name": "admin"})

        d = State().resource_data_for(config)

        assert not d.is_new_resource()
        assert d.id == "rol_existing"
        assert d.has_change("name")

    def test_tracked_resource_diffs_against_observed(self):
        state = State()
        state.add_resource(ResourceState(
            type="role", name="admin", id="rol_1", attributes={"name": "admin", "description": "Old"}
        ))

        d = state.resource_data_for(role(description="New"))

        assert d.id == "rol_1"
        assert d.has_change("description")
        assert not d.has_change("name")

    def test_record_stores_observed_and_drops_cleared(self):
        state = State()
        d = ResourceData(Change(new={"name": "admin"}), resource_id="rol_1", resource_type="role")
        d.set_fields({"name": "admin", "description": "Administrators"})

        state.record("role", "admin", d, ["resource_server.api"])

        stored = state.get_resource("role.admin")
        assert stored.id == "rol_1"
        assert stored.attributes == {"name": "admin", "description": "Administrators"}
        assert stored.dependencies == ["resource_server.api"]

        d.clear_id()
        state.record("role", "admin", d)
        assert state.get_resource("role.admin") is None

    def test_orphans_and_their_removal_data(self):
        state = State()
        state.add_resource(ResourceState(type="role", name="admin", id="rol_1", attributes={"name": "admin"}))
        state.add_resource(ResourceState(type="user", name="jane", id="auth0|1", attributes={"email": "j@x.com"}))

        orphans = state.orphaned([role()])

        assert [orphan.address for orphan in orphans] == ["user.jane"]
        d = state.removal_data_for(orphans[0])
        assert d.id == "auth0|1"
        assert d.root.resource_type == "user"
        assert d.get_change("email") == ("j@x.com", None)


class TestStateManager:

    def test_round_trip(self, tmp_path):
        manager = StateManager(str(tmp_path / ".identity-sync" / "state.json"))
        state = State()
        state.add_resource(ResourceState(
            type="connection",
            name="users-db",
            id="con_1",
            attributes={"options": {"password_policy": "good"}, "enabled_clients": ["client_1"]},
        ))

        manager.save(state)
        loaded = StateManager(str(manager.state_path)).load()

        assert loaded.get_resource("connection.users-db") == state.get_resource("connection.users-db")
        assert loaded.timestamp == state.timestamp
        assert not manager.state_path.with_suffix(".tmp").exists()

    def test_missing_state(self, tmp_path):
        manager = StateManager(str(tmp_path / "state.json"))

        with pytest.raises(StateNotFoundError):
            manager.load()

        assert manager.load_or_empty().resources == {}
        assert not manager.exists()

    def test_corrupted_state(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")

        with pytest.raises(StateError, match="Failed to parse state file"):
            StateManager(str(path)).load()

        path.write_text(json.dumps({"resources": {"role.admin": {"name": "admin"}}}))

        with pytest.raises(StateError, match="Invalid state file"):
            StateManager(str(path)).load()

    def test_initialize_writes_empty_state(self, tmp_path):
        manager = StateManager(str(tmp_path / "state.json"))

        state = manager.initialize()

        assert manager.exists()
        assert manager.current is state
        assert json.loads(manager.state_path.read_text())["resources"] == {}
