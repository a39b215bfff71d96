import json

import pytest
from click.testing import CliRunner

from identity_sync.cli.main import cli
from identity_sync.state import ResourceState, State, StateManager
from identity_sync.utils.errors import ErrorContext, ValidationConflict

CONFIG = """
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
      description: New description
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch, restore_logging):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "identity-sync.yaml").write_text(CONFIG)

    state = State()
    state.add_resource(ResourceState(
        type="role", name="admin", id="rol_1", attributes={"name": "admin", "description": "Old description"}
    ))
    state.add_resource(ResourceState(
        type="user", name="jane", id="auth0|jane", attributes={"email": "jane@example.com"}
    ))
    StateManager(".identity-sync/state.json").save(state)
    return tmp_path


def test_validate(workspace):
    result = CliRunner().invoke(cli, ["validate"])

    assert result.exit_code == 0, result.output
    assert "Configuration is valid" in result.output
    assert "(2 resources)" in result.output
    assert (workspace / ".identity-sync" / "logs").is_dir()


def test_validate_reports_errors(workspace):
    (workspace / "broken.yaml").write_text("resources:\n  - type: widget\n    name: a\n")

    result = CliRunner().invoke(cli, ["validate", "--config", "broken.yaml"])

    assert result.exit_code == 1
    assert "Configuration validation failed" in result.output
    assert "Unknown resource type 'widget'" in result.output


def test_missing_config(workspace):
    result = CliRunner().invoke(cli, ["plan", "--config", "missing.yaml"])

    assert result.exit_code == 1
    assert "Configuration file not found" in result.output


def test_plan(workspace):
    result = CliRunner().invoke(cli, ["plan"])

    assert result.exit_code == 0, result.output
    assert "connection.users-db" in result.output
    assert "user.jane" in result.output
    assert "Plan: 1 to add, 1 to change, 1 to destroy." in result.output


def test_plan_json(workspace):
    result = CliRunner().invoke(cli, ["plan", "--json-output"])

    assert result.exit_code == 0, result.output
    output = json.loads(result.output)
    assert output["summary"] == {"add": 1, "change": 1, "destroy": 1}
    changes = {resource["address"]: resource for resource in output["resources"]}
    assert changes["connection.users-db"]["change"] == "create"
    assert changes["role.admin"]["change"] == "update"
    assert changes["role.admin"]["changed_fields"] == ["description"]
    assert changes["role.admin"]["id"] == "rol_1"
    assert changes["user.jane"]["change"] == "delete"


def test_plan_with_corrupted_state(workspace):
    (workspace / ".identity-sync" / "state.json").write_text("{")

    result = CliRunner().invoke(cli, ["plan"])

    assert result.exit_code == 1
    assert "Error loading state" in result.output


def test_plan_failure_is_logged_with_details(workspace, monkeypatch):
    def fail(config, state):
        raise ValidationConflict(
            "password and email cannot change together",
            context=ErrorContext(resource_type="user", resource_id="auth0|jane", operation='plan'),
        )

    monkeypatch.setattr("identity_sync.cli.main.build_plans", fail)

    result = CliRunner().invoke(cli, ["plan"])

    assert result.exit_code == 1
    assert "ERROR: password and email cannot change together" in result.output
    assert "Resource: user.auth0|jane" in result.output
    log_file = next((workspace / ".identity-sync" / "logs").glob("*.jsonl"))
    records = [json.loads(line) for line in log_file.read_text().splitlines()]
    details = [record["message"] for record in records if record["message"].startswith("Error details")]
    assert len(details) == 1
    assert "'category': 'validation'" in details[0]


def test_invalid_yaml_is_a_configuration_error(workspace):
    (workspace / "broken.yaml").write_text("resources: [unclosed")

    result = CliRunner().invoke(cli, ["validate", "--config", "broken.yaml"])

    assert result.exit_code == 1
    assert "Failed to parse YAML" in result.output
