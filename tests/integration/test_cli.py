"""
Integration tests for the cookplan command line.
"""

import json

import pytest
from click.testing import CliRunner

from cookplan import __version__
from cookplan.cli.main import cli

UBUNTU = ["--platform", "ubuntu", "--platform-version", "12.04"]
OMNIOS = ["--platform", "omnios", "--platform-version", "r151006"]


@pytest.fixture
def runner():
    return CliRunner()


class TestPlanCommand:
    """Tests for `cookplan plan`."""

    def test_plan(self, runner):
        """Test the human readable plan."""
        result = runner.invoke(cli, ["plan", *UBUNTU])

        assert result.exit_code == 0, result.output
        assert "Planning rsyslog::default for ubuntu 12.04 (debian)" in result.stdout
        assert "template:/etc/rsyslog.conf" in result.stdout
        assert "Stages:" in result.stdout
        assert "Plan: 6 resources, 2 notifications" in result.stdout

    def test_plan_json(self, runner):
        """Test the JSON plan."""
        result = runner.invoke(cli, ["plan", *OMNIOS, "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["resources"][-1]["id"] == "svc:system/rsyslogd"
        assert data["dependencies"]["exec:import rsyslog manifest"] == [
            "template:/var/svc/manifest/system/rsyslogd.xml",
        ]

    def test_changed(self, runner):
        """Test listing what fires when a resource changes."""
        result = runner.invoke(cli, [
            "plan", *OMNIOS, "--changed", "template:/var/svc/manifest/system/rsyslogd.xml",
        ])

        assert result.exit_code == 0, result.output
        assert "run exec:import rsyslog manifest" in result.stdout
        assert "restart svc:system/rsyslogd" in result.stdout

    def test_changed_unknown_resource(self, runner):
        """Test that unknown resource ids are reported."""
        result = runner.invoke(cli, ["plan", *UBUNTU, "--changed", "svc:nope"])

        assert result.exit_code == 1
        assert "Unknown resources: svc:nope" in result.output

    def test_set_override(self, runner):
        """Test attribute overrides from the command line."""
        result = runner.invoke(cli, ["plan", *UBUNTU, "--set", "rsyslog.use_relp=true"])

        assert result.exit_code == 0, result.output
        assert "pkg:rsyslog-relp" in result.stdout

    def test_bad_setting(self, runner):
        """Test that malformed overrides are a usage error."""
        result = runner.invoke(cli, ["plan", *UBUNTU, "--set", "use_relp"])

        assert result.exit_code == 2

    def test_configuration_error(self, runner):
        """Test that contradictory attributes exit with status 1."""
        result = runner.invoke(cli, [
            "plan", *UBUNTU,
            "--set", "rsyslog.enable_tls=true",
            "--set", "rsyslog.tls_ca_file=/etc/ssl/ca.pem",
            "--set", "rsyslog.protocol=udp",
        ])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "enable_tls" in result.output

    def test_unknown_platform(self, runner):
        """Test that families without a profile exit with status 1."""
        result = runner.invoke(cli, ["plan", "--platform", "plan9", "--platform-version", "4"])

        assert result.exit_code == 1
        assert "plan9" in result.output

    def test_attributes_file(self, runner, tmp_path):
        """Test reading node attributes from JSON."""
        node = tmp_path / "node.json"
        node.write_text(json.dumps({
            "platform": {"name": "smartos", "version": "joyent_20130111T180733Z"},
            "rsyslog": {"max_message_size": "64k"},
        }))

        result = runner.invoke(cli, ["plan", "--attributes", str(node)])

        assert result.exit_code == 0, result.output
        assert "template:/opt/local/etc/rsyslog.conf" in result.stdout

    def test_invalid_attributes_file(self, runner, tmp_path):
        """Test that a non-object JSON file is rejected."""
        node = tmp_path / "node.json"
        node.write_text("[1, 2, 3]")

        result = runner.invoke(cli, ["plan", "--attributes", str(node)])

        assert result.exit_code == 1

    def test_platform_not_an_object(self, runner, tmp_path):
        """Test that a platform given as a plain string is rejected."""
        node = tmp_path / "node.json"
        node.write_text(json.dumps({"platform": "ubuntu"}))

        result = runner.invoke(cli, ["plan", "--attributes", str(node)])

        assert result.exit_code == 1
        assert "'platform' must be an object" in result.output

    def test_elasticsearch_run_list(self, runner):
        """Test an explicit run list."""
        result = runner.invoke(cli, ["plan", *UBUNTU, "--recipe", "elasticsearch::restart"])

        assert result.exit_code == 0, result.output
        assert "Plan: 2 resources, 1 notifications" in result.stdout


class TestConvergeCommand:
    """Tests for `cookplan converge`."""

    def test_converge_fresh(self, runner):
        """Test a dry-run converge of a fresh node."""
        result = runner.invoke(cli, ["converge", *UBUNTU])

        assert result.exit_code == 0, result.output
        assert "6 to change, 1 notifications" in result.stdout

    def test_converge_observed(self, runner, tmp_path):
        """Test that a converged node needs no changes."""
        plan_result = runner.invoke(cli, ["plan", *UBUNTU, "--json"])
        resources = json.loads(plan_result.stdout)["resources"]

        observed = {}
        for resource in resources:
            state = {"exists": True}
            for key in ("type", "owner", "group", "content", "running", "enabled"):
                if key in resource:
                    state[key] = resource[key]
            if resource.get("mode"):
                state["mode"] = int(resource["mode"], 8)
            if resource["type"] == "directory":
                state["type"] = "directory"
            elif resource["type"] == "template":
                state["type"] = "file"
            observed[resource["id"]] = state

        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps(observed))

        result = runner.invoke(cli, ["converge", *UBUNTU, "--observed", str(state_file)])

        assert result.exit_code == 0, result.output
        assert "No changes needed." in result.stdout


class TestInfoCommands:
    """Tests for listing commands."""

    def test_recipes(self, runner):
        """Test listing recipes."""
        result = runner.invoke(cli, ["recipes"])

        assert result.exit_code == 0
        for name in ("rsyslog::default", "elasticsearch::curl", "elasticsearch::restart"):
            assert name in result.stdout

    def test_version(self, runner):
        """Test the version command."""
        result = runner.invoke(cli, ["version"])

        assert result.output.strip() == f"cookplan version {__version__}"
