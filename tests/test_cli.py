"""Tests for CLI commands."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from nutritrack.cli import app

runner = CliRunner()


class TestMainCommands:
    """Tests for main CLI commands."""

    def test_help(self):
        """Test that --help works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "entitlement" in result.output.lower()

    def test_bmi_requires_args(self):
        """Test that bmi requires weight and height."""
        result = runner.invoke(app, ["bmi"])
        assert result.exit_code != 0

    def test_bmi_json(self):
        """Test BMI JSON output."""
        result = runner.invoke(app, ["bmi", "--weight", "70", "--height", "175", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["data"]["bmi"] == 22.9
        assert data["data"]["category"] == "normal"

    def test_bmi_rejects_negative_weight(self):
        """Test that invalid input exits with an error envelope."""
        result = runner.invoke(app, ["bmi", "--weight=-5", "--height", "170", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert data["errors"]

    def test_bmi_out_of_range(self):
        """Overflowing inputs give an error envelope, not a traceback."""
        result = runner.invoke(app, ["bmi", "--weight", "70", "--height", "1e200", "--json"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert json.loads(result.stdout)["success"] is False

    def test_bmi_table(self):
        """Test BMI human output."""
        result = runner.invoke(app, ["bmi", "--weight", "70", "--height", "175"])
        assert result.exit_code == 0
        assert "22.9" in result.output

    def test_metrics_json(self):
        """Test full metrics JSON output."""
        result = runner.invoke(
            app,
            [
                "metrics",
                "--weight", "70",
                "--height", "175",
                "--age", "30",
                "--sex", "male",
                "--activity", "moderate",
                "--json",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["metabolism"]["bmr"] == 1649
        assert data["metabolism"]["tdee"] == 2556
        assert data["macros"]["grams"] == {"proteins": 192, "carbs": 256, "fats": 85}

    def test_metrics_default_activity(self):
        """Test that activity defaults to the configured level."""
        result = runner.invoke(
            app,
            ["metrics", "--weight", "70", "--height", "175", "--age", "30", "--sex", "female", "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["profile"]["activity_level"] == "moderate"
        assert data["metabolism"]["bmr"] == 1483

    def test_metrics_rejects_unknown_sex(self):
        """Test that an unknown sex is an error."""
        result = runner.invoke(
            app,
            ["metrics", "--weight", "70", "--height", "175", "--age", "30", "--sex", "x"],
        )
        assert result.exit_code == 1


class TestEntitlementCommands:
    """Tests for entitlement subcommands."""

    def test_entitlement_help(self):
        """Test that entitlement --help works."""
        result = runner.invoke(app, ["entitlement", "--help"])
        assert result.exit_code == 0
        assert "status" in result.output.lower()

    def test_status_during_trial(self, tmp_path):
        """Test status four days into the trial."""
        record = tmp_path / "user.yaml"
        result = runner.invoke(
            app, ["entitlement", "start-trial", str(record), "--now", "2026-03-01T00:00:00Z"]
        )
        assert result.exit_code == 0
        assert record.exists()

        result = runner.invoke(
            app,
            ["entitlement", "status", str(record), "--now", "2026-03-05T00:00:00Z", "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["state"] == "trial"
        assert data["can_access"] is True
        assert data["trial_days_left"] == 1
        assert data["notice"]["kind"] == "trial_expiring"
        assert data["grace_days_left"] == 0

    def test_status_after_trial(self, tmp_path):
        """Test status once the trial has lapsed."""
        record = tmp_path / "user.yaml"
        runner.invoke(app, ["entitlement", "start-trial", str(record), "--now", "2026-03-01T00:00:00Z"])

        result = runner.invoke(
            app,
            ["entitlement", "status", str(record), "--now", "2026-03-07T00:00:00Z", "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["state"] == "expired"
        assert data["can_access"] is False
        assert data["grace_days_left"] == 6

    def test_status_rejects_future_trial_start(self, tmp_path):
        """Test that clock-inconsistent records are reported."""
        record = tmp_path / "user.yaml"
        runner.invoke(app, ["entitlement", "start-trial", str(record), "--now", "2026-03-01T00:00:00Z"])

        result = runner.invoke(
            app,
            ["entitlement", "status", str(record), "--now", "2026-02-01T00:00:00Z", "--json"],
        )
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_check_activate_cancel(self, tmp_path):
        """Test the gate across payment and cancellation."""
        record = tmp_path / "user.yaml"
        runner.invoke(app, ["entitlement", "start-trial", str(record), "--now", "2026-03-01T00:00:00Z"])
        later = "2026-03-10T00:00:00Z"

        result = runner.invoke(app, ["entitlement", "check", str(record), "bmi-calculator", "--now", later])
        assert result.exit_code == 1

        result = runner.invoke(
            app, ["entitlement", "activate", str(record), "--plan", "premium_yearly", "--now", later]
        )
        assert result.exit_code == 0

        result = runner.invoke(
            app,
            ["entitlement", "check", str(record), "bmi-calculator", "--now", later, "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["granted"] is True
        assert data["reason"] == "premium"

        result = runner.invoke(app, ["entitlement", "cancel", str(record)])
        assert result.exit_code == 0

        result = runner.invoke(app, ["entitlement", "check", str(record), "bmi-calculator", "--now", later])
        assert result.exit_code == 1

    def test_activate_rejects_unknown_plan(self, tmp_path):
        """Test that only paid plans can be activated."""
        record = tmp_path / "user.yaml"
        runner.invoke(app, ["entitlement", "start-trial", str(record), "--now", "2026-03-01T00:00:00Z"])

        result = runner.invoke(app, ["entitlement", "activate", str(record), "--plan", "platinum"])
        assert result.exit_code == 1

        result = runner.invoke(app, ["entitlement", "activate", str(record), "--plan", "trial"])
        assert result.exit_code == 1

    def test_start_trial_refuses_overwrite(self, tmp_path):
        """Test that an existing record is not replaced."""
        record = tmp_path / "user.yaml"
        record.write_text("trial_start: 2026-01-01T00:00:00Z\n")
        result = runner.invoke(app, ["entitlement", "start-trial", str(record)])
        assert result.exit_code == 1

    def test_status_naive_record(self, tmp_path):
        """Naive record timestamps are read as UTC, like --now."""
        record = tmp_path / "user.yaml"
        record.write_text("trial_start: 2026-03-08T00:00:00\n")

        for now in ("2026-03-10T00:00:00", "2026-03-10T00:00:00Z"):
            result = runner.invoke(
                app, ["entitlement", "status", str(record), "--now", now, "--json"]
            )
            assert result.exit_code == 0
            data = json.loads(result.stdout)["data"]
            assert data["state"] == "trial"
            assert data["trial_days_left"] == 3

    def test_check_naive_record(self, tmp_path):
        """The gate accepts naive record files too."""
        record = tmp_path / "user.yaml"
        record.write_text("trial_start: 2026-03-08T00:00:00\n")
        result = runner.invoke(
            app,
            ["entitlement", "check", str(record), "bmi-calculator", "--now", "2026-03-10T00:00:00"],
        )
        assert result.exit_code == 0

    def test_status_malformed_yaml(self, tmp_path):
        """Unparseable record files give an error envelope."""
        record = tmp_path / "user.yaml"
        record.write_text("trial_start: [unclosed\n")
        result = runner.invoke(app, ["entitlement", "status", str(record), "--json"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert json.loads(result.stdout)["success"] is False

    def test_status_nan_trial_days(self, tmp_path):
        """A non-finite trial length is reported, not raised."""
        record = tmp_path / "user.yaml"
        record.write_text("trial_start: 2026-03-01T00:00:00Z\ntrial_days: .nan\n")
        result = runner.invoke(
            app,
            ["entitlement", "status", str(record), "--now", "2026-03-02T00:00:00Z", "--json"],
        )
        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_cancel_malformed_yaml(self, tmp_path):
        """Write commands report malformed files too."""
        record = tmp_path / "user.yaml"
        record.write_text("trial_start: [unclosed\n")
        result = runner.invoke(app, ["entitlement", "cancel", str(record)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
