"""
Tests for soar_config.py configuration handling
"""
import pytest
from pathlib import Path
from soar_config import Config, ConfigParser, PilotSettings


class Args:
    """Bare command line arguments"""

    def __init__(self, **kwargs):
        self.config = None
        self.start_time = None
        self.timezone = None
        self.output = None
        for key, value in kwargs.items():
            setattr(self, key, value)


class TestConfigParser:
    """Tests for ConfigParser"""

    def test_find_explicit_file(self, sample_config_file):
        assert ConfigParser().find_config_file(str(sample_config_file)) == str(sample_config_file)

    def test_find_in_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / "quicksoar.ini").write_text("[Defaults]\n")
        monkeypatch.chdir(tmp_path)
        found = ConfigParser().find_config_file(None)
        assert Path(found).name == "quicksoar.ini"

    def test_load_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        parser = ConfigParser()
        assert not parser.load_config_file("/nonexistent/quicksoar.conf")

    def test_sections(self, sample_config_file):
        parser = ConfigParser()
        assert parser.load_config_file(str(sample_config_file))
        assert parser.get_sections() == ["Defaults", "JG", "XY"]
        assert parser.get_section("Nope") == {}

    def test_default_settings(self, sample_config_file):
        parser = ConfigParser()
        parser.load_config_file(str(sample_config_file))
        defaults = parser.get_default_settings()
        assert defaults['starttime'] == "11:00:00"
        assert defaults['reportname'] == "results.csv"

    def test_pilot_settings(self, sample_config_file):
        parser = ConfigParser()
        parser.load_config_file(str(sample_config_file))
        pilots = parser.get_pilot_settings()
        assert set(pilots) == {"JG", "XY"}
        assert pilots["JG"] == PilotSettings(start_time=11 * 3600 + 1800, utc_offset=-3 * 3600,
                                             reference_speed=95.5, reference_distance=300500.0)
        assert pilots["XY"] == PilotSettings(start_time=12 * 3600, utc_offset=None)

    def test_invalid_pilot_setting_is_skipped(self):
        settings = ConfigParser.parse_pilot_section("ZZ", {'starttime': 'noon'})
        assert settings == PilotSettings()

    def test_invalid_official_speed(self):
        settings = ConfigParser.parse_pilot_section("ZZ", {'starttime': '11:00:00', 'speed': 'fast'})
        assert settings == PilotSettings(start_time=11 * 3600)


class TestConfig:
    """Tests for Config precedence"""

    def test_values_from_file(self, mock_cli_args, temp_output_dir):
        config = Config(mock_cli_args)
        assert config.timezone == 3600
        assert config.start_time == 11 * 3600
        assert config.report_name == "results.csv"
        assert config.out_path == str(temp_output_dir)
        assert config.report_path == temp_output_dir / "results.csv"

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = Config(Args(config=str(tmp_path / "missing.conf")))
        assert config.start_time is None
        assert config.report_name == "analysis.csv"
        assert config.start_time_for("AB") is None
        assert config.timezone_for("AB", 7200) == 7200
        assert config.timezone_for("AB") == 0

    def test_start_time_precedence(self, mock_cli_args):
        config = Config(mock_cli_args)
        assert config.start_time_for("JG") == 11 * 3600 + 1800
        assert config.start_time_for("AB") == 11 * 3600
        assert config.start_time_for(None) == 11 * 3600

    def test_cli_start_time_wins(self, mock_cli_args):
        mock_cli_args.start_time = "13:00:00"
        config = Config(mock_cli_args)
        assert config.start_time_for("JG") == 13 * 3600

    def test_timezone_precedence(self, mock_cli_args):
        config = Config(mock_cli_args)
        # Pilot section first, then the configured default over the log's offset
        assert config.timezone_for("JG", 7200) == -3 * 3600
        assert config.timezone_for("XY", 7200) == 3600
        assert config.timezone_for("AB") == 3600

    def test_cli_timezone_wins(self, mock_cli_args):
        mock_cli_args.timezone = "+02:00"
        config = Config(mock_cli_args)
        assert config.timezone_for("JG", 0) == 7200

    def test_invalid_cli_start_time(self, mock_cli_args):
        mock_cli_args.start_time = "half past"
        with pytest.raises(ValueError):
            Config(mock_cli_args)
