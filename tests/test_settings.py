"""
Unit tests for settings management.
"""

import json
import os

import pytest

from imagediff.services.settings import (
    ApplicationSettings,
    OutputSettings,
    SettingsManager,
)


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "config" / "settings.json"


class TestSettingsManager:

    def test_defaults_when_missing(self, settings_path):
        manager = SettingsManager(settings_path)

        settings = manager.settings

        assert settings.output.default_output == "diff.png"
        assert settings.output.image_format == "PNG"
        assert settings.logging.level == "INFO"
        assert settings.recent_comparisons == []

    def test_save_and_load(self, settings_path):
        manager = SettingsManager(settings_path)
        settings = ApplicationSettings(output=OutputSettings(default_output="out.png", overwrite=False))

        assert manager.save(settings)

        loaded = SettingsManager(settings_path).load()
        assert loaded.output.default_output == "out.png"
        assert loaded.output.overwrite is False

    def test_partial_file_uses_defaults(self, settings_path):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text(json.dumps({"logging": {"level": "DEBUG"}}))

        settings = SettingsManager(settings_path).load()

        assert settings.logging.level == "DEBUG"
        assert settings.output.default_output == "diff.png"

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"output": 5}'])
    def test_unreadable_file_gives_defaults(self, settings_path, content):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text(content)

        settings = SettingsManager(settings_path).load()

        assert settings.output.default_output == "diff.png"

    def test_reset(self, settings_path):
        manager = SettingsManager(settings_path)
        manager.settings.output.default_output = "other.png"
        manager.save()

        manager.reset()

        assert SettingsManager(settings_path).load().output.default_output == "diff.png"

    def test_recent_comparisons(self, settings_path):
        manager = SettingsManager(settings_path)
        manager.settings.recent_limit = 2

        manager.add_recent_comparison("a.png", "b.png")
        manager.add_recent_comparison("c.png", "d.png")
        manager.add_recent_comparison("a.png", "b.png")
        manager.add_recent_comparison("e.png", "f.png")

        assert manager.settings.recent_comparisons == [("e.png", "f.png"), ("a.png", "b.png")]
        reloaded = SettingsManager(settings_path).load()
        assert reloaded.recent_comparisons == [("e.png", "f.png"), ("a.png", "b.png")]

    @pytest.mark.skipif(os.name == "nt", reason="XDG paths are POSIX only")
    def test_default_path_honours_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert SettingsManager().settings_path == tmp_path / "imagediff" / "settings.json"

    @pytest.mark.parametrize("data", [
        {"recent_limit": "5"},
        {"recent_limit": -1},
        {"recent_limit": True},
        {"output": {"overwrite": "no", "default_output": 3}},
        {"logging": {"level": 10}},
    ])
    def test_wrong_types_fall_back_to_defaults(self, settings_path, data):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text(json.dumps(data))

        settings = SettingsManager(settings_path).load()

        assert settings == ApplicationSettings()

    def test_string_limit_does_not_break_recent_list(self, settings_path):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text(json.dumps({"recent_limit": "5"}))
        manager = SettingsManager(settings_path)

        manager.add_recent_comparison("a.png", "b.png")

        assert manager.settings.recent_comparisons == [("a.png", "b.png")]
