"""Smoke tests for CLI commands.

Tests that CLI commands parse correctly and don't crash. Uses Click's
CliRunner for testing without actually running the bridge.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from PIL import Image

from surfacebridge.cli.main import cli


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.mark.integration
class TestCLIHelp:
    """Test that all commands have working help text."""

    def test_main_help(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'SurfaceBridge' in result.output
        assert 'control surfaces for automation controllers' in result.output

    def test_version_flag(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert '0.1.0' in result.output

    @pytest.mark.parametrize("command", ["run", "list", "schema", "render", "config"])
    def test_command_help(self, runner, command):
        result = runner.invoke(cli, [command, '--help'])
        assert result.exit_code == 0


@pytest.mark.integration
class TestSchemaCommand:
    """Test the device options schema command."""

    def test_known_type(self, runner):
        result = runner.invoke(cli, ['schema', 'streamdeck-tcp'])
        assert result.exit_code == 0
        schema = json.loads(result.output)
        assert 'address' in schema['properties']

    def test_unknown_type(self, runner):
        result = runner.invoke(cli, ['schema', 'launchpad'])
        assert result.exit_code != 0
        assert 'streamdeck' in result.output


@pytest.mark.integration
class TestRenderCommand:
    """Test the render preview command."""

    def test_render_png(self, runner, tmp_path):
        out = tmp_path / "vol.png"
        result = runner.invoke(cli, [
            'render', '{"type": "gauge", "value": 0.5, "label": "VOL"}',
            '--width', '96', '--height', '48', '--out', str(out),
        ])

        assert result.exit_code == 0, result.output
        with Image.open(out) as image:
            assert image.size == (96, 48)

    def test_render_from_file(self, runner, tmp_path):
        feedback = tmp_path / "fb.json"
        feedback.write_text('{"type": "text", "text": "CAM 1", "style_class_names": ["cam"]}')
        presets = tmp_path / "presets.json"
        presets.write_text('[{"id": "cam", "background_color": "#FF0000"}]')
        out = tmp_path / "cam.png"

        result = runner.invoke(cli, [
            'render', f'@{feedback}', '--presets', str(presets), '--pressed', '--out', str(out),
        ])

        assert result.exit_code == 0, result.output
        with Image.open(out) as image:
            assert image.convert("RGBA").getpixel((36, 10)) == (255, 0, 0, 255)

    def test_render_invalid_feedback(self, runner, tmp_path):
        result = runner.invoke(cli, ['render', '{"type": "hologram"}', '--out', str(tmp_path / "x.png")])
        assert result.exit_code == 1
        assert 'Invalid feedback' in result.output


@pytest.mark.integration
class TestConfigCommands:
    """Test config init/validate/show."""

    def test_init_validate_show(self, runner, tmp_path):
        path = tmp_path / "bridge.json"

        result = runner.invoke(cli, ['config', 'init', str(path)])
        assert result.exit_code == 0
        assert path.exists()

        result = runner.invoke(cli, ['config', 'validate', str(path)])
        assert result.exit_code == 0
        assert 'Configuration OK' in result.output

        result = runner.invoke(cli, ['config', 'show', str(path)])
        assert result.exit_code == 0
        assert json.loads(result.output)['devices']['remote']['address'] == '192.168.1.50'

    def test_init_refuses_overwrite(self, runner, tmp_path):
        path = tmp_path / "bridge.json"
        path.write_text("{}")

        result = runner.invoke(cli, ['config', 'init', str(path)])
        assert result.exit_code == 1
        assert path.read_text() == "{}"

    def test_validate_invalid(self, runner, tmp_path):
        path = tmp_path / "bridge.json"
        path.write_text('{"devices": {"remote": {"type": "streamdeck-tcp", "port": 0}}}')

        result = runner.invoke(cli, ['config', 'validate', str(path)])
        assert result.exit_code == 1
        assert 'Invalid configuration' in result.output


@pytest.mark.integration
class TestRunCommand:
    """Test run command wiring without starting devices."""

    def test_invalid_config_exits(self, runner, tmp_path):
        path = tmp_path / "bridge.json"
        path.write_text('{"devices": ')

        result = runner.invoke(cli, ['--log-file', str(tmp_path / "log.txt"), 'run', '--config', str(path)])
        assert result.exit_code == 1
        assert 'ERROR' in result.output

    def test_exit_code_from_app(self, runner, tmp_path):
        path = tmp_path / "bridge.json"
        path.write_text("{}")

        async def fake_run_app(config, sinks=()):
            return 1

        with patch('surfacebridge.app.run_app', fake_run_app):
            result = runner.invoke(
                cli, ['--log-file', str(tmp_path / "log.txt"), 'run', '--config', str(path)]
            )
        assert result.exit_code == 1
        assert 'failed to start' in result.output


@pytest.mark.integration
class TestListCommand:
    """Test the surface listing command."""

    def test_no_surfaces(self, runner):
        with patch('surfacebridge.devices.streamdeck.list_surfaces', return_value=[]):
            result = runner.invoke(cli, ['list'])
        assert result.exit_code == 0
        assert 'No control surfaces found' in result.output

    def test_surfaces_listed(self, runner):
        surfaces = [{"index": 0, "path": "/dev/hidraw3", "type": "Stream Deck +", "serial_number": None, "keys": 8}]
        with patch('surfacebridge.devices.streamdeck.list_surfaces', return_value=surfaces):
            result = runner.invoke(cli, ['list'])
        assert result.exit_code == 0
        assert 'Stream Deck +' in result.output
        assert 'unknown' in result.output
