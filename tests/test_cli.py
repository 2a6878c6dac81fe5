"""Tests for the reeltube command line."""

import pytest
from click.testing import CliRunner

from reeltube import __version__
from reeltube.cli import cli, format_size

from conftest import BASE_URL, MB

MP4_HEADER = b'\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom'


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, fake_api):
    """Run the CLI against the fake API with a valid key."""
    def _invoke(*args, key='test-key'):
        options = ['-u', BASE_URL]
        if key:
            options = ['-k', key] + options
        return runner.invoke(cli, options + list(args), obj={'transport': fake_api.transport})
    return _invoke


class TestUploadCommand:
    """reeltube upload"""

    def test_success(self, invoke, fake_api, make_file):
        path = make_file('clip.mp4', 10 * MB, header=MP4_HEADER)

        result = invoke('upload', str(path), '-c', '2')

        assert result.exit_code == 0, result.output
        assert 'File to upload:' in result.output
        assert 'File uploaded successfully' in result.output
        assert 'mu_42' in result.output
        assert len(fake_api.complete_calls) == 1
        assert len(fake_api.complete_calls[0]['parts']) == 3

    def test_name_override(self, invoke, fake_api, make_file):
        path = make_file('clip.mp4', 100, header=MP4_HEADER)

        result = invoke('upload', str(path), '--name', 'holiday.mp4')

        assert result.exit_code == 0, result.output
        assert 'Upload name override: holiday.mp4' in result.output
        assert fake_api.create_calls[0]['filename'] == 'holiday.mp4'

    def test_missing_api_key(self, invoke, fake_api, make_file):
        path = make_file('clip.mp4', 100, header=MP4_HEADER)

        result = invoke('upload', str(path), key=None)

        assert result.exit_code == 1
        assert 'REELTUBE_API_KEY' in result.output
        assert fake_api.create_calls == []

    def test_api_key_from_environment(self, invoke, fake_api, make_file, monkeypatch):
        monkeypatch.setenv('REELTUBE_API_KEY', 'env-key')
        path = make_file('clip.mp4', 100, header=MP4_HEADER)

        result = invoke('upload', str(path), key=None)

        assert result.exit_code == 0, result.output
        assert fake_api.headers_seen[0]['Authorization'] == 'Bearer env-key'

    @pytest.mark.parametrize('name', ['missing.mp4', 'notes.txt'])
    def test_invalid_file_makes_no_requests(self, invoke, fake_api, make_file, name):
        if name != 'missing.mp4':
            make_file(name, 100)

        result = invoke('upload', name)

        assert result.exit_code == 1
        assert 'Error:' in result.output
        assert fake_api.create_calls == []
        assert fake_api.put_calls == []

    def test_part_failure_is_not_finalized(self, invoke, fake_api, make_file):
        fake_api.part_size = 1_000
        fake_api.fail_parts = {3: 500}
        path = make_file('clip.mp4', 5_000, header=MP4_HEADER)

        result = invoke('upload', str(path))

        assert result.exit_code == 1
        assert 'upload failed during transfer' in result.output
        assert fake_api.complete_calls == []

    def test_negotiation_failure(self, invoke, fake_api, make_file):
        fake_api.create_status = 500
        path = make_file('clip.mp4', 100, header=MP4_HEADER)

        result = invoke('upload', str(path))

        assert result.exit_code == 1
        assert 'upload failed during negotiate' in result.output
        assert 'quota exceeded' in result.output

    def test_progress_never_shows_unknown_total(self, invoke, make_file):
        path = make_file('clip.mp4', 100, header=MP4_HEADER)

        result = invoke('upload', str(path))

        assert result.exit_code == 0, result.output
        assert 'None' not in result.output

    def test_missing_config_file_is_usage_error(self, invoke, fake_api, make_file):
        path = make_file('clip.mp4', 100, header=MP4_HEADER)

        result = invoke('--config', 'typo.json', 'upload', str(path))

        assert result.exit_code == 2
        assert 'typo.json' in result.output
        assert fake_api.create_calls == []

    def test_invalid_concurrency(self, invoke, make_file):
        path = make_file('clip.mp4', 100, header=MP4_HEADER)
        result = invoke('upload', str(path), '-c', '0')
        assert result.exit_code == 2


class TestOtherCommands:
    """whoami, me and version"""

    @pytest.mark.parametrize('command', ['whoami', 'me'])
    def test_whoami(self, invoke, command):
        result = invoke(command)
        assert result.exit_code == 0, result.output
        assert 'reelmaker' in result.output

    def test_whoami_rejected_key(self, runner):
        import httpx

        transport = httpx.MockTransport(
            lambda r: httpx.Response(401, json={'error': 'invalid api key'})
        )
        result = runner.invoke(cli, ['-k', 'bad', '-u', BASE_URL, 'whoami'],
                               obj={'transport': transport})

        assert result.exit_code == 1
        assert 'invalid api key' in result.output

    def test_version_needs_no_key(self, runner):
        result = runner.invoke(cli, ['version'], obj={})
        assert result.exit_code == 0
        assert f"Version: {__version__}" in result.output

    def test_help_needs_no_key(self, runner):
        result = runner.invoke(cli, ['--help'], obj={})
        assert result.exit_code == 0
        assert 'upload' in result.output


@pytest.mark.parametrize('size,expected', [
    (0, '0.0 B'),
    (1536, '1.5 KB'),
    (10 * MB, '10.0 MB'),
])
def test_format_size(size, expected):
    assert format_size(size) == expected
