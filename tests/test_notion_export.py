"""Tests for the command-line entry point."""

from unittest.mock import patch

import pytest

import notion_export


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Run the CLI from an empty directory with a clean environment."""
    monkeypatch.chdir(tmp_path)
    for name in ('NOTION_TOKEN', 'OUTPUT_DIR', 'ROOT_PAGE_ID'):
        # Set first so values a test loads from a .env file are undone afterwards
        monkeypatch.setenv(name, 'unused')
        monkeypatch.delenv(name)
    return ['--env-file', str(tmp_path / 'absent.env')]


def fake_report(output_directory, processed=3, pages_failed=0, media_failed=0):
    return {
        'summary': {
            'output_directory': output_directory,
            'scope': 'workspace',
            'root_page_id': None,
            'processed_pages': processed,
            'pages_written': processed,
            'pages_skipped': 0,
            'pages_failed': pages_failed,
            'duration_formatted': '0.1s'
        },
        'media': {'downloaded': 0, 'skipped': 0, 'failed': media_failed},
        'errors': []
    }


class TestMain:
    """Test exit codes and printed output."""

    def test_missing_token_is_configuration_error(self, cli_env, capsys):
        with patch('notion_export.ExportDriver') as driver:
            exit_code = notion_export.main(cli_env)

        assert exit_code == 2
        driver.assert_not_called()
        err = capsys.readouterr().err
        assert "notion.token" in err
        assert "usage:" in err

    def test_successful_export(self, cli_env, capsys, monkeypatch, tmp_path):
        monkeypatch.setenv('NOTION_TOKEN', 'secret_cli')
        out_dir = str(tmp_path / 'out')

        with patch('notion_export.ExportDriver') as driver:
            driver.return_value.run.return_value = fake_report(out_dir)
            exit_code = notion_export.main(cli_env + ['--output-dir', out_dir, '--root-page-id', 'abc'])

        assert exit_code == 0
        config = driver.call_args.args[0]
        assert config['notion']['token'] == 'secret_cli'
        assert config['export']['output_directory'] == out_dir
        assert config['export']['root_page_id'] == 'abc'
        out = capsys.readouterr().out
        assert f"Files saved to: {out_dir}" in out
        assert "Total pages exported: 3" in out
        assert "Failures" not in out

    def test_failures_reported_without_failing_exit(self, cli_env, capsys, monkeypatch):
        monkeypatch.setenv('NOTION_TOKEN', 'secret_cli')

        with patch('notion_export.ExportDriver') as driver:
            driver.return_value.run.return_value = fake_report('./notion-export', pages_failed=2, media_failed=1)
            exit_code = notion_export.main(cli_env)

        assert exit_code == 0
        assert "Failures: 2 pages, 1 images" in capsys.readouterr().out

    def test_config_file_and_env_file(self, cli_env, tmp_path):
        env_file = tmp_path / 'custom.env'
        env_file.write_text("NOTION_TOKEN=secret_from_env_file\n", encoding='utf-8')
        config_file = tmp_path / 'export.yaml'
        config_file.write_text(
            "notion:\n  token: ${NOTION_TOKEN}\nmedia:\n  download_images: true\n",
            encoding='utf-8'
        )

        with patch('notion_export.ExportDriver') as driver:
            driver.return_value.run.return_value = fake_report('./notion-export')
            exit_code = notion_export.main(['--env-file', str(env_file), '--config', str(config_file),
                                            '--no-images'])

        assert exit_code == 0
        config = driver.call_args.args[0]
        assert config['notion']['token'] == 'secret_from_env_file'
        assert config['media']['download_images'] is False

    def test_default_config_file_picked_up(self, cli_env, tmp_path):
        (tmp_path / 'config.yaml').write_text(
            "notion:\n  token: secret_yaml\nexport:\n  max_depth: 7\n", encoding='utf-8'
        )

        with patch('notion_export.ExportDriver') as driver:
            driver.return_value.run.return_value = fake_report('./notion-export')
            assert notion_export.main(cli_env) == 0

        assert driver.call_args.args[0]['export']['max_depth'] == 7

    def test_missing_explicit_config_file(self, cli_env, capsys):
        assert notion_export.main(cli_env + ['--config', 'nope.yaml']) == 2
        assert "File not found" in capsys.readouterr().err

    def test_interrupted(self, cli_env, monkeypatch):
        monkeypatch.setenv('NOTION_TOKEN', 'secret_cli')

        with patch('notion_export.ExportDriver') as driver:
            driver.return_value.run.side_effect = KeyboardInterrupt
            assert notion_export.main(cli_env) == 130

    def test_unexpected_error(self, cli_env, monkeypatch):
        monkeypatch.setenv('NOTION_TOKEN', 'secret_cli')

        with patch('notion_export.ExportDriver') as driver:
            driver.return_value.run.side_effect = RuntimeError("search endpoint unavailable")
            assert notion_export.main(cli_env) == 1

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            notion_export.main(['--version'])

        assert excinfo.value.code == 0
        assert notion_export.__version__ in capsys.readouterr().out
