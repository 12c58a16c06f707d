"""Tests for the command-line interface."""

import json
import logging
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from oss_uploader.cli import build_parser, main, print_summary
from oss_uploader.client import BucketInfo, ListResult, ObjectInfo, RemoteStorageError
from oss_uploader.uploader import UploadResult

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def ok(local_path: str = "/work/a.js", size: int = 10) -> UploadResult:
    return UploadResult(
        success=True,
        local_path=local_path,
        remote_path="a.js",
        url="https://test-bucket.oss-cn-hangzhou.aliyuncs.com/a.js",
        size=size,
    )


def failed(local_path: str = "/work/b.js") -> UploadResult:
    return UploadResult(success=False, local_path=local_path, remote_path="", error="boom")


class TestCLIHelp:
    """Test the CLI entry point as a subprocess."""

    def test_help(self):
        result = subprocess.run(
            [sys.executable, "-m", "oss_uploader", "--help"],
            capture_output=True,
            text=True,
            cwd=PROJECT_ROOT,
        )

        assert result.returncode == 0
        for command in ("upload", "list", "delete", "init", "info", "browse"):
            assert command in result.stdout

    def test_upload_help(self):
        result = subprocess.run(
            [sys.executable, "-m", "oss_uploader", "upload", "--help"],
            capture_output=True,
            text=True,
            cwd=PROJECT_ROOT,
        )

        assert result.returncode == 0
        for flag in ("--target", "--config", "--no-overwrite", "--exclude", "--no-mapping", "--no-content-hash"):
            assert flag in result.stdout


class TestParser:
    """Test argument parsing."""

    def test_upload_defaults(self):
        args = build_parser().parse_args(["upload", "./dist"])

        assert args.sources == ["./dist"]
        assert args.target == ""
        assert args.recursive is True
        assert args.overwrite is True
        assert args.mapping is True
        assert args.content_hash is True
        assert args.include is None

    def test_upload_flags(self):
        args = build_parser().parse_args(
            [
                "upload", "a.js", "b.js",
                "-t", "static/",
                "--no-overwrite",
                "--no-content-hash",
                "-e", "**/*.map", "**/*.txt",
                "-m", "out/map.json",
            ]
        )

        assert args.sources == ["a.js", "b.js"]
        assert args.overwrite is False
        assert args.content_hash is False
        assert args.exclude == ["**/*.map", "**/*.txt"]
        assert args.mapping == "out/map.json"

    def test_no_mapping(self):
        args = build_parser().parse_args(["upload", "./dist", "--no-mapping"])
        assert args.mapping is False

    def test_upload_requires_a_source(self):
        with pytest.raises(SystemExit):
            main(["upload"])

    def test_list_options(self):
        args = build_parser().parse_args(["list", "static/", "-m", "50", "-d"])

        assert args.prefix == "static/"
        assert args.max_keys == 50
        assert args.directories is True


class TestMain:
    """Test main() dispatch and exit codes."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_init_creates_config(self, tmp_path: Path, capsys):
        output = tmp_path / ".ossrc.json"

        assert main(["init", "-o", str(output)]) == 0

        assert json.loads(output.read_text())["region"] == "oss-cn-hangzhou"
        assert "Sample configuration created" in capsys.readouterr().out

    def test_init_refuses_to_overwrite(self, tmp_path: Path, capsys):
        output = tmp_path / ".ossrc.json"
        output.write_text("{}")

        assert main(["init", "-o", str(output)]) == 1

        err = capsys.readouterr().err
        assert "Config file already exists" in err
        assert "Traceback" not in err

    def test_init_python_config(self, tmp_path: Path, capsys):
        output = tmp_path / "oss.config.py"

        assert main(["init", "-o", str(output)]) == 0
        assert "environment variables" in capsys.readouterr().out

    def test_missing_config_file(self, tmp_path: Path, capsys):
        assert main(["info", "-c", str(tmp_path / "missing.json")]) == 1
        assert "Config file not found" in capsys.readouterr().err

    @patch("oss_uploader.cli.OSSUploader")
    @patch("oss_uploader.cli.load_config")
    def test_upload_success(self, mock_load, mock_uploader, oss_config, tmp_path, capsys):
        mock_load.return_value = oss_config
        mock_uploader.return_value.upload.return_value = [ok()]

        assert main(["upload", str(tmp_path), "-t", "static/"]) == 0

        options = mock_uploader.return_value.upload.call_args.args[0]
        assert options.source == str(tmp_path.resolve())
        assert options.target == "static/"
        assert options.generate_mapping is True
        assert options.mapping_file is None
        assert "Upload completed successfully" in capsys.readouterr().out

    @patch("oss_uploader.cli.OSSUploader")
    @patch("oss_uploader.cli.load_config")
    def test_upload_failures_exit_nonzero(self, mock_load, mock_uploader, oss_config, tmp_path, capsys):
        mock_load.return_value = oss_config
        mock_uploader.return_value.upload.return_value = [ok(), failed("/work/b.js")]

        assert main(["upload", str(tmp_path)]) == 1

        out = capsys.readouterr().out
        assert "Failed: 1" in out
        assert "/work/b.js: boom" in out

    @patch("oss_uploader.cli.OSSUploader")
    @patch("oss_uploader.cli.load_config")
    def test_multiple_sources_use_upload_multiple(self, mock_load, mock_uploader, oss_config, tmp_path):
        mock_load.return_value = oss_config
        mock_uploader.return_value.upload_multiple.return_value = [ok(), ok("/work/c.js")]

        code = main(["upload", "a.js", "c.js", "--no-mapping", "--no-content-hash"])

        assert code == 0
        sources, options = mock_uploader.return_value.upload_multiple.call_args.args
        assert sources == [str(Path("a.js").resolve()), str(Path("c.js").resolve())]
        assert options.generate_mapping is False
        assert options.content_hash is False
        mock_uploader.return_value.upload.assert_not_called()

    @patch("oss_uploader.cli.OSSUploader")
    @patch("oss_uploader.cli.load_config")
    def test_upload_source_error(self, mock_load, mock_uploader, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_uploader.return_value.upload.side_effect = FileNotFoundError(
            "Source path does not exist: ./nope"
        )

        assert main(["upload", "./nope"]) == 1
        assert "Source path does not exist" in capsys.readouterr().err

    @patch("oss_uploader.uploader.uploader.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_missing_source_reports_one_line(self, mock_load, mock_client, oss_config, tmp_path, capsys):
        mock_load.return_value = oss_config
        missing = tmp_path / "nope"

        assert main(["upload", str(missing)]) == 1

        err = capsys.readouterr().err
        assert "❌ Error: Source path does not exist" in err
        assert "Traceback" not in err
        mock_client.return_value.put.assert_not_called()

    @patch("oss_uploader.uploader.uploader.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_debug_level_keeps_traceback(self, mock_load, mock_client, oss_config, tmp_path, capsys):
        mock_load.return_value = oss_config

        assert main(["--log-level", "DEBUG", "upload", str(tmp_path / "nope")]) == 1
        assert "Traceback" in capsys.readouterr().err

    @patch("oss_uploader.cli.OSSUploader")
    @patch("oss_uploader.cli.load_config")
    def test_keyboard_interrupt(self, mock_load, mock_uploader, oss_config):
        mock_load.return_value = oss_config
        mock_uploader.return_value.upload.side_effect = KeyboardInterrupt

        assert main(["upload", "./dist"]) == 130

    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_list_files(self, mock_load, mock_client, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_client.return_value.list.return_value = ListResult(
            objects=[ObjectInfo("static/app.js", 2048), ObjectInfo("static/site.css", 100)]
        )

        assert main(["list", "static/"]) == 0

        out = capsys.readouterr().out
        assert "Found 2 file(s)" in out
        assert "static/app.js (2 KB)" in out
        mock_client.return_value.list.assert_called_once_with(prefix="static/", max_keys=1000)

    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_list_directories(self, mock_load, mock_client, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_client.return_value.list.return_value = ListResult(prefixes=["static/", "docs/"])

        assert main(["list", "-d"]) == 0

        out = capsys.readouterr().out
        assert "📁 static/" in out
        mock_client.return_value.list.assert_called_once_with(prefix="", max_keys=1000, delimiter="/")

    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_list_empty(self, mock_load, mock_client, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_client.return_value.list.return_value = ListResult()

        assert main(["list"]) == 0
        assert "No files found." in capsys.readouterr().out

    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_delete(self, mock_load, mock_client, oss_config, capsys):
        mock_load.return_value = oss_config

        assert main(["delete", "static/old.js"]) == 0
        mock_client.return_value.delete.assert_called_once_with("static/old.js")

    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_delete_error(self, mock_load, mock_client, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_client.return_value.delete.side_effect = RemoteStorageError(
            "Failed to delete file: AccessDenied: denied"
        )

        assert main(["delete", "static/old.js"]) == 1
        assert "Failed to delete file" in capsys.readouterr().err

    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_info(self, mock_load, mock_client, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_client.return_value.bucket_info.return_value = BucketInfo(
            name="test-bucket", location="oss-cn-hangzhou", storage_class="Standard"
        )

        assert main(["info"]) == 0

        out = capsys.readouterr().out
        assert "Bucket: test-bucket" in out
        assert "Connection successful" in out

    @patch("oss_uploader.cli.browse_directories")
    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_browse(self, mock_load, mock_client, mock_browse, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_browse.return_value = "static/js/"

        assert main(["browse", "static/"]) == 0

        mock_browse.assert_called_once_with(mock_client.return_value, start_prefix="static/")
        assert "Selected: static/js/" in capsys.readouterr().out

    @patch("oss_uploader.cli.browse_directories")
    @patch("oss_uploader.cli.OSSClient")
    @patch("oss_uploader.cli.load_config")
    def test_browse_cancelled(self, mock_load, mock_client, mock_browse, oss_config, capsys):
        mock_load.return_value = oss_config
        mock_browse.return_value = None

        assert main(["browse"]) == 0
        assert "No directory selected." in capsys.readouterr().out

    @patch("oss_uploader.cli.load_config")
    def test_unexpected_error(self, mock_load, capsys):
        mock_load.side_effect = RuntimeError("kaboom")

        assert main(["info"]) == 1
        assert "Unexpected error: kaboom" in capsys.readouterr().err


class TestPrintSummary:
    """Test print_summary."""

    def test_all_successful(self, capsys):
        assert print_summary([ok(size=1024), ok(size=512)]) == 0

        out = capsys.readouterr().out
        assert "Successful: 2" in out
        assert "Total size: 1.5 KB" in out
        assert "Failed" not in out

    def test_empty_results(self, capsys):
        assert print_summary([]) == 0
        assert "Successful: 0" in capsys.readouterr().out
