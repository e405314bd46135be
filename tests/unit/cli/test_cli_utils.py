"""Unit tests for CLI utilities."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from extbuild.cli_utils import ErrorFormatter, PathValidator, setup_logging


class TestErrorFormatter:
    """Tests for ErrorFormatter class."""

    def test_print_error(self, capsys):
        ErrorFormatter.print_error("Build failed!", "details here")
        out = capsys.readouterr().out
        assert "✗ Build failed!" in out
        assert "details here" in out
        assert ErrorFormatter.RED in out

    def test_print_error_without_message(self, capsys):
        ErrorFormatter.print_error("Build failed!", "")
        assert capsys.readouterr().out.count("\n") == 3

    def test_print_success(self, capsys):
        ErrorFormatter.print_success("Build successful!")
        out = capsys.readouterr().out
        assert "✓ Build successful!" in out
        assert ErrorFormatter.GREEN in out

    def test_print_warning(self, capsys):
        ErrorFormatter.print_warning("careful")
        assert "! careful" in capsys.readouterr().out

    def test_handle_config_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_config_error(ValueError("Unknown build environment 'qa'"))
        assert exc_info.value.code == 1
        assert "Unknown build environment 'qa'" in capsys.readouterr().out

    def test_handle_permission_error(self):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_permission_error(PermissionError("dist"))
        assert exc_info.value.code == 1

    def test_handle_keyboard_interrupt(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130
        assert "interrupted" in capsys.readouterr().out

    def test_handle_unexpected_error_verbose(self, capsys):
        try:
            raise RuntimeError("kaboom")
        except RuntimeError as e:
            with pytest.raises(SystemExit) as exc_info:
                ErrorFormatter.handle_unexpected_error(e, verbose=True)
        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "RuntimeError: kaboom" in out
        assert "Traceback" in out


class TestPathValidator:
    """Tests for PathValidator class."""

    def test_valid(self, tmp_path):
        PathValidator.validate_project_dir(tmp_path)

    def test_missing(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_project_dir(tmp_path / "missing")
        assert exc_info.value.code == 2

    def test_not_a_directory(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("")
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_project_dir(path)
        assert exc_info.value.code == 2


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture
    def root_logger(self):
        logger = logging.getLogger()
        handlers = list(logger.handlers)
        level = logger.level
        yield logger
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)

    def test_file_logging(self, root_logger, tmp_path):
        log_file = tmp_path / ".extbuild" / "extbuild.log"

        setup_logging(log_file)
        logging.info("hello from the test")

        file_handlers = [h for h in root_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        file_handlers[0].flush()
        assert "hello from the test" in log_file.read_text(encoding="utf-8")
        assert root_logger.level == logging.INFO

    def test_verbose(self, root_logger):
        before = len(root_logger.handlers)
        setup_logging(None, verbose=True)
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == before + 1

    def test_console_shows_errors_without_verbose(self, root_logger, capfd):
        setup_logging(None)
        logging.info("routine detail")
        logging.error("esbuild exited")

        err = capfd.readouterr().err
        assert "esbuild exited" in err
        assert "routine detail" not in err
