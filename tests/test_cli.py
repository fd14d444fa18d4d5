# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Tests for awscredentials CLI interface."""

import logging
import pathlib
from unittest.mock import patch

from typer.testing import CliRunner

from awscredentials.cli import app


class TestCLI:
    """Test cases for main CLI."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_cli_help(self) -> None:
        """Test CLI help command."""
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "credentials" in result.output

    def test_cli_version(self) -> None:
        """Test CLI version command."""
        result = self.runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
        assert "awscredentials Information" in result.output
        assert "Config directory" in result.output
        assert "Jenkins" in result.output

    def test_credentials_subcommand(self, config_file: pathlib.Path) -> None:
        """Test credentials subcommand integration."""
        result = self.runner.invoke(
            app, ["credentials", "list", "--config-file", str(config_file)]
        )
        assert result.exit_code == 0
        assert "No data to display" in result.output

    def test_cli_verbose_flag(self) -> None:
        """Test that --verbose flag sets logging level."""
        with patch("logging.basicConfig") as mock_basicConfig:
            result = self.runner.invoke(app, ["--verbose", "--version"])
            assert result.exit_code == 0
            mock_basicConfig.assert_called_once_with(level=logging.DEBUG)

    def test_cli_no_subcommand_shows_help(self) -> None:
        """Test that running CLI without subcommand shows help."""
        result = self.runner.invoke(app, [])
        # Click versions differ on the exit code used for no_args_is_help
        assert result.exit_code in (0, 2)
        assert "Usage:" in result.output
