"""Unit tests for the command group."""

import logging

from click.testing import CliRunner

from ensodag.cli.main import main


class TestMain:
    def test_commands_registered(self):
        assert set(main.commands) == {"index", "probability", "path", "bind", "summary"}

    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "ensodag probability 6 2" in result.output

    def test_subcommand_through_group(self, dataset_files):
        dataset_path, capacities_path = dataset_files
        result = CliRunner().invoke(
            main, ["probability", "6", "2", "-d", str(dataset_path), "-k", str(capacities_path)]
        )
        assert result.exit_code == 0
        assert "38.0%" in result.output

    def test_verbose_sets_package_log_level(self, dataset_files):
        _, capacities_path = dataset_files
        CliRunner().invoke(main, ["-v", "index", "1", "-k", str(capacities_path)])
        assert logging.getLogger("ensodag").level == logging.INFO

        CliRunner().invoke(main, ["index", "1", "-k", str(capacities_path)])
        assert logging.getLogger("ensodag").level == logging.ERROR
