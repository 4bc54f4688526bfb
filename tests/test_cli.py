"""
Tests for the command-line interface.
"""

from click.testing import CliRunner

from gp_evolution.cli import cli


class TestEvolveCommand:
    """Test the evolve command."""

    def test_short_run(self):
        result = CliRunner().invoke(cli, ['evolve', '-g', '3', '-p', '20', '--seed', '1'])
        assert result.exit_code == 0, result.output
        assert 'Best of all runs' in result.output
        assert '1/1 runs succeeded' in result.output

    def test_invalid_configuration(self):
        result = CliRunner().invoke(cli, ['evolve', '-p', '10', '--elitism', '10'])
        assert result.exit_code != 0

    def test_archive_and_show(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ['evolve', '-g', '2', '-p', '20', '--seed', '2',
                                     '--problem', 'regression', '--out', str(tmp_path)])
        assert result.exit_code == 0, result.output
        best = tmp_path / 'individuals' / 'best_of_all_runs.json'
        assert best.exists()

        shown = runner.invoke(cli, ['show', '-i', str(best)])
        assert shown.exit_code == 0, shown.output
        assert 'Program:' in shown.output
        assert 'Type: double' in shown.output

    def test_show_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli, ['show', '-i', str(tmp_path / 'missing.json')])
        assert result.exit_code != 0
