"""
Tests for the statistics collectors and the on-disk archive.
"""

import json

import pytest

from gp_evolution.archive import EvolutionArchive
from gp_evolution.breeder import Evolver
from gp_evolution.config import EvolutionConfig
from gp_evolution.events import EventBus
from gp_evolution.problems import even_parity
from gp_evolution.stats import GenerationStatistics, OperatorStatistics, RunStatistics


@pytest.fixture
def finished_batch():
    """Run two short runs with every collector attached."""
    def run(archive_path=None):
        problem = even_parity(2)
        config = EvolutionConfig(population_size=20, max_generations=3, runs=2, seed=5,
                                 max_initial_depth=3, max_depth=6)
        bus = EventBus()
        collectors = {
            'generations': GenerationStatistics(config.order).attach(bus),
            'runs': RunStatistics().attach(bus),
            'operators': OperatorStatistics().attach(bus),
        }
        if archive_path is not None:
            collectors['archive'] = EvolutionArchive(str(archive_path), config.order).attach(bus)
        result = Evolver(config, problem.syntax, problem.evaluator, problem.return_type,
                         bus=bus).run()
        return result, collectors
    return run


class TestStatistics:
    """Test collectors fed by the event bus."""

    def test_generation_history(self, finished_batch):
        result, collectors = finished_batch()
        stats = collectors['generations']
        assert len(stats.history) == 2 * 4
        assert [entry['generation'] for entry in stats.for_run(1)] == [0, 1, 2, 3]
        entry = stats.latest
        assert entry['population_size'] == 20
        assert set(entry['fitness']) == {'min', 'max', 'mean', 'std', 'median'}
        assert 0.0 <= entry['diversity']['structural_diversity'] <= 1.0

    def test_run_summary(self, finished_batch):
        result, collectors = finished_batch()
        summary = collectors['runs'].summary()
        assert summary['runs'] == 2
        assert summary['successful'] == 2
        assert summary['best_fitness_mean'] == pytest.approx(
            sum(run.best_fitness for run in result.runs) / 2)

    def test_empty_run_summary(self):
        assert RunStatistics().summary() == {'runs': 0, 'successful': 0}

    def test_operator_counts(self, finished_batch):
        result, collectors = finished_batch()
        operators = collectors['operators']
        assert operators.operations['subtree_crossover'] > 0
        assert operators.evaluations >= 2 * 20
        assert operators.evaluation_time >= 0.0


class TestEvolutionArchive:
    """Test files written by the archive listener."""

    def test_files_written(self, finished_batch, tmp_path):
        finished_batch(tmp_path)
        assert (tmp_path / 'individuals' / 'run_000_best.json').exists()
        assert (tmp_path / 'individuals' / 'run_001_best.json').exists()
        assert (tmp_path / 'individuals' / 'best_of_all_runs.json').exists()
        assert (tmp_path / 'evolution_summary.txt').exists()

    def test_logs_content(self, finished_batch, tmp_path):
        result, _ = finished_batch(tmp_path)
        log = json.loads((tmp_path / 'logs' / 'evolution_log.json').read_text())
        assert len(log) == 2 * 4
        assert log[0]['run'] == 0 and log[0]['generation'] == 0
        runs = json.loads((tmp_path / 'logs' / 'runs.json').read_text())
        assert [run['best_file'] for run in runs] == ['run_000_best.json', 'run_001_best.json']

    def test_summary_report(self, finished_batch, tmp_path):
        result, _ = finished_batch(tmp_path)
        report = (tmp_path / 'evolution_summary.txt').read_text()
        assert report.startswith('EVOLUTION SUMMARY')
        assert str(result.best) in report

    def test_save_every(self, tmp_path):
        archive = EvolutionArchive(str(tmp_path), save_every=0)
        assert archive.save_every == 1
