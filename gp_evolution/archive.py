"""
gp_evolution/archive.py - Evolution archive and persistence

Writes JSON logs of every generation and the best program of every run. It is
an ordinary event-bus listener; the engine never calls it directly.
"""
import json
import os
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from .events import EndBatch, EndGeneration, EndInitialisation, EndRun, EventBus
from .fitness import MINIMISE, FitnessOrder
from .population import Population


class EvolutionArchive:
    """Archive generation statistics and best individuals on disk"""

    def __init__(self, base_path: str, order: FitnessOrder = MINIMISE, save_every: int = 1):
        self.base_path = base_path
        self.order = order
        self.save_every = max(1, save_every)
        self.evolution_log: List[Dict[str, Any]] = []
        self.run_log: List[Dict[str, Any]] = []

        # Create directory structure
        self.dirs = {
            'individuals': os.path.join(base_path, 'individuals'),
            'logs': os.path.join(base_path, 'logs'),
        }

        for dir_path in self.dirs.values():
            os.makedirs(dir_path, exist_ok=True)

    def attach(self, bus: EventBus) -> 'EvolutionArchive':
        bus.subscribe(EndInitialisation, self.on_initialisation)
        bus.subscribe(EndGeneration, self.on_generation)
        bus.subscribe(EndRun, self.on_run)
        bus.subscribe(EndBatch, self.on_batch)
        return self

    def on_initialisation(self, event: EndInitialisation) -> None:
        self.archive_generation(event.population, event.run_index, 0)

    def on_generation(self, event: EndGeneration) -> None:
        if event.generation % self.save_every == 0:
            self.archive_generation(event.population, event.run_index, event.generation)

    def archive_generation(self, population: Population, run_index: int, generation: int) -> None:
        """Archive a generation's data"""
        timestamp = time.time()
        best = population.get_best(self.order)

        generation_data = {
            'run': run_index,
            'generation': generation,
            'timestamp': timestamp,
            'datetime': datetime.fromtimestamp(timestamp).isoformat(),
            'stats': population.get_stats(),
            'diversity': population.diversity_stats(),
            'best': best.to_dict()
        }
        self.evolution_log.append(generation_data)

        # Save evolution log
        log_file = os.path.join(self.dirs['logs'], 'evolution_log.json')
        with open(log_file, 'w') as f:
            json.dump(self.evolution_log, f, indent=2)

    def on_run(self, event: EndRun) -> None:
        entry = {
            'run': event.run_index,
            'generations': event.generations,
            'duration': event.duration,
            'error': str(event.error) if event.error is not None else None,
            'best_file': None
        }
        if event.best is not None:
            filename = f"run_{event.run_index:03d}_best.json"
            event.best.to_json(os.path.join(self.dirs['individuals'], filename))
            entry['best_file'] = filename
            entry['best_fitness'] = event.best.fitness
        self.run_log.append(entry)

        with open(os.path.join(self.dirs['logs'], 'runs.json'), 'w') as f:
            json.dump(self.run_log, f, indent=2)

    def on_batch(self, event: EndBatch) -> None:
        if event.best is not None:
            event.best.to_json(os.path.join(self.dirs['individuals'], 'best_of_all_runs.json'))
        with open(os.path.join(self.base_path, 'evolution_summary.txt'), 'w') as f:
            f.write(self.export_summary_report(event))

    def export_summary_report(self, event: Optional[EndBatch] = None) -> str:
        """Plain-text report of every run and the best of all runs"""
        lines = ["EVOLUTION SUMMARY", "=" * 40]
        for run in self.run_log:
            if run['error'] is not None:
                lines.append(f"Run {run['run']}: FAILED ({run['error']})")
            else:
                lines.append(f"Run {run['run']}: best fitness {run.get('best_fitness')} "
                             f"after {run['generations']} generations ({run['duration']:.2f}s)")
        if event is not None and event.best is not None:
            lines.append("")
            lines.append(f"Best of all runs: {event.best.fitness}")
            lines.append(f"  {event.best}")
        return '\n'.join(lines) + '\n'
