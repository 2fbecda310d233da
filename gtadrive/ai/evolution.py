"""
Genetic Training
================

Population-based search over network weights, without gradients.

Each generation:
    1. Every agent drives and gets a fitness score (higher is better)
    2. The ELITE_COUNT best agents keep their networks unchanged
    3. Every other slot gets a child: two tournament-selected parents,
       crossover, then Gaussian mutation
    4. The new networks are installed with set_nn() once all scores are in

Crossover and mutation are plain Matrix -> Matrix functions handed to
NeuralNetwork.apply_function(), so they work for any architecture.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from config import Config
from gtadrive.maths.matrix import Matrix
from gtadrive.utils.logger import get_logger, log_generation_metrics

from .agent import IACar
from .network import MatrixCombiner, MatrixTransform, NeuralNetwork


_logger = get_logger(__name__)

FitnessFn = Callable[[IACar], float]


# =============================================================================
# OPERATORS
# =============================================================================

def gaussian_mutation(rate: float, scale: float, rng: Optional[np.random.Generator] = None) -> MatrixTransform:
    """Add N(0, scale) noise to each weight with probability rate."""
    gen = rng if rng is not None else np.random.default_rng()

    def mutate(weights: Matrix) -> Matrix:
        w = weights.to_numpy()
        mask = gen.random(w.shape) < rate
        if mask.any():
            w = w + gen.normal(0.0, scale, size=w.shape) * mask
        return Matrix.from_numpy(w)
    return mutate


def uniform_crossover(rng: Optional[np.random.Generator] = None) -> MatrixCombiner:
    """Each weight taken from either parent with equal probability."""
    gen = rng if rng is not None else np.random.default_rng()

    def cross(a: Matrix, b: Matrix) -> Matrix:
        mask = gen.random(a.shape) < 0.5
        return Matrix.from_numpy(np.where(mask, a.to_numpy(), b.to_numpy()))
    return cross


def average_crossover(a: Matrix, b: Matrix) -> Matrix:
    """Element-wise mean of both parents."""
    return a.plus(b).mul(0.5)


def blend_crossover(rng: Optional[np.random.Generator] = None) -> MatrixCombiner:
    """alpha * a + (1 - alpha) * b with a fresh alpha in [0, 1) per weight."""
    gen = rng if rng is not None else np.random.default_rng()

    def cross(a: Matrix, b: Matrix) -> Matrix:
        alpha = gen.random(a.shape)
        return Matrix.from_numpy(alpha * a.to_numpy() + (1.0 - alpha) * b.to_numpy())
    return cross


CROSSOVERS: Dict[str, Callable[[Optional[np.random.Generator]], MatrixCombiner]] = {
    'uniform': uniform_crossover,
    'average': lambda rng=None: average_crossover,
    'blend': blend_crossover,
}


def get_crossover(name: str, rng: Optional[np.random.Generator] = None) -> MatrixCombiner:
    """Look up a crossover operator by name."""
    if name not in CROSSOVERS:
        raise ValueError(f"Unknown crossover '{name}'. Available: {sorted(CROSSOVERS)}")
    return CROSSOVERS[name](rng)


def tournament_select(fitness: Sequence[float], size: int, rng: np.random.Generator) -> int:
    """Index of the fittest of `size` randomly drawn contestants."""
    contestants = rng.integers(0, len(fitness), size=size)
    best = int(contestants[0])
    for c in contestants:
        if fitness[int(c)] > fitness[best]:
            best = int(c)
    return best


# =============================================================================
# POPULATION
# =============================================================================

@dataclass
class GenerationStats:
    """Statistics for a single generation."""
    generation: int
    best_fitness: float
    mean_fitness: float
    std_fitness: float
    best_index: int
    duration: float


class Population:
    """
    A fixed-size set of IACar agents evolved together.

    Example:
        >>> pop = Population(lambda car: score_lap(car), config)
        >>> best_nn, best_fitness = pop.run(generations=20)
    """

    def __init__(
        self,
        fitness_fn: FitnessFn,
        config: Optional[Config] = None,
        agents: Optional[List[IACar]] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Args:
            fitness_fn: Scores one agent; must only read that agent's network
            config: Configuration object
            agents: Initial agents (POPULATION_SIZE fresh agents when omitted)
            rng: Generator for selection, crossover and mutation
        """
        self.config = config or Config()
        self.fitness_fn = fitness_fn
        self.rng = rng if rng is not None else np.random.default_rng(self.config.SEED)

        if agents is None:
            agents = [IACar(config=self.config) for _ in range(self.config.POPULATION_SIZE)]
        if len(agents) < 2:
            raise ValueError(f"Population needs at least two agents, got {len(agents)}")
        for agent in agents[1:]:
            if not agent.nn.same_structure(agents[0].nn):
                raise ValueError("All agents in a population must share one network layout")
        self.agents = agents

        self.mutate = gaussian_mutation(self.config.MUTATION_RATE, self.config.MUTATION_SCALE, self.rng)
        self.crossover = get_crossover(self.config.CROSSOVER, self.rng)

        self.generation = 0
        self.history: List[GenerationStats] = []
        self.best_fitness = float('-inf')
        self.best_network: Optional[NeuralNetwork] = None

        _logger.info(
            f"Population of {len(self.agents)} agents, network {self.agents[0].nn.dimensions}, "
            f"crossover={self.config.CROSSOVER}"
        )

    def __len__(self) -> int:
        return len(self.agents)

    def evaluate(self) -> List[float]:
        """Score every agent. Networks are not touched."""
        workers = self.config.EVAL_WORKERS
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                return [float(f) for f in pool.map(self.fitness_fn, self.agents)]
        return [float(self.fitness_fn(agent)) for agent in self.agents]

    def _breed(self, fitness: Sequence[float]) -> NeuralNetwork:
        a = tournament_select(fitness, self.config.TOURNAMENT_SIZE, self.rng)
        b = tournament_select(fitness, self.config.TOURNAMENT_SIZE, self.rng)
        child = self.agents[a].apply_nn_function(self.crossover, self.agents[b])
        return child.apply_function(self.mutate)

    def next_generation(self, fitness: Sequence[float]) -> None:
        """
        Replace every non-elite network with a bred child.

        Args:
            fitness: One score per agent, from evaluate()
        """
        if len(fitness) != len(self.agents):
            raise ValueError(f"Got {len(fitness)} fitness values for {len(self.agents)} agents")

        ranked = sorted(range(len(self.agents)), key=lambda i: fitness[i], reverse=True)
        elites = ranked[:self.config.ELITE_COUNT]

        # Build every child from the current generation before swapping any network
        new_networks = [
            self.agents[i].get_copy_nn() if i in elites else self._breed(fitness)
            for i in range(len(self.agents))
        ]
        for agent, nn in zip(self.agents, new_networks):
            agent.set_nn(nn)

    def step(self) -> GenerationStats:
        """Evaluate, record statistics, breed. Returns this generation's stats."""
        start = time.time()
        fitness = self.evaluate()
        scores = np.array(fitness)
        best_index = int(np.argmax(scores))

        if scores[best_index] > self.best_fitness:
            self.best_fitness = float(scores[best_index])
            self.best_network = self.agents[best_index].get_copy_nn()

        self.next_generation(fitness)

        stats = GenerationStats(
            generation=self.generation,
            best_fitness=float(scores[best_index]),
            mean_fitness=float(scores.mean()),
            std_fitness=float(scores.std()),
            best_index=best_index,
            duration=time.time() - start,
        )
        self.history.append(stats)
        self.generation += 1
        log_generation_metrics(
            stats.generation, stats.best_fitness, stats.mean_fitness,
            stats.std_fitness, stats.duration
        )
        return stats

    def run(
        self,
        generations: Optional[int] = None,
        checkpoint_dir: Optional[str] = None
    ) -> Tuple[Optional[NeuralNetwork], float]:
        """
        Evolve for a number of generations.

        Args:
            generations: Defaults to config.GENERATIONS
            checkpoint_dir: Save the best network here whenever it improves

        Returns:
            (copy of the best network seen, its fitness)
        """
        generations = generations if generations is not None else self.config.GENERATIONS

        for _ in range(generations):
            previous_best = self.best_fitness
            stats = self.step()
            if checkpoint_dir and self.best_fitness > previous_best:
                self._save_best(checkpoint_dir, stats.generation)

        _logger.info(f"Evolution finished after {self.generation} generations, best={self.best_fitness:.3f}")
        if checkpoint_dir and self.best_network is not None:
            self._save_best(checkpoint_dir, self.generation, reason='final')
        return (self.best_network.copy() if self.best_network is not None else None), self.best_fitness

    def _save_best(self, checkpoint_dir: str, generation: int, reason: str = 'best') -> None:
        car = IACar(self.best_network, self.config)
        filename = 'final.pth' if reason == 'final' else 'best.pth'
        car.save(
            os.path.join(checkpoint_dir, filename),
            save_reason=reason,
            generation=generation,
            best_fitness=self.best_fitness,
        )
