"""
Read simulation driver: builds reads in parallel and consumes them under a budget.
"""

import uuid
import logging
import multiprocessing as mp
import numpy as np
from tqdm import tqdm
from typing import Iterator, Optional

from .adapters import AdapterComposer
from .alignment import identity_from_cigar
from .changes import sequence
from .description import Description, ReadRecord
from .fragments import FragmentGenerator
from .models import AdapterModel, ErrorModel, GlitchModel, IdentityModel, LengthModel, QualityModel
from .quality import QualityAssigner
from .quantity import Budget
from .references import ReferencePool

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('Simulator')

_CONTEXT = None


def get_optimal_workers(requested: int = 0) -> int:
    """
    Number of worker processes to use.

    Args:
        requested: Requested number of workers, 0 for all cores

    Returns:
        int: Worker count in [1, cpu count]
    """
    cpu_count = mp.cpu_count()
    if requested <= 0:
        return cpu_count
    return min(requested, cpu_count)


class SimulationContext:
    """Read-only models and references shared by every task"""

    def __init__(self, pool: ReferencePool, length_model: LengthModel, identity_model: IdentityModel,
                 error_model: ErrorModel, quality_model: QualityModel,
                 glitch_model: Optional[GlitchModel] = None, adapter_model: Optional[AdapterModel] = None,
                 junk_rate: float = 0.0, random_rate: float = 0.0, chimera_rate: float = 0.0):
        self.pool = pool
        self.error_model = error_model
        self.glitch_model = glitch_model if glitch_model is not None else GlitchModel()
        self.fragments = FragmentGenerator(pool, length_model, identity_model,
                                           junk_rate=junk_rate, random_rate=random_rate,
                                           chimera_rate=chimera_rate)
        self.composer = AdapterComposer(adapter_model if adapter_model is not None else AdapterModel.disabled(),
                                        error_model)
        self.assigner = QualityAssigner(quality_model)

    @property
    def max_fragment_length(self) -> int:
        return self.pool.max_length

    def build_read(self, seed: int, index: int) -> ReadRecord:
        """
        Build the read of one task.

        The task random stream depends only on (seed, index).

        Args:
            seed: Run seed
            index: Task index

        Returns:
            ReadRecord: Simulated read
        """
        rng = np.random.default_rng([seed, index])

        fragment = self.fragments.generate(rng)
        err, trace, changes = sequence(fragment.raw, fragment.identity, self.error_model, self.glitch_model, rng)
        identity = identity_from_cigar(trace)

        seq, trace = self.composer.compose(err, trace, fragment.identity, rng)
        quality = self.assigner.assign(trace, rng)

        description = Description(fragment.origins[0], fragment.origins[1:], len(seq), fragment.length, identity)
        read_id = str(uuid.UUID(bytes=rng.bytes(16), version=4))

        return ReadRecord(read_id, seq, quality, description)


def _init_worker(context: SimulationContext):
    global _CONTEXT
    _CONTEXT = context


def _build_read_task(task) -> ReadRecord:
    seed, index = task
    return _CONTEXT.build_read(seed, index)


class Simulator:
    """Produce reads until the budget is met, identical for any worker count"""

    def __init__(self, context: SimulationContext, budget: Budget, seed: Optional[int] = None,
                 threads: int = 1, batch_size: Optional[int] = None, progress: bool = False):
        """
        Initialize the simulator.

        Args:
            context: Models and references
            budget: Bases or reads to produce
            seed: Run seed, drawn from system entropy when None
            threads: Number of worker processes (0 for all cores, 1 runs in process)
            batch_size: Number of tasks dispatched at once
            progress: Show a progress bar
        """
        self.context = context
        self.budget = budget
        self.seed = seed if seed is not None else int(np.random.SeedSequence().entropy % (2 ** 63))
        self.threads = get_optimal_workers(threads)
        self.batch_size = batch_size if batch_size else 16 * self.threads
        self.progress = progress

    def __iter__(self) -> Iterator[ReadRecord]:
        return self.run()

    def _batches(self):
        index = 0
        while True:
            yield [(self.seed, i) for i in range(index, index + self.batch_size)]
            index += self.batch_size

    def _consume(self, reads, bar) -> Iterator[ReadRecord]:
        for read in reads:
            before = self.budget.consumed
            if not self.budget.claim(len(read.sequence)):
                return
            bar.update(self.budget.consumed - before)
            yield read

    def run(self) -> Iterator[ReadRecord]:
        """
        Generate reads.

        Returns:
            Iterator[ReadRecord]: Reads in task order
        """
        if self.budget.exhausted:
            logger.info("Budget is empty, no read generated")
            return

        logger.info(f"Start simulation: target {self.budget.target} {self.budget.unit}, "
                    f"{self.threads} worker(s), seed {self.seed}")

        with tqdm(total=self.budget.target, unit=self.budget.unit[:-1], disable=not self.progress) as bar:
            if self.threads == 1:
                for batch in self._batches():
                    yield from self._consume((self.context.build_read(*task) for task in batch), bar)
                    if self.budget.exhausted:
                        break
            else:
                with mp.Pool(self.threads, initializer=_init_worker, initargs=(self.context,)) as pool:
                    for batch in self._batches():
                        yield from self._consume(pool.imap(_build_read_task, batch), bar)
                        if self.budget.exhausted:
                            break

        logger.info(f"End simulation: {self.budget.reads} reads, {self.budget.consumed} {self.budget.unit}")
