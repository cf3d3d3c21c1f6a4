"""
Target selection

Maps an iteration index to the backend and method to exercise. Class and
method choice are deterministic in the iteration index so sample sizes stay
balanced however long the run is; the concrete baseline is picked at random.
"""

import random
from typing import Optional, Sequence, Tuple

from .catalog import MethodSpec
from .config import Backend, BackendClass, ConfigurationError


class TargetSelector:
    """Chooses (backend, method) for each iteration"""

    def __init__(self, candidate: Backend, baselines: Sequence[Backend],
                 catalog: Sequence[MethodSpec], rng: Optional[random.Random] = None):
        if not catalog:
            raise ConfigurationError("Method catalog is empty")
        if candidate is None or candidate.backend_class is not BackendClass.CANDIDATE:
            raise ConfigurationError("A candidate backend is required")
        if not baselines:
            raise ConfigurationError("At least one baseline backend is required")
        if any(b.backend_class is not BackendClass.BASELINE for b in baselines):
            raise ConfigurationError("Baseline set contains a non-baseline backend")

        self.candidate = candidate
        self.baselines = list(baselines)
        self.catalog = list(catalog)
        self._rng = rng or random.Random()

    def select(self, iteration: int) -> Tuple[Backend, MethodSpec]:
        # Even iterations go to a baseline, odd ones to the candidate
        if iteration % 2 == 0:
            backend = self._rng.choice(self.baselines)
        else:
            backend = self.candidate

        method = self.catalog[iteration % len(self.catalog)]
        return backend, method
