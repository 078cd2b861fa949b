"""Majority-vote ensemble over trained networks."""

from __future__ import annotations

from typing import Dict, Hashable, Iterable, List, Sequence

from ..core.errors import ConfigurationError
from ..core.network import Network
from ..core.types import Classifiable


class CompositeClassifier:
    """Classify by majority vote of several networks.

    Ties between equally popular labels go to the label produced first, i.e.
    by the earliest network in ``networks``.
    """

    def __init__(self, networks: Sequence[Network]) -> None:
        self.networks = tuple(networks)
        if not self.networks:
            raise ConfigurationError("CompositeClassifier needs at least one network")

    def votes(self, sample: Classifiable) -> List[Hashable]:
        return [network.classify(sample) for network in self.networks]

    def classify(self, sample: Classifiable) -> Hashable:
        tally: Dict[Hashable, int] = {}
        for label in self.votes(sample):
            tally[label] = tally.get(label, 0) + 1
        winner = None
        best = 0
        # dicts keep first-insertion order, so strict > keeps the earliest label
        for label, count in tally.items():
            if count > best:
                winner, best = label, count
        return winner

    def evaluate(self, samples: Iterable[Classifiable]) -> int:
        return sum(1 for sample in samples if self.classify(sample) == sample.label)

    def __len__(self) -> int:
        return len(self.networks)


__all__ = ["CompositeClassifier"]
