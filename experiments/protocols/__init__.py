from experiments.protocols.base import Protocol
from experiments.protocols.exploration import ExplorationProtocol
from experiments.protocols.foraging import ForagingProtocol

__all__ = [
    "ExplorationProtocol",
    "ForagingProtocol",
    "Protocol",
]
