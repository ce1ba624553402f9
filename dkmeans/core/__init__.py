from .observations import ALPHABET, DNABase, DNAStrand, Observation, Point, observation_type
from .base import (
    CentroidContainment,
    ClusteringBase,
    ClusteringResult,
    FixedRounds,
    TerminationPolicy,
    policy_for_kind,
)
from .sequential import SequentialClustering
from .distributed import Coordinator, Runnable, Worker, partition

__all__ = [
    "ALPHABET",
    "DNABase",
    "DNAStrand",
    "Observation",
    "Point",
    "observation_type",
    "CentroidContainment",
    "ClusteringBase",
    "ClusteringResult",
    "FixedRounds",
    "TerminationPolicy",
    "policy_for_kind",
    "SequentialClustering",
    "Coordinator",
    "Runnable",
    "Worker",
    "partition",
]
