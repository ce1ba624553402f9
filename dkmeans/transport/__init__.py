from .messages import (
    AssignmentResult,
    Centroids,
    Completed,
    Message,
    MessageKind,
    Partition,
    ResultFormat,
)
from .channels import Channel, MPIChannel, PipeChannel, QueueChannel

__all__ = [
    "AssignmentResult",
    "Centroids",
    "Completed",
    "Message",
    "MessageKind",
    "Partition",
    "ResultFormat",
    "Channel",
    "MPIChannel",
    "PipeChannel",
    "QueueChannel",
]
