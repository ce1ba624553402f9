"""
Блокирующие каналы точка-точка между координатором и воркером.

Координатор держит по одному каналу на каждого воркера, у воркера один канал
к координатору. Все реализации сохраняют порядок сообщений внутри пары и
не имеют таймаутов: recv() ждёт сколько потребуется.
"""

from __future__ import annotations

import queue
from multiprocessing.connection import Connection
from typing import Any, Protocol, Tuple

from dkmeans.errors import ProtocolError, TransportError
from dkmeans.transport.messages import MESSAGE_TYPES, Message, MessageKind


class Channel(Protocol):
    def send(self, message: Message) -> None: ...

    def recv(self) -> Message: ...

    def close(self) -> None: ...


class QueueChannel:
    """Канал внутри одного процесса на паре очередей (для тестов и потоков)."""

    _CLOSED = object()

    def __init__(self, inbox: queue.Queue, outbox: queue.Queue) -> None:
        self._inbox = inbox
        self._outbox = outbox
        self._closed = False

    @classmethod
    def pair(cls) -> Tuple[QueueChannel, QueueChannel]:
        """Два связанных конца: (сторона координатора, сторона воркера)."""
        a_to_b: queue.Queue = queue.Queue()
        b_to_a: queue.Queue = queue.Queue()
        return cls(inbox=b_to_a, outbox=a_to_b), cls(inbox=a_to_b, outbox=b_to_a)

    def send(self, message: Message) -> None:
        if self._closed:
            raise TransportError("Cannot send on a closed channel")
        self._outbox.put(message)

    def recv(self) -> Message:
        if self._closed:
            raise TransportError("Cannot receive on a closed channel")
        item = self._inbox.get()
        if item is self._CLOSED:
            raise TransportError("Peer closed the channel")
        return item

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._outbox.put(self._CLOSED)


class PipeChannel:
    """Канал поверх multiprocessing.Pipe между процессами одной машины."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def send(self, message: Message) -> None:
        try:
            self._conn.send(message)
        except (OSError, ValueError) as e:
            raise TransportError(f"Failed to send {message.kind.name}: {e}") from e

    def recv(self) -> Message:
        try:
            return self._conn.recv()
        except (EOFError, OSError) as e:
            raise TransportError(f"Peer closed the pipe: {e!r}") from e

    def close(self) -> None:
        self._conn.close()


class MPIChannel:
    """
    Канал поверх mpi4py: сообщения к одному процессу-партнёру.

    Тег MPI-сообщения равен ``message.kind``; при приёме тег сверяется с
    типом полученного объекта.
    """

    def __init__(self, comm: Any, peer: int) -> None:
        self._comm = comm
        self._peer = peer

    def send(self, message: Message) -> None:
        self._comm.send(message, dest=self._peer, tag=int(message.kind))

    def recv(self) -> Message:
        from mpi4py import MPI

        status = MPI.Status()
        message = self._comm.recv(source=self._peer, tag=MPI.ANY_TAG, status=status)
        tag = status.Get_tag()
        try:
            expected = MESSAGE_TYPES[MessageKind(tag)]
        except ValueError:
            raise ProtocolError(f"Unknown message tag {tag} from rank {self._peer}") from None
        if not isinstance(message, expected):
            raise ProtocolError(
                f"Tag {tag} does not match payload {type(message).__name__}"
            )
        return message

    def close(self) -> None:
        # Коммуникатор принадлежит окружению MPI и закрывается в MPI.Finalize
        pass
