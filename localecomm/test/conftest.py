#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
In-process substrate: every rank of a job is a thread, collectives meet on
threading.Barrier objects shared through a Fabric.
"""
import socket
import threading
from typing import Any, Callable, Dict, List, Sequence

import pytest

from localecomm.distributed import Connection
from localecomm.distributed.substrate import Substrate

BARRIER_TIMEOUT = 10    # seconds


class FakeComm:
    def __init__(self, key, members: List[int]) -> None:
        self.key = key
        self.members = members  # global ranks, position == rank inside the comm
        self.barrier = threading.Barrier(len(members), timeout=BARRIER_TIMEOUT)
        self.slots: List[Any] = [None] * len(members)
        self.freed = set()

    def rank_of(self, global_rank: int) -> int:
        return self.members.index(global_rank)

    def allgather(self, global_rank: int, value: Any) -> List[Any]:
        self.slots[self.rank_of(global_rank)] = value
        self.barrier.wait()
        gathered = list(self.slots)
        self.barrier.wait()
        return gathered


class Fabric:
    """Shared state of one in-process job."""

    def __init__(self, host_names: Sequence[str]) -> None:
        self.host_names = list(host_names)
        self.size = len(host_names)
        self.world = FakeComm("world", list(range(self.size)))
        self.children: Dict[Any, FakeComm] = {}
        self.started = set()
        self.stopped = set()
        self.lock = threading.Lock()

    def child(self, parent: FakeComm, color: int, members: List[int]) -> FakeComm:
        key = (parent.key, color, tuple(members))
        with self.lock:
            if key not in self.children:
                self.children[key] = FakeComm(key, members)
            return self.children[key]


class ThreadedSubstrate(Substrate):
    name = "threads"

    def __init__(self, fabric: Fabric, rank: int) -> None:
        self.fabric = fabric
        self.rank = rank
        self.calls: List[str] = []

    def startup(self) -> None:
        self.calls.append("startup")
        if self.rank in self.fabric.started:
            raise RuntimeError("already started")
        self.fabric.started.add(self.rank)

    def shutdown(self) -> None:
        self.calls.append("shutdown")
        if self.rank in self.fabric.stopped:
            raise RuntimeError("already shut down")
        self.fabric.stopped.add(self.rank)

    def is_shutdown(self) -> bool:
        return self.rank in self.fabric.stopped

    def self_rank(self) -> int:
        return self.rank

    def group_size(self) -> int:
        return self.fabric.size

    def host_name(self) -> str:
        return self.fabric.host_names[self.rank]

    @property
    def world(self) -> Any:
        return self.fabric.world

    def all_gather(self, value: bytes) -> List[bytes]:
        self.calls.append("all_gather")
        return self.fabric.world.allgather(self.rank, value)

    def split(self, parent: Any, partition_key: int, order_key: int) -> Any:
        self.calls.append("split")
        keys = parent.allgather(self.rank, (partition_key, order_key))
        members = sorted(
            (order, parent.members[i]) for i, (color, order) in enumerate(keys) if color == partition_key
        )
        return self.fabric.child(parent, partition_key, [r for _, r in members])

    def scope_rank(self, scope: Any) -> int:
        return scope.rank_of(self.rank)

    def scope_size(self, scope: Any) -> int:
        return len(scope.members)

    def barrier(self, scope: Any) -> None:
        self.calls.append(f"barrier:{scope.key}")
        scope.barrier.wait()

    def free(self, scope: Any) -> None:
        self.calls.append("free")
        scope.freed.add(self.rank)


def run_ranks(fabric: Fabric, fn: Callable[[int], Any]) -> List[Any]:
    """
    Run fn(rank) on one thread per rank of the fabric and return the results
    by rank. The first error raised on any rank is re-raised here.
    """
    results: List[Any] = [None] * fabric.size
    errors: List[BaseException] = []

    def target(rank: int):
        try:
            results[rank] = fn(rank)
        except BaseException as exc:
            errors.append(exc)
            # release peers waiting in a collective
            fabric.world.barrier.abort()

    threads = [threading.Thread(target=target, args=(rank,)) for rank in range(fabric.size)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=2 * BARRIER_TIMEOUT)

    if errors:
        raise errors[0]
    return results


def run_job(host_names: Sequence[str], fn: Callable[[Connection], Any], substrate_class=None) -> List[Any]:
    """
    Run fn(connection) on one thread per rank.
    """
    fabric = Fabric(host_names)
    substrate_class = substrate_class or ThreadedSubstrate
    return run_ranks(fabric, lambda rank: fn(Connection(substrate=substrate_class(fabric, rank))))


@pytest.fixture
def job():
    return run_job


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def solo_substrate() -> ThreadedSubstrate:
    return ThreadedSubstrate(Fabric(["solo"]), 0)
