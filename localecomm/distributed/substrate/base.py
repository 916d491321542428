#!/usr/bin/env python
# -*- coding: utf-8 -*-

import abc
from typing import Any, List


class Substrate(abc.ABC):
    """
    The collective communication layer underneath a connection.

    All collectives (all_gather, split, barrier) block until every process of
    the scope has entered the same call. There is no timeout beyond what the
    implementation itself enforces.
    """

    name = "substrate"

    @abc.abstractmethod
    def startup(self) -> None:
        """Initialize the process group. Called once, before anything else."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Tear down the process group. Called once, after everything else."""

    @abc.abstractmethod
    def is_shutdown(self) -> bool:
        ...

    @abc.abstractmethod
    def self_rank(self) -> int:
        ...

    @abc.abstractmethod
    def group_size(self) -> int:
        ...

    @abc.abstractmethod
    def host_name(self) -> str:
        ...

    @property
    @abc.abstractmethod
    def world(self) -> Any:
        """Handle of the job-wide scope."""

    @abc.abstractmethod
    def all_gather(self, value: bytes) -> List[bytes]:
        """
        Gather one fixed-width value from every rank of the world scope.

        Returns:
            the values indexed by global rank
        """

    @abc.abstractmethod
    def split(self, parent: Any, partition_key: int, order_key: int) -> Any:
        """
        Partition ``parent`` into child scopes.

        Processes passing the same partition_key end up in the same child,
        ranked inside it by ascending order_key.
        """

    @abc.abstractmethod
    def scope_rank(self, scope: Any) -> int:
        ...

    @abc.abstractmethod
    def scope_size(self, scope: Any) -> int:
        ...

    @abc.abstractmethod
    def barrier(self, scope: Any) -> None:
        ...

    @abc.abstractmethod
    def free(self, scope: Any) -> None:
        """Release a scope created by split."""
