#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
mpi4py substrate. Importing this module turns off mpi4py's automatic
MPI_Init, so it has to be imported before anything imports mpi4py.MPI;
otherwise MPI is already up and startup() refuses to run.
"""
import socket
import logging
from typing import Any, List, Optional

import mpi4py

# startup()/shutdown() own MPI_Init and MPI_Finalize
mpi4py.rc.initialize = False
mpi4py.rc.finalize = False

from mpi4py import MPI  # noqa: E402

from localecomm.common.exceptions import SubstrateError
from .base import Substrate


logger = logging.getLogger(__name__)


class MPISubstrate(Substrate):
    """
    Substrate on top of mpi4py. The world scope is MPI.COMM_WORLD and child
    scopes come from Comm.Split.
    """

    name = "mpi"

    def __init__(self, hostname: Optional[str] = None) -> None:
        self.hostname = hostname

    def startup(self) -> None:
        if MPI.Is_initialized():
            raise SubstrateError(
                "startup",
                "MPI already initialized; import localecomm.distributed.substrate.mpi_backend "
                "before mpi4py.MPI, and start one connection per process",
            )
        logger.info("MPI_Init")
        MPI.Init()

    def shutdown(self) -> None:
        logger.info("MPI_Finalize")
        MPI.Finalize()

    def is_shutdown(self) -> bool:
        return MPI.Is_finalized()

    def self_rank(self) -> int:
        return MPI.COMM_WORLD.Get_rank()

    def group_size(self) -> int:
        return MPI.COMM_WORLD.Get_size()

    def host_name(self) -> str:
        if self.hostname is not None:
            return self.hostname
        # processor name is only queryable while MPI is up
        if MPI.Is_initialized() and not MPI.Is_finalized():
            return MPI.Get_processor_name()
        return socket.gethostname()

    @property
    def world(self) -> Any:
        return MPI.COMM_WORLD

    def all_gather(self, value: bytes) -> List[bytes]:
        return MPI.COMM_WORLD.allgather(value)

    def split(self, parent: Any, partition_key: int, order_key: int) -> Any:
        return parent.Split(partition_key, order_key)

    def scope_rank(self, scope: Any) -> int:
        return scope.Get_rank()

    def scope_size(self, scope: Any) -> int:
        return scope.Get_size()

    def barrier(self, scope: Any) -> None:
        scope.Barrier()

    def free(self, scope: Any) -> None:
        scope.Free()
