#!/usr/bin/env python
# -*- coding: utf-8 -*-

from localecomm.common.config import ConnectionConfig
from localecomm.common.constants import MPI_BACKEND, TORCH_BACKENDS

from .base import Substrate

__all__ = [
    "Substrate",
    "create_substrate",
]


def create_substrate(config: ConnectionConfig) -> Substrate:
    """
    Build the substrate named by ``config.backend``.

    mpi4py is imported only when the mpi backend is requested.
    """
    if config.backend in TORCH_BACKENDS:
        from .torch_backend import TorchSubstrate

        return TorchSubstrate(
            config.backend,
            init_method=config.init_method,
            rank=config.rank,
            world_size=config.world_size,
            timeout=config.timeout,
            hostname=config.hostname,
            cuda_id=config.cuda_id,
        )

    if config.backend == MPI_BACKEND:
        from .mpi_backend import MPISubstrate

        return MPISubstrate(hostname=config.hostname)

    raise ValueError(f"backend [{config.backend}] not supported")
