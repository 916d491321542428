#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import socket
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

import torch
import torch.distributed as dist

from localecomm.common.constants import DEFAULT_INIT_METHOD, DEFAULT_TIMEOUT, ENV_LOCAL_RANK
from localecomm.common.exceptions import SubstrateError
from .base import Substrate


logger = logging.getLogger(__name__)


class TorchSubstrate(Substrate):
    """
    Substrate on top of torch.distributed process groups (gloo or nccl).

    The world scope is the default process group. Child scopes are created
    with ``dist.new_group``, which every process of the default group has to
    enter for every group, in the same order.
    """

    def __init__(
        self,
        backend: str,
        init_method: str = DEFAULT_INIT_METHOD,
        rank: int = -1,
        world_size: int = -1,
        timeout: float = DEFAULT_TIMEOUT,
        hostname: Optional[str] = None,
        cuda_id: int = -1,
    ) -> None:
        self.name = backend
        self.backend = backend
        self.init_method = init_method
        self.rank = rank
        self.world_size = world_size
        self.timeout = timedelta(seconds=timeout)
        self.hostname = hostname
        # one gpu per process on a node, torchrun numbers them with LOCAL_RANK
        if cuda_id < 0:
            cuda_id = int(os.environ.get(ENV_LOCAL_RANK, 0))
        self.cuda_id = cuda_id

    def startup(self) -> None:
        if self.backend == "nccl" and not dist.is_nccl_available():
            raise SubstrateError("startup", "Distributed package doesn't have NCCL built in")
        if self.backend == "gloo" and not dist.is_gloo_available():
            raise SubstrateError("startup", "Distributed package doesn't have GLOO built in")
        if dist.is_initialized():
            raise SubstrateError("startup", "default process group is already initialized")
        if self.backend == "nccl":
            if self.cuda_id >= torch.cuda.device_count():
                raise SubstrateError("startup", f"CUDA idx [{self.cuda_id}] exceeds GPU number of node")
            torch.cuda.set_device(self.cuda_id)

        logger.info(f"start building default PG with {self.backend} via {self.init_method}")
        dist.init_process_group(
            backend=self.backend,
            init_method=self.init_method,
            world_size=self.world_size,
            rank=self.rank,
            timeout=self.timeout,
        )

    def shutdown(self) -> None:
        dist.destroy_process_group()

    def is_shutdown(self) -> bool:
        # True whenever no default process group is live
        return not dist.is_initialized()

    def self_rank(self) -> int:
        return dist.get_rank()

    def group_size(self) -> int:
        return dist.get_world_size()

    def host_name(self) -> str:
        if self.hostname is not None:
            return self.hostname
        return socket.gethostname()

    @property
    def world(self) -> Any:
        return dist.group.WORLD

    def _device(self) -> torch.device:
        # nccl collectives only run on cuda tensors
        if self.backend == "nccl":
            return torch.device("cuda", self.cuda_id)
        return torch.device("cpu")

    def _all_gather_tensor(self, tensor: torch.Tensor) -> List[torch.Tensor]:
        output = [torch.empty_like(tensor) for _ in range(self.group_size())]
        dist.all_gather(output, tensor)
        return [t.cpu() for t in output]

    def all_gather(self, value: bytes) -> List[bytes]:
        tensor = torch.tensor(list(value), dtype=torch.uint8, device=self._device())
        return [bytes(t.tolist()) for t in self._all_gather_tensor(tensor)]

    def split(self, parent: Any, partition_key: int, order_key: int) -> Any:
        if parent is not dist.group.WORLD:
            raise SubstrateError("split", "torch substrate can only split the world scope")

        local = torch.tensor([partition_key, order_key], dtype=torch.int64, device=self._device())
        keys: List[Tuple[int, int]] = [tuple(t.tolist()) for t in self._all_gather_tensor(local)]

        partitions: Dict[int, List[Tuple[int, int]]] = {}
        for global_rank, (color, order) in enumerate(keys):
            partitions.setdefault(color, []).append((order, global_rank))

        # torch ranks group members by global rank, so the order key has to agree with it
        ranks_per_partition = []
        for color in sorted(partitions):
            ranks = [r for _, r in sorted(partitions[color])]
            if ranks != sorted(ranks):
                raise SubstrateError(
                    "split",
                    f"order keys of partition [{color}] disagree with global rank order: {ranks}",
                )
            ranks_per_partition.append((color, ranks))

        mine = None
        for color, ranks in ranks_per_partition:
            pg = dist.new_group(ranks=ranks, timeout=self.timeout, backend=self.backend)
            if color == partition_key:
                mine = pg
        logger.debug(f"split world into {len(ranks_per_partition)} groups: {ranks_per_partition}")

        return mine

    def scope_rank(self, scope: Any) -> int:
        return dist.get_rank(group=scope)

    def scope_size(self, scope: Any) -> int:
        return dist.get_world_size(group=scope)

    def barrier(self, scope: Any) -> None:
        dist.barrier(group=scope)

    def free(self, scope: Any) -> None:
        dist.destroy_process_group(scope)
