# -*- coding: utf-8 -*-
"""
Description   : connection configuration
"""
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from localecomm.common.constants import (
    BACKENDS, DEFAULT_BACKEND, DEFAULT_INIT_METHOD, DEFAULT_TIMEOUT, DEFAULT_GROUP_NAME,
    ENV_BACKEND, ENV_HOSTNAME,
)
from localecomm.utils.file import read_yaml_file


@dataclass(frozen=True)
class ConnectionConfig:
    """Settings for building a connection.

    rank and world_size default to -1, in which case the launcher environment
    (e.g. RANK / WORLD_SIZE set by torchrun, or mpirun) decides.
    """

    backend: str = DEFAULT_BACKEND
    init_method: str = DEFAULT_INIT_METHOD
    rank: int = -1
    world_size: int = -1
    timeout: float = DEFAULT_TIMEOUT  # seconds
    hostname: Optional[str] = None  # overrides the host name reported by the substrate
    cuda_id: int = -1  # nccl only, -1 takes LOCAL_RANK from the launcher environment
    group_name: str = DEFAULT_GROUP_NAME

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(f"backend [{self.backend}] not supported. Available backends: {', '.join(BACKENDS)}")
        if self.timeout <= 0:
            raise ValueError(f"timeout [{self.timeout}] should be positive")
        if self.world_size == 0 or self.world_size < -1:
            raise ValueError(f"world_size [{self.world_size}] should be positive or -1")
        if self.rank < -1:
            raise ValueError(f"rank [{self.rank}] should be non-negative or -1")
        if self.world_size > 0 and self.rank >= self.world_size:
            raise ValueError(f"rank [{self.rank}] exceeds world_size [{self.world_size}]")
        if self.hostname is not None and not self.hostname:
            raise ValueError("hostname override should not be empty")
        if self.cuda_id < -1:
            raise ValueError(f"cuda_id [{self.cuda_id}] should be non-negative or -1")

    def update(self, **kwargs) -> "ConnectionConfig":
        """Return a copy with the given non-None values applied."""
        known = {f.name for f in fields(self)}
        unknown = set(kwargs) - known
        if unknown:
            raise ValueError(f"unknown config keys: {sorted(unknown)}")
        values = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **values)

    @classmethod
    def from_yaml(cls, fname) -> "ConnectionConfig":
        contents = read_yaml_file(fname)
        return cls().update(**vars(contents))

    def with_env(self, environ=None) -> "ConnectionConfig":
        """Apply LOCALECOMM_* environment overrides."""
        environ = os.environ if environ is None else environ
        return self.update(
            backend=environ.get(ENV_BACKEND) or None,
            hostname=environ.get(ENV_HOSTNAME) or None,
        )
