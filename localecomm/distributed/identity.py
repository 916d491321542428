#!/usr/bin/env python
# -*- coding: utf-8 -*-

from dataclasses import dataclass

from .helper import checked_call
from .substrate import Substrate


@dataclass(frozen=True)
class ProcessIdentity:
    """Facts about this process that the substrate answers locally."""

    rank: int  # global rank
    size: int  # number of processes in the job
    host_name: str


def query_identity(substrate: Substrate) -> ProcessIdentity:
    with checked_call(substrate.name, "self_rank"):
        rank = substrate.self_rank()
    with checked_call(substrate.name, "group_size"):
        size = substrate.group_size()
    with checked_call(substrate.name, "host_name"):
        host_name = substrate.host_name()

    return ProcessIdentity(rank=rank, size=size, host_name=host_name)
