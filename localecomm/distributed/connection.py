#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Connection lifecycle for a cluster of multi-core nodes ("locales").

Each process gets two ids and two synchronization domains:

 - a job-wide rank and the main scope spanning all processes,
 - a node-local rank and the locale scope spanning the processes on the same
   host, for node-local barriers that other nodes do not take part in.

    conn = Connection(config)
    conn.init()
    ...
    conn.locale_barrier()
    conn.finalize()
"""
import enum
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

from localecomm.common.config import ConnectionConfig
from localecomm.common.constants import UNSET
from localecomm.common.logger import set_log_rank
from .group import Scope
from .helper import checked_call, state_violation
from .identity import ProcessIdentity, query_identity
from .locale import LocaleAssignment, LocaleGroup, LocaleResolver
from .partition import CommunicatorPartitioner
from .substrate import Substrate, create_substrate


logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class Topology:
    rank: int = UNSET  # global id of this process
    size: int = UNSET  # number of processes in the job
    locale: int = UNSET  # id of this node
    locale_rank: int = UNSET  # node-local id of this process
    locale_size: int = UNSET  # number of processes on this node
    locales: int = UNSET  # number of nodes in the job


@dataclass
class _TopologyRecord:
    # written once by Connection.init()
    rank: int = UNSET
    size: int = UNSET
    locale: int = UNSET
    locale_rank: int = UNSET
    locale_size: int = UNSET
    locales: int = UNSET


class Connection:
    """
    Owns the substrate lifecycle and publishes the topology of this process.

    Topology accessors read -1 until init() succeeds. finalize() must be
    called exactly once after init(); a connection dropped while still
    initialized tries to finalize itself, which may hang if the other
    processes are no longer entering collectives.
    """

    def __init__(self, config: Optional[ConnectionConfig] = None, substrate: Optional[Substrate] = None) -> None:
        self._state = ConnectionState.UNINITIALIZED
        # set when a with-block unwinds on an error; teardown is then skipped
        self._aborted = False
        self.config = config if config is not None else ConnectionConfig()
        self.substrate = substrate if substrate is not None else create_substrate(self.config)

        self._record = _TopologyRecord()
        self._identity: Optional[ProcessIdentity] = None
        self._assignment: Optional[LocaleAssignment] = None

        # public so that other code can run its own collectives on them
        self.main_scope: Optional[Scope] = None
        self.locale_scope: Optional[Scope] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def init(self) -> "Connection":
        """
        Collective: every process of the job has to call it.
        """
        if self._state is not ConnectionState.UNINITIALIZED:
            raise state_violation("init", self._state)

        with checked_call(self.substrate.name, "startup"):
            self.substrate.startup()

        identity = query_identity(self.substrate)
        set_log_rank(identity.rank)

        assignment = LocaleResolver(self.substrate).resolve(identity)
        partitioner = CommunicatorPartitioner(self.substrate, self.config.group_name)
        self.main_scope, self.locale_scope = partitioner.partition(identity, assignment)

        self._identity = identity
        self._assignment = assignment
        self._record.rank = identity.rank
        self._record.size = identity.size
        self._record.locale = assignment.locale
        self._record.locale_rank = assignment.locale_rank
        self._record.locale_size = assignment.locale_size
        self._record.locales = assignment.locales

        self._state = ConnectionState.INITIALIZED
        return self

    def finalize(self) -> None:
        """
        Collective: free the locale scope and shut the substrate down.
        """
        if self._state is not ConnectionState.INITIALIZED:
            raise state_violation("finalize", self._state)

        with checked_call(self.substrate.name, "free"):
            self.substrate.free(self.locale_scope.handle)
        with checked_call(self.substrate.name, "shutdown"):
            self.substrate.shutdown()

        self.main_scope = None
        self.locale_scope = None
        self._state = ConnectionState.FINALIZED
        logger.info("connection finalized")

    def __del__(self):
        # __init__ may have failed before the state was set
        if getattr(self, "_state", None) is not ConnectionState.INITIALIZED:
            return
        if self._aborted:
            return
        if self.substrate.is_shutdown():
            return

        logger.warning(
            "Connection dropped without finalize(); finalizing now, "
            "you may occasionally see deadlock"
        )
        try:
            self.finalize()
        except SystemExit:
            logger.error("best-effort finalize failed")

    def __enter__(self) -> "Connection":
        if self._state is ConnectionState.UNINITIALIZED:
            self.init()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._state is not ConnectionState.INITIALIZED:
            return
        if exc_type is not None:
            # peers may be gone, finalize() would enter collectives they never join
            self._aborted = True
            logger.error(f"leaving connection on {exc_type.__name__}, skipping finalize")
            return
        self.finalize()

    def barrier(self) -> None:
        """Synchronize across all processes."""
        if self._state is not ConnectionState.INITIALIZED:
            raise state_violation("barrier", self._state)
        with checked_call(self.substrate.name, "barrier"):
            self.substrate.barrier(self.main_scope.handle)

    def locale_barrier(self) -> None:
        """Synchronize across the processes on this node."""
        if self._state is not ConnectionState.INITIALIZED:
            raise state_violation("locale_barrier", self._state)
        with checked_call(self.substrate.name, "locale_barrier"):
            self.substrate.barrier(self.locale_scope.handle)

    def hostname(self) -> str:
        if self._identity is not None:
            return self._identity.host_name
        with checked_call(self.substrate.name, "host_name"):
            return self.substrate.host_name()

    @property
    def topology(self) -> Topology:
        return Topology(**asdict(self._record))

    @property
    def locale_groups(self) -> Tuple[LocaleGroup, ...]:
        """Locale groups of the whole job, empty before init."""
        if self._assignment is None:
            return ()
        return self._assignment.groups

    @property
    def rank(self) -> int:
        return self._record.rank

    @property
    def size(self) -> int:
        return self._record.size

    @property
    def ranks(self) -> int:
        return self._record.size

    @property
    def locales(self) -> int:
        return self._record.locales

    @property
    def locale(self) -> int:
        return self._record.locale

    @property
    def locale_rank(self) -> int:
        return self._record.locale_rank

    @property
    def locale_size(self) -> int:
        return self._record.locale_size

    @property
    def locale_ranks(self) -> int:
        return self._record.locale_size

    def __repr__(self) -> str:
        t = self.topology
        return (
            f"Connection(state={self._state.name}, rank={t.rank}/{t.size}, "
            f"locale={t.locale}/{t.locales}, locale_rank={t.locale_rank}/{t.locale_size})"
        )
