#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
from typing import Optional

from localecomm.common.config import ConnectionConfig
from .group import Scope
from .connection import Connection, ConnectionState, Topology
from .locale import LocaleAssignment, LocaleGroup, LocaleResolver, assign_locale, build_locale_groups
from .partition import CommunicatorPartitioner
from .substrate import Substrate, create_substrate

logger = logging.getLogger(__name__)

__all__ = [
    "Connection",
    "ConnectionState",
    "Topology",
    "Scope",
    "LocaleAssignment",
    "LocaleGroup",
    "LocaleResolver",
    "CommunicatorPartitioner",
    "Substrate",
    "assign_locale",
    "build_locale_groups",
    "create_substrate",
    "new_connection",
    "close_connection",
]


def close_connection(conn: Optional[Connection]):
    if conn is None:
        return
    conn.finalize()


def new_connection(
    config: Optional[ConnectionConfig] = None,
    substrate: Optional[Substrate] = None,
) -> Connection:
    """
    Create a connection and initialize it right away.

    This function requires that all processes of the job enter it. The
    returned connection is INITIALIZED; release it with close_connection()
    or Connection.finalize().
    """
    conn = Connection(config, substrate)
    conn.init()

    logger.info(f"new connection: {conn}")
    return conn
