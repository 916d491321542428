#!/usr/bin/env python
# -*- coding: utf-8 -*-

from localecomm.common.config import ConnectionConfig
from localecomm.common.exceptions import ConnectionStateError, LocaleCommException, SubstrateError
from localecomm.distributed import (
    Connection,
    ConnectionState,
    Topology,
    close_connection,
    new_connection,
)

__version__ = "0.1.0"
