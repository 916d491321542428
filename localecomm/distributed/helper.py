#!/usr/bin/env python
# -*- coding: utf-8 -*-

import sys
import logging
import contextlib

from localecomm.common.exceptions import ConnectionStateError


logger = logging.getLogger(__name__)

EXIT_SUBSTRATE_FAILURE = 1


@contextlib.contextmanager
def checked_call(backend: str, op: str):
    """
    Run a substrate call and terminate the process if it fails.

    A collective that failed on one rank cannot be repaired locally and
    leaves its peers blocked, so there is no retry: the failure is reported
    with the name of the operation and the process exits with status 1.

        with checked_call(substrate.name, "barrier"):
            substrate.barrier(scope)
    """
    try:
        yield
    except Exception as exc:
        logger.critical("{} call failed: {}: {}".format(backend, op, exc))
        sys.exit(EXIT_SUBSTRATE_FAILURE)


def state_violation(action: str, state) -> ConnectionStateError:
    """
    Report a protocol violation and return the error for the caller to raise.
    """
    error = ConnectionStateError(action, state)
    logger.error(str(error))
    return error
