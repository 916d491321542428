# -*- coding: utf-8 -*-
"""
Description   : exceptions raised by localecomm
"""


class LocaleCommException(Exception):
    """An umbrella class for localecomm-specific exceptions."""

    pass


class SubstrateError(LocaleCommException):
    """A collective substrate operation failed or returned inconsistent data."""

    def __init__(self, op: str, err_msg: str):
        self.op = op
        super().__init__(f"{op}: {err_msg}")


class ConnectionStateError(LocaleCommException, RuntimeError):
    """An action was attempted in a connection state that forbids it."""

    def __init__(self, action: str, state):
        self.action = action
        self.state = state
        super().__init__(f"{action} disallowed in state {state.name}")
