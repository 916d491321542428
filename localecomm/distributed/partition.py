#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
from typing import Tuple

from localecomm.common.exceptions import SubstrateError
from .group import Scope
from .helper import checked_call
from .identity import ProcessIdentity
from .locale import LocaleAssignment
from .substrate import Substrate


logger = logging.getLogger(__name__)


class CommunicatorPartitioner:
    """
    Build the job-wide and the node-local scope from a locale assignment.
    """

    def __init__(self, substrate: Substrate, group_name: str) -> None:
        self.substrate = substrate
        self.group_name = group_name

    def main_scope(self, identity: ProcessIdentity) -> Scope:
        """
        the substrate's world scope, used as-is
        """
        return Scope(
            f"{self.group_name}_main",
            identity.size,
            identity.rank,
            self.substrate.world,
            self.substrate.name,
        )

    def locale_scope(self, parent: Scope, identity: ProcessIdentity, assignment: LocaleAssignment) -> Scope:
        """
        Collective: split the parent scope by locale id, ordered by global rank.

        The rank inside the resulting scope must come out equal to
        ``assignment.locale_rank``; anything else means the substrate and the
        locale walk disagree, which is treated as a substrate failure.
        """
        name = self.substrate.name
        with checked_call(name, "split"):
            handle = self.substrate.split(parent.handle, assignment.locale, identity.rank)
        with checked_call(name, "scope_rank"):
            rank = self.substrate.scope_rank(handle)
        with checked_call(name, "scope_size"):
            size = self.substrate.scope_size(handle)

        with checked_call(name, "split"):
            if rank != assignment.locale_rank or size != assignment.locale_size:
                raise SubstrateError(
                    "split",
                    f"locale scope rank {rank}/{size} differs from "
                    f"locale rank {assignment.locale_rank}/{assignment.locale_size}",
                )

        return Scope(
            f"{self.group_name}_locale{assignment.locale}",
            size,
            rank,
            handle,
            name,
            level=1,
            parent_name=parent.name,
        )

    def partition(self, identity: ProcessIdentity, assignment: LocaleAssignment) -> Tuple[Scope, Scope]:
        main = self.main_scope(identity)
        local = self.locale_scope(main, identity, assignment)
        logger.info(f"built scopes {main} and {local}")
        return main, local
