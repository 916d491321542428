#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Locale discovery.

Every process gathers the host names of all processes, then runs the same
first-appearance walk over them: scanning in ascending global rank, a host
name seen for the first time gets the next locale id. Since every process
walks the same gathered sequence, all of them agree on the mapping without
electing anyone to decide it.

Host names travel as fixed-width buffers of MAX_HOSTNAME_LEN bytes and are
compared byte for byte; no alias or DNS resolution is done. Two names that
only differ after the width bound end up in the same locale.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from localecomm.common.constants import MAX_HOSTNAME_LEN
from localecomm.common.exceptions import SubstrateError
from .helper import checked_call
from .identity import ProcessIdentity
from .substrate import Substrate


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocaleGroup:
    locale_id: int
    member_ranks: Tuple[int, ...]  # ascending global ranks


@dataclass(frozen=True)
class LocaleAssignment:
    """Locale facts of one process, plus the job-wide grouping they come from."""

    locales: int  # number of distinct hosts
    locale: int  # locale id of this process
    locale_rank: int  # position of this process inside its locale
    locale_size: int  # number of processes in this locale
    groups: Tuple[LocaleGroup, ...]


def encode_host_name(host_name: str, width: int = MAX_HOSTNAME_LEN) -> bytes:
    """
    utf-8 encode and NUL pad to ``width`` bytes, truncating longer names
    """
    raw = host_name.encode("utf-8")
    if len(raw) > width:
        logger.warning(f"host name [{host_name}] truncated to {width} bytes")
        raw = raw[:width]
    return raw.ljust(width, b"\0")


def decode_host_name(buffer: bytes) -> str:
    return buffer.rstrip(b"\0").decode("utf-8", errors="replace")


def build_locale_groups(host_names: Sequence[bytes]) -> List[LocaleGroup]:
    """
    group global ranks by host name; host_names is indexed by global rank.
    locale ids follow the order in which host names first appear.
    """
    locale_ids: Dict[bytes, int] = {}
    members: List[List[int]] = []
    for global_rank, host_name in enumerate(host_names):
        if host_name not in locale_ids:
            locale_ids[host_name] = len(members)
            members.append([])
        members[locale_ids[host_name]].append(global_rank)

    return [LocaleGroup(locale_id, tuple(ranks)) for locale_id, ranks in enumerate(members)]


def assign_locale(host_names: Sequence[bytes], rank: int) -> LocaleAssignment:
    if not 0 <= rank < len(host_names):
        raise ValueError(f"rank [{rank}] out of range for {len(host_names)} host names")

    groups = build_locale_groups(host_names)
    for group in groups:
        if rank in group.member_ranks:
            return LocaleAssignment(
                locales=len(groups),
                locale=group.locale_id,
                locale_rank=group.member_ranks.index(rank),
                locale_size=len(group.member_ranks),
                groups=tuple(groups),
            )

    # every rank lands in exactly one group
    raise AssertionError(f"rank [{rank}] missing from locale groups")


class LocaleResolver:
    def __init__(self, substrate: Substrate) -> None:
        self.substrate = substrate

    def gather_host_names(self, identity: ProcessIdentity) -> List[bytes]:
        with checked_call(self.substrate.name, "all_gather"):
            host_names = self.substrate.all_gather(encode_host_name(identity.host_name))
            if len(host_names) != identity.size:
                raise SubstrateError(
                    "all_gather",
                    f"gathered {len(host_names)} host names from a job of size {identity.size}",
                )
        return list(host_names)

    def resolve(self, identity: ProcessIdentity) -> LocaleAssignment:
        """
        Collective: every process of the job has to call it.
        """
        host_names = self.gather_host_names(identity)
        assignment = assign_locale(host_names, identity.rank)

        logger.info(
            f"rank [{identity.rank}] on [{identity.host_name}] -> locale {assignment.locale}/{assignment.locales}, "
            f"locale rank {assignment.locale_rank}/{assignment.locale_size}"
        )
        if identity.rank == 0:
            logger.debug("locale groups: " + ", ".join(
                f"{decode_host_name(host_names[g.member_ranks[0]])}={list(g.member_ranks)}"
                for g in assignment.groups
            ))

        return assignment
