#!/usr/bin/env python
# -*- coding: utf-8 -*-

from typing import Any


class Scope:
	def __init__(
			self,
			name: str,
			size: int,
			rank: int,
			handle: Any,
			backend: str,
			level: int = 0,
			parent_name: str = None,
		):
		"""
		a communication scope: a set of ranks that run collectives together.

		handle is the substrate object behind the scope,
		torch.distributed ProcessGroup or mpi4py MPI.Comm
		level 0 is the job-wide scope, level 1 a scope split from it
		"""
		self.name = name

		self.size = size
		self.rank = rank

		self.handle = handle
		self.backend = backend

		self.level = level
		self.parent_name = parent_name
		if self.level == 0 and self.parent_name is not None:
			raise RuntimeError(
				"Top level scope should not have parent scope"
			)
		if self.level > 0 and self.parent_name is None:
			raise RuntimeError(
				"Sub scope should have a parent scope"
			)
		if not 0 <= self.rank < self.size:
			raise RuntimeError(
				f"rank [{self.rank}] out of scope [{self.name}] of size [{self.size}]"
			)

	def __repr__(self) -> str:
		return f"Scope(name={self.name!r}, rank={self.rank}, size={self.size}, backend={self.backend!r})"
