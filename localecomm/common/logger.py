# -*- coding: utf-8 -*-
"""
Description   : package logger, every record carries the global rank of its process
"""
import os
import logging

from localecomm.common.constants import ENV_LOG_LEVEL, UNSET

LOGGER_NAME = "localecomm"

_FORMAT = "%(asctime)s | rank %(rank)s | %(name)s:%(lineno)d | %(levelname)s | %(message)s"


class RankFilter(logging.Filter):
	"""
	inject the global rank into log records, -1 until the identity is known
	"""
	def __init__(self) -> None:
		super().__init__()
		self.rank = UNSET

	def filter(self, record: logging.LogRecord) -> bool:
		record.rank = self.rank
		return True


_rank_filter = RankFilter()


def set_log_rank(rank: int):
	_rank_filter.rank = rank


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
	"""
	return a logger under the package hierarchy, configure the package logger on first use
	"""
	root = logging.getLogger(LOGGER_NAME)
	if not root.handlers:
		level = os.getenv(ENV_LOG_LEVEL, "WARNING").upper()
		root.setLevel(getattr(logging, level, logging.WARNING))
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter(_FORMAT))
		handler.addFilter(_rank_filter)
		root.addHandler(handler)

	return logging.getLogger(name)


logger = get_logger()
