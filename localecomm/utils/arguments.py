# -*- coding: utf-8 -*-
"""
Description   : command line arguments for launching a connection
"""
import argparse
from typing import List, Optional, Tuple

from localecomm.common.config import ConnectionConfig
from localecomm.common.constants import BACKENDS


def parse_args(argv: Optional[List[str]] = None) -> Tuple[argparse.Namespace, ConnectionConfig]:
	"""
	parse flags and build the connection config.
	precedence: defaults < yaml file < LOCALECOMM_* environment < flags
	"""
	parser = argparse.ArgumentParser(description='locale-aware process topology')
	_add_distributed_arguments(parser)

	args = parser.parse_args(argv)

	if args.config is not None:
		config = ConnectionConfig.from_yaml(args.config)
	else:
		config = ConnectionConfig()
	config = config.with_env()

	config = config.update(
		backend=args.backend,
		init_method=args.dist_url,
		rank=args.rank,
		world_size=args.world_size,
		timeout=args.timeout,
		hostname=args.hostname,
		cuda_id=args.cuda_id,
		group_name=args.group_name,
	)

	return args, config


def _add_distributed_arguments(parser):
	parser.add_argument("--config", type=str, default=None,
						help="yaml file with connection settings (default: None)")
	parser.add_argument("--group_name", type=str, default=None,
						help='prefix of scope names (default: localecomm)')
	parser.add_argument('--backend', type=str, default=None, choices=BACKENDS,
						help='collective substrate backend (default: gloo)')
	parser.add_argument('--dist_url', type=str, default=None, metavar='S',
						help='rendezvous url for torch backends, e.g. tcp://127.0.0.1:9000 (default: env://)')
	parser.add_argument('--rank', type=int, default=None, metavar='N',
						help='global rank of this process (default: from launcher environment)')
	parser.add_argument('--world_size', type=int, default=None, metavar='N',
						help='number of processes in the job (default: from launcher environment)')
	parser.add_argument('--timeout', type=float, default=None, metavar='S',
						help='collective timeout in seconds, torch backends only (default: 120)')
	parser.add_argument('--hostname', type=str, default=None,
						help='report this host name instead of the real one (default: None)')
	parser.add_argument('--cuda_id', type=int, default=None, metavar='N',
						help='cuda device of this process, nccl backend only (default: LOCAL_RANK or 0)')
