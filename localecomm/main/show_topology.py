# -*- coding: utf-8 -*-
"""
Description   : print the topology of every process of a job

usage:
	torchrun --nproc_per_node 4 -m localecomm.main.show_topology
	mpirun -n 4 python -m localecomm.main.show_topology --backend mpi
	python -m localecomm.main.show_topology --dist_url tcp://10.0.0.1:9000 --rank 0 --world_size 8
"""
from localecomm.common.logger import logger
from localecomm.distributed import new_connection
from localecomm.utils.arguments import parse_args


def main(argv=None):
	_, config = parse_args(argv)
	logger.info(f"starting with config: {config}")

	# finalized on success only; a failed substrate call exits without teardown
	with new_connection(config) as conn:
		print(
			f"host [{conn.hostname()}] rank {conn.rank}/{conn.size} "
			f"locale {conn.locale}/{conn.locales} locale_rank {conn.locale_rank}/{conn.locale_size}",
			flush=True,
		)
		conn.locale_barrier()
		conn.barrier()


if __name__ == "__main__":
	main()
