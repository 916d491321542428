# -*- coding: utf-8 -*-
"""
Description   : project-level constants
"""

# fixed width of the host name buffer exchanged between ranks
MAX_HOSTNAME_LEN = 256

DEFAULT_BACKEND = "gloo"
DEFAULT_INIT_METHOD = "env://"
DEFAULT_TIMEOUT = 120	# seconds
DEFAULT_GROUP_NAME = "localecomm"

TORCH_BACKENDS = ("gloo", "nccl")
MPI_BACKEND = "mpi"
BACKENDS = TORCH_BACKENDS + (MPI_BACKEND,)

# environment overrides
ENV_LOG_LEVEL = "LOCALECOMM_LOG_LEVEL"
ENV_BACKEND = "LOCALECOMM_BACKEND"
ENV_HOSTNAME = "LOCALECOMM_HOSTNAME"
# set by torchrun per process, picks the cuda device when cuda_id is -1
ENV_LOCAL_RANK = "LOCAL_RANK"

# value of every topology field before init
UNSET = -1
