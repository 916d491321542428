#!/usr/bin/env python
# -*- coding: utf-8 -*-

import pytest

from localecomm.common.config import ConnectionConfig
from localecomm.common.constants import ENV_BACKEND, ENV_HOSTNAME
from localecomm.distributed.substrate import create_substrate
from localecomm.utils.arguments import parse_args
from localecomm.utils.file import read_yaml_file, write_yaml_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_BACKEND, raising=False)
    monkeypatch.delenv(ENV_HOSTNAME, raising=False)


def test_defaults():
    config = ConnectionConfig()
    assert config.backend == "gloo"
    assert config.init_method == "env://"
    assert (config.rank, config.world_size) == (-1, -1)
    assert config.hostname is None


@pytest.mark.parametrize("kwargs", [
    {"backend": "ucc"},
    {"timeout": 0},
    {"world_size": 0},
    {"rank": -2},
    {"rank": 4, "world_size": 4},
    {"hostname": ""},
    {"cuda_id": -2},
])
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        ConnectionConfig(**kwargs)


def test_update_skips_none():
    config = ConnectionConfig().update(backend="mpi", hostname=None)
    assert config.backend == "mpi"
    assert config.hostname is None

    with pytest.raises(ValueError):
        ConnectionConfig().update(ranks=4)


def test_from_yaml(tmp_path):
    fname = tmp_path / "conn.yaml"
    write_yaml_file(fname, {"backend": "nccl", "world_size": 8, "rank": 3, "hostname": "node7"})

    config = ConnectionConfig.from_yaml(str(fname))
    assert (config.backend, config.world_size, config.rank, config.hostname) == ("nccl", 8, 3, "node7")


def test_read_empty_yaml(tmp_path):
    fname = tmp_path / "empty.yaml"
    fname.write_text("")
    assert vars(read_yaml_file(fname)) == {}


def test_read_yaml_rejects_lists(tmp_path):
    fname = tmp_path / "list.yaml"
    fname.write_text("- gloo\n- nccl\n")
    with pytest.raises(ValueError):
        read_yaml_file(fname)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv(ENV_BACKEND, "mpi")
    monkeypatch.setenv(ENV_HOSTNAME, "fake-node")
    config = ConnectionConfig().with_env()
    assert (config.backend, config.hostname) == ("mpi", "fake-node")


def test_parse_args_precedence(tmp_path, monkeypatch):
    fname = tmp_path / "conn.yaml"
    write_yaml_file(fname, {"backend": "nccl", "timeout": 30, "hostname": "from-file"})
    monkeypatch.setenv(ENV_HOSTNAME, "from-env")

    _, config = parse_args([
        "--config", str(fname),
        "--dist_url", "tcp://127.0.0.1:9000",
        "--rank", "1",
        "--world_size", "2",
        "--timeout", "10",
        "--cuda_id", "3",
    ])
    assert config.backend == "nccl"
    assert config.hostname == "from-env"
    assert config.timeout == 10
    assert config.init_method == "tcp://127.0.0.1:9000"
    assert (config.rank, config.world_size) == (1, 2)
    assert config.cuda_id == 3


def test_parse_args_defaults():
    _, config = parse_args([])
    assert config == ConnectionConfig()


def test_parse_args_rejects_unknown_backend():
    with pytest.raises(SystemExit):
        parse_args(["--backend", "tcp"])


def test_create_torch_substrate():
    substrate = create_substrate(ConnectionConfig(backend="gloo", hostname="emulated", timeout=5))
    assert substrate.name == "gloo"
    assert substrate.host_name() == "emulated"
    assert substrate.timeout.total_seconds() == 5


def test_create_torch_substrate_cuda_id(monkeypatch):
    monkeypatch.setenv("LOCAL_RANK", "2")
    assert create_substrate(ConnectionConfig(backend="nccl")).cuda_id == 2
    assert create_substrate(ConnectionConfig(backend="nccl", cuda_id=5)).cuda_id == 5

    monkeypatch.delenv("LOCAL_RANK")
    assert create_substrate(ConnectionConfig(backend="nccl")).cuda_id == 0
