# -*- coding: utf-8 -*-
"""
Description   : yaml config files
"""
import yaml
from pathlib import Path
from argparse import Namespace

def read_yaml_file(fname):
	"""
	return namespace, an empty file gives an empty namespace
	"""
	fname = ensure_path(fname)
	with fname.open('r', encoding='utf-8') as fid:
		contents = yaml.safe_load(fid.read())
	if contents is None:
		contents = {}
	if not isinstance(contents, dict):
		raise ValueError(f"config file [{fname}] should contain a mapping")
	return Namespace(**contents)


def write_yaml_file(fname, data):
	fname = ensure_path(fname)
	with fname.open("w", encoding="utf-8") as fid:
		yaml.safe_dump(data, fid)


def ensure_path(path):
	"""Ensure string is converted to a Path.

	path (Any): Anything. If string, it's converted to Path.
	RETURNS: Path or original argument.
	"""
	if isinstance(path, str):
		return Path(path)
	else:
		return path
