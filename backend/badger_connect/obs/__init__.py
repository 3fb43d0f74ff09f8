"""Logging, metrics and health wiring for the HTTP app."""

from __future__ import annotations

from fastapi import FastAPI

from badger_connect.obs import logging as obs_logging
from badger_connect.obs import middleware
from badger_connect.settings import settings

_installed: set[int] = set()


def init(app: FastAPI) -> None:
	"""Configure JSON logging and instrument ``app``; repeated calls are no-ops."""
	if not settings.obs_enabled or id(app) in _installed:
		return
	obs_logging.configure_logging()
	middleware.install(app)
	_installed.add(id(app))


__all__ = ["init"]
