"""Shared fixtures for the PyConstVal test suite."""

import io

import pytest

from pyconstval.analysis.diagnostics import CollectingSink
from pyconstval.analysis.nodes import TreeBuilder
from pyconstval.logging import ConstValLogger, LogLevel, get_logger, set_logger
from pyconstval.models.java_lang import java_lang_registry


@pytest.fixture(autouse=True)
def quiet_logger():
    """A global logger writing nowhere visible, restored after each test."""
    previous = get_logger()
    logger = ConstValLogger(level=LogLevel.QUIET, color=False, stream=io.StringIO())
    set_logger(logger)
    yield logger
    set_logger(previous)


@pytest.fixture
def builder():
    return TreeBuilder()


@pytest.fixture
def sink():
    return CollectingSink()


@pytest.fixture
def registry():
    return java_lang_registry()
