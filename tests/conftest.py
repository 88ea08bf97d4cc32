"""Shared fixtures: small catalogs, a scripted executor and an isolated settings store."""
import threading
import time

import pytest

from testchat.core.catalog import SAMPLE_METHODS, MethodCatalog, MethodDescriptor
from testchat.core.coordinator import CommandResult
from testchat.core.settings_store import SettingsStore


class ScriptedExecutor:
    """Executor double: returns scripted results per ``Class#method`` and records call order."""

    def __init__(self, results=None, delay=0.0):
        self.results = results or {}
        self.delay = delay
        self.calls = []
        self.options = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def run(self, class_name, method_name, options):
        reference = f"{class_name}#{method_name}"
        with self._lock:
            self.calls.append(reference)
            self.options.append(options)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            result = self.results.get(reference, CommandResult(exit_code=0, stdout="BUILD SUCCESS", command=reference))
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def two_method_catalog():
    return MethodCatalog([
        MethodDescriptor(
            id="1",
            display_name="Create Customer",
            description="",
            class_name="CustomerTests",
            method_name="createCustomer",
            keywords=("create", "customer"),
        ),
        MethodDescriptor(
            id="2",
            display_name="Create Job",
            description="",
            class_name="JobTests",
            method_name="createJob",
            keywords=("create", "job"),
        ),
    ])


@pytest.fixture
def sample_catalog():
    return MethodCatalog(SAMPLE_METHODS)


@pytest.fixture
def executor():
    return ScriptedExecutor()


@pytest.fixture
def settings(tmp_path):
    return SettingsStore(str(tmp_path / "settings.db"))
