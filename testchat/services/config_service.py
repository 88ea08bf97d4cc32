"""Test runner and integration settings, layered over environment defaults."""
from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.catalog import MethodDescriptor
from ..core.coordinator import ExecutionOptions
from ..core.settings_store import SettingsStore

TEST_CONFIG_KEY = "test_config"
INTEGRATIONS_KEY = "integrations"
UPLOADED_METHODS_KEY = "uploaded_methods"

DEFAULT_EXECUTION_TIMEOUT = 300


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def execution_timeout() -> int:
    return int(os.getenv("TESTCHAT_EXECUTION_TIMEOUT", str(DEFAULT_EXECUTION_TIMEOUT)))


class TestConfig(BaseModel):
    __test__ = False

    test_root_path: str = Field("", description="Root of the Java TestNG project")
    headless_mode: bool = True
    test_runner_flags: str = Field("", description="Extra flags appended to every test command")
    maven_command: str = Field("mvn test -Dtest=", description="Command prefix; Class#method is appended")
    test_output_dir: str = "target/test-output"
    container_port: str = ""
    environment: str = "local"

    @classmethod
    def from_env(cls) -> "TestConfig":
        return cls(
            test_root_path=os.getenv("TESTCHAT_TEST_ROOT", ""),
            headless_mode=_env_flag("TESTCHAT_HEADLESS", "1"),
            test_runner_flags=os.getenv("TESTCHAT_RUNNER_FLAGS", ""),
            maven_command=os.getenv("TESTCHAT_MAVEN_COMMAND", "mvn test -Dtest="),
            test_output_dir=os.getenv("TESTCHAT_OUTPUT_DIR", "target/test-output"),
            container_port=os.getenv("TESTCHAT_CONTAINER_PORT", ""),
            environment=os.getenv("TESTCHAT_ENVIRONMENT", "local"),
        )

    def execution_options(self) -> ExecutionOptions:
        return ExecutionOptions(
            headless=self.headless_mode,
            extra_flags=self.test_runner_flags,
            working_directory=self.test_root_path,
            output_directory=self.test_output_dir,
        )


class IntegrationSettings(BaseModel):
    slack_bot_token: str = ""
    slack_channel: str = "#qa-reports"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    use_gemini: bool = False

    @classmethod
    def from_env(cls) -> "IntegrationSettings":
        return cls(
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN", ""),
            slack_channel=os.getenv("SLACK_CHANNEL", "#qa-reports"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            use_gemini=bool(os.getenv("GEMINI_API_KEY")),
        )

    def redacted(self) -> Dict[str, Any]:
        data = self.model_dump()
        for key in ("slack_bot_token", "gemini_api_key"):
            if data[key]:
                data[key] = "****" + data[key][-4:]
        return data


def _merged(defaults: BaseModel, stored: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    data = defaults.model_dump()
    if stored:
        data.update({key: value for key, value in stored.items() if key in data})
    return data


def load_test_config(store: SettingsStore) -> TestConfig:
    return TestConfig(**_merged(TestConfig.from_env(), store.get(TEST_CONFIG_KEY)))


def save_test_config(store: SettingsStore, config: TestConfig) -> TestConfig:
    store.set(TEST_CONFIG_KEY, config.model_dump())
    return config


def load_integrations(store: SettingsStore) -> IntegrationSettings:
    return IntegrationSettings(**_merged(IntegrationSettings.from_env(), store.get(INTEGRATIONS_KEY)))


def save_integrations(store: SettingsStore, settings: IntegrationSettings) -> IntegrationSettings:
    store.set(INTEGRATIONS_KEY, settings.model_dump())
    return settings


def load_uploaded_methods(store: SettingsStore) -> List[MethodDescriptor]:
    return [MethodDescriptor.from_dict(item) for item in store.get(UPLOADED_METHODS_KEY, [])]


def save_uploaded_methods(store: SettingsStore, methods: List[MethodDescriptor]) -> None:
    store.set(UPLOADED_METHODS_KEY, [method.to_dict() for method in methods])


def clear_uploaded_methods(store: SettingsStore) -> None:
    store.delete(UPLOADED_METHODS_KEY)
