"""Configuration loading utilities for hook-deployer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/hook_deployer.json")


@dataclass
class SSHConfig:
    """Connection settings shared by every remote destination."""

    port: int = 22
    auth_method: str = "agent"  # "agent" | "password" | "key"
    password: Optional[str] = None
    key_path: Optional[str] = None
    passphrase: Optional[str] = None
    timeout: int = 20                      # 连接超时（秒）
    command_timeout: Optional[int] = None  # 单条命令总超时，None 表示不限制


@dataclass
class ExecutionConfig:
    """Settings for running operations."""

    shell: str = "/bin/sh"
    stream_output: bool = True
    command_timeout: Optional[int] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class AppConfig:
    """Top-level configuration."""

    ssh: SSHConfig = field(default_factory=SSHConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    # hook kind -> native producer name, e.g. {"fetch": "git"}
    producers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        ssh_payload = payload.get("ssh", {}) or {}
        execution_payload = payload.get("execution", {}) or {}
        logging_payload = payload.get("logging", {}) or {}

        # 过滤掉以下划线开头的注释字段
        ssh_payload = {k: v for k, v in ssh_payload.items() if not k.startswith("_")}
        execution_payload = {k: v for k, v in execution_payload.items() if not k.startswith("_")}

        return cls(
            ssh=SSHConfig(**{**SSHConfig().__dict__, **ssh_payload}),
            execution=ExecutionConfig(
                **{**ExecutionConfig().__dict__, **execution_payload}
            ),
            logging=LoggingConfig(**{**LoggingConfig().__dict__, **logging_payload}),
            producers=dict(payload.get("producers", {}) or {}),
        )


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path` or the default location.

    Environment variables (higher priority than config file):
    - HOOK_DEPLOYER_SSH_PORT: SSH port for every remote destination
    - HOOK_DEPLOYER_SSH_PASSWORD: SSH password (switches to password auth)
    - HOOK_DEPLOYER_SSH_KEY_PATH: Path to SSH private key (switches to key auth)
    - HOOK_DEPLOYER_SSH_TIMEOUT: SSH connect timeout in seconds
    - HOOK_DEPLOYER_LOG_LEVEL: Root log level
    """

    if path:
        candidate = Path(path)
        if not candidate.is_file():
            raise FileNotFoundError(f"Could not find configuration file: {candidate}")
    else:
        candidate = _DEFAULT_CONFIG_PATH

    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = AppConfig.from_dict(data)
    else:
        config = AppConfig()

    _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: AppConfig) -> None:
    env_port = os.getenv("HOOK_DEPLOYER_SSH_PORT")
    if env_port:
        config.ssh.port = int(env_port)

    env_password = os.getenv("HOOK_DEPLOYER_SSH_PASSWORD")
    if env_password:
        config.ssh.password = env_password
        config.ssh.auth_method = "password"

    env_key_path = os.getenv("HOOK_DEPLOYER_SSH_KEY_PATH")
    if env_key_path:
        config.ssh.key_path = env_key_path
        config.ssh.auth_method = "key"

    env_timeout = os.getenv("HOOK_DEPLOYER_SSH_TIMEOUT")
    if env_timeout:
        config.ssh.timeout = int(env_timeout)

    env_level = os.getenv("HOOK_DEPLOYER_LOG_LEVEL")
    if env_level:
        config.logging.level = env_level
