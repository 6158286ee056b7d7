"""Provider configuration resolved once at the program boundary."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError
from .ignore import ExclusionStrategy

# Default time budget for a native tool invocation, in seconds
DEFAULT_TIMEOUT = 5.0

ENV_CARGO_PATH = "SBOMGRAPH_CARGO_PATH"
ENV_GO_PATH = "SBOMGRAPH_GO_PATH"
ENV_TIMEOUT = "SBOMGRAPH_TIMEOUT"
ENV_IGNORE_STRATEGY = "SBOMGRAPH_IGNORE_STRATEGY"


@dataclass
class ProviderConfig:
    """
    Configuration threaded into providers and process runners.

    Attributes:
        cargo_executable: Explicit path to cargo (None = look up on PATH)
        go_executable: Explicit path to go (None = look up on PATH)
        timeout: Seconds a native tool may run before it is killed
        ignore_strategy: How excluded dependencies propagate to their subtrees
    """

    cargo_executable: Optional[str] = None
    go_executable: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    ignore_strategy: ExclusionStrategy = ExclusionStrategy.INSENSITIVE

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ConfigurationError: If a value is out of range
        """
        if self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be a positive number of seconds, got {self.timeout}")
        if not isinstance(self.ignore_strategy, ExclusionStrategy):
            raise ConfigurationError(f"Invalid ignore strategy: {self.ignore_strategy!r}")

    def executable_for(self, tool: str) -> Optional[str]:
        """Return the configured override path for a tool name, if any."""
        overrides = {
            "cargo": self.cargo_executable,
            "go": self.go_executable,
        }
        return overrides.get(tool)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProviderConfig":
        """
        Build a configuration from environment variables.

        Only the CLI calls this; library code receives the resulting object.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        timeout = DEFAULT_TIMEOUT
        raw_timeout = env.get(ENV_TIMEOUT)
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ConfigurationError(f"{ENV_TIMEOUT} must be a number of seconds, got '{raw_timeout}'")

        strategy = ExclusionStrategy.INSENSITIVE
        raw_strategy = env.get(ENV_IGNORE_STRATEGY)
        if raw_strategy:
            strategy = ExclusionStrategy.from_string(raw_strategy)

        config = cls(
            cargo_executable=env.get(ENV_CARGO_PATH) or None,
            go_executable=env.get(ENV_GO_PATH) or None,
            timeout=timeout,
            ignore_strategy=strategy,
        )
        config.validate()
        return config
