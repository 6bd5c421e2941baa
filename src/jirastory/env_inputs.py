"""CI platform adapter: read action inputs from the environment, write outputs.

GitHub Actions exposes ``with:`` inputs as ``INPUT_<NAME>`` variables and
collects step outputs from the file named by ``GITHUB_OUTPUT``. Outside of
Actions the same inputs can be given as ``JIRA_STORY_<NAME>`` variables or in
a ``.env`` file.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .config import KNOWN_INPUTS
from .logging import get_logger

ACTIONS_PREFIX = "INPUT_"
ENV_PREFIX = "JIRA_STORY_"
DOTENV_LOCATIONS = (".env", ".env.local")


@dataclass
class EnvInputsConfig:
    load_dotenv: bool = True
    dotenv_path: str | None = None
    prefixes: tuple[str, ...] = (ACTIONS_PREFIX, ENV_PREFIX)


class ActionEnvironment:
    """Inputs and outputs of one action run."""

    def __init__(
        self,
        config: EnvInputsConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.config = config or EnvInputsConfig()
        self.logger = get_logger()
        self._dotenv_loaded = False
        if self.config.load_dotenv:
            self._load_dotenv()
        # read after .env so its values are visible
        self._environ = environ if environ is not None else os.environ

    def _load_dotenv(self) -> None:
        candidates: Iterable[str] = (
            (self.config.dotenv_path,) if self.config.dotenv_path else DOTENV_LOCATIONS
        )
        for location in candidates:
            env_path = Path(location)
            if env_path.exists():
                # never override what the runner already set
                load_dotenv(str(env_path), override=False)
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                break

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def is_github_actions(self) -> bool:
        return self._environ.get("GITHUB_ACTIONS") == "true"

    def get_input(self, name: str) -> str:
        for prefix in self.config.prefixes:
            value = self._environ.get(f"{prefix}{name.replace(' ', '_').upper()}")
            if value is not None and value.strip():
                return value.strip()
        return ""

    def collect_inputs(self, names: Iterable[str] = KNOWN_INPUTS) -> dict[str, str]:
        found: dict[str, str] = {}
        for name in names:
            value = self.get_input(name)
            if value:
                found[name] = value
        return found

    def set_output(self, name: str, value: str) -> None:
        """Publish a step output; falls back to stdout outside of Actions."""
        output_file = self._environ.get("GITHUB_OUTPUT")
        if not output_file:
            print(f"{name}={value}")
            return
        with open(output_file, "a", encoding="utf-8") as fh:
            if "\n" in value or "\r" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                fh.write(f"{name}={value}\n")
        self.logger.debug(f"Set output {name}={value}", output=name)


__all__ = ["ActionEnvironment", "EnvInputsConfig", "ACTIONS_PREFIX", "ENV_PREFIX"]
