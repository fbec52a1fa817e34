"""
Step command configuration.

Loads .epicflow/steps.yaml to decide which command runs for each check
step. If no config file exists, the Makefile-style defaults are used.

Example steps.yaml:

    steps:
      tests: php artisan test
      lint: vendor/bin/pint --test
      typecheck: npm run types

Templates may reference {repo} (repository root). The vcs.* and pr.create
steps are built in and cannot be overridden here.
"""

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from epicflow.lib.constants import CHECK_STEPS, CONFIG_DIR, STEPS_YAML

logger = logging.getLogger(__name__)


DEFAULT_STEP_COMMANDS = {
    "tests": "make test",
    "lint": "make lint",
    "typecheck": "make typecheck",
}


@dataclass
class StepsConfig:
    """Check step commands from steps.yaml."""
    commands: dict[str, str] = field(default_factory=lambda: DEFAULT_STEP_COMMANDS.copy())


def load_steps_config(repo_path: Path | None) -> StepsConfig:
    """Load steps.yaml and return StepsConfig.

    If repo_path is None or the file doesn't exist, returns defaults.
    Unknown step names in the file are ignored with a warning.
    """
    if repo_path is None:
        return StepsConfig()

    config_path = repo_path / CONFIG_DIR / STEPS_YAML
    if not config_path.exists():
        return StepsConfig()

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return StepsConfig()

    commands = DEFAULT_STEP_COMMANDS.copy()
    if isinstance(data, dict) and isinstance(data.get("steps"), dict):
        for step, command in data["steps"].items():
            if step not in CHECK_STEPS:
                logger.warning(f"Ignoring unknown step '{step}' in {config_path}")
                continue
            commands[step] = str(command)
    return StepsConfig(commands=commands)


def get_step_command(config: StepsConfig, step: str, context: dict[str, str] | None = None) -> list[str]:
    """Build the argv for a check step.

    Raises:
        ValueError: If step is unknown or the template references a missing variable.

    Example:
        >>> get_step_command(StepsConfig(), "lint")
        ['make', 'lint']
    """
    if step not in config.commands:
        raise ValueError(f"Unknown step: {step}")

    template = config.commands[step]
    parts = shlex.split(template)
    try:
        return [part.format(**(context or {})) for part in parts]
    except KeyError as e:
        raise ValueError(f"Step '{step}' template needs variable {e}") from None
