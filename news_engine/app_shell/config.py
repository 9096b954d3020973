import logging
import os
import sys
from pathlib import Path

from news_engine.rules.models import Rules

RULES_ENV_VAR = "NEWS_ENGINE_RULES"
DEFAULT_RULES_PATH = "rules.yaml"


def resolve_rules_path(explicit: str | None = None) -> Path:
    """Command line value first, then NEWS_ENGINE_RULES, then ./rules.yaml."""
    return Path(explicit or os.environ.get(RULES_ENV_VAR) or DEFAULT_RULES_PATH)


def configure_logging(rules: Rules) -> None:
    logging.basicConfig(level=rules.logging.level, format=rules.logging.format, force=True)


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    """
    missing = [env_var for env_var in rules.ops.required_env if env_var not in os.environ]

    if missing:
        print(
            f"CRITICAL: Missing required environment variables: {', '.join(missing)}",
            file=sys.stderr,
        )
        sys.exit(1)
