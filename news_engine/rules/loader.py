import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from news_engine.rules.models import Rules

# First ```yaml ... ``` block of a markdown rules document
_FENCE = re.compile(r"^[ \t]*```yaml[^\n]*\n(.*?)^[ \t]*```", re.MULTILINE | re.DOTALL)


def _parse(text: str) -> Any:
    match = _FENCE.search(text)
    source = match.group(1) if match else text
    try:
        return yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e


def load_rules(path: Path) -> Rules:
    """
    Read lifecycle, deletion and permission rules from YAML or a markdown doc.

    FileNotFoundError when the file is absent, ValueError for anything that
    does not parse or validate.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    data = _parse(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Rules file {path.name} must contain a YAML mapping")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed for {path.name}:\n{e}") from e
