import json
from pathlib import Path
from typing import Any, Dict, Optional

from ta_assistant.utils.logger import get_logger

logger = get_logger(__name__)


def load_json_file(path: Optional[Path]) -> Dict[str, Any]:
    """
    Read a JSON object from ``path``.

    Returns an empty dict when no path is configured or the file is missing.
    """
    if path is None:
        return {}

    path = Path(path)
    if not path.exists():
        logger.warning(f"Configured file not found: {path}")
        return {}

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data
