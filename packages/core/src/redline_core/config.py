import os
from pathlib import Path
from typing import Optional

import yaml

from redline_core.comments.models import COMMENT_TYPES

DEFAULT_CONFIG: dict = {
    "author": "you",  # identity stamped on local comments
    "default_comment_type": "note",
    "exclude": [],  # fnmatch patterns or directory names to hide from diff listings
    "clamp_anchors": True,  # False = refuse to anchor out-of-range lines instead of clamping
}


def load_config(config_path: str = ".redline.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .redline.yml in the current directory
      3. REDLINE_AUTHOR environment variable
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    author = os.environ.get("REDLINE_AUTHOR")
    if author:
        config["author"] = author

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if config["default_comment_type"] not in COMMENT_TYPES:
        raise ValueError(
            f"Unknown default_comment_type: {config['default_comment_type']!r}. "
            f"Choose one of {', '.join(COMMENT_TYPES)}."
        )

    return config
