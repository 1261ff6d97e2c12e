"""
Centralized environment variable loader.

Loads the repository-root .env file so every entry point (API server,
indexing script) sees the same configuration.

Should be imported at the start of any main entry point.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_loaded = False


def load_env(override: bool = False) -> None:
    """
    Load environment variables from .env files.

    Searches for and loads .env files in the following order:
    1. repository root .env
    2. current working directory .env

    Args:
        override: Whether values in .env files replace variables that are
            already set in the process environment
    """
    global _loaded
    if _loaded:
        return

    root_dir = Path(__file__).resolve().parent.parent.parent
    env_files = [root_dir / ".env", Path.cwd() / ".env"]

    seen = set()
    for env_file in env_files:
        if env_file in seen or not env_file.exists():
            continue
        seen.add(env_file)
        load_dotenv(env_file, override=override)
        logger.info(f"Loaded environment variables from {env_file}")

    _loaded = True
