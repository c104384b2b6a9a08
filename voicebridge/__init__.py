"""Voice pipeline: speech-to-text, chat completion and a C boundary for mobile hosts."""
from __future__ import annotations

from dotenv import find_dotenv, load_dotenv


def load_env_files() -> None:
    """Load ``.env`` then ``.env.local`` found from the working directory upwards.

    ``.env`` only fills gaps in the process environment; ``.env.local`` overrides everything.
    """

    for filename, override in ((".env", False), (".env.local", True)):
        path = find_dotenv(filename, usecwd=True)
        if path:
            load_dotenv(path, override=override)


load_env_files()

__version__ = "0.1.0"
