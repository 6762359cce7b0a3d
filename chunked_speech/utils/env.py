from __future__ import annotations

from dotenv import load_dotenv as dotenv_load_dotenv


def load_dotenv(env_file: str | None) -> bool:
    """Load engine settings from a dotenv file if one is given.

    Variables already present in the environment win over the file.
    Returns True when the file existed and was read.
    """

    if not env_file:
        return False

    return dotenv_load_dotenv(env_file, override=False)
