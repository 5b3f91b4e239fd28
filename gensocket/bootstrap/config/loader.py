import os
from pathlib import Path

CONFIG_ENV = "GENSOCKETCONFIG"


def get_configfile() -> Path | None:
    """
    Return the YAML configuration file named by the GENSOCKETCONFIG
    environment variable, or None when the variable is not set.
    """
    raw = os.getenv(CONFIG_ENV)
    if raw is None:
        return None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            f"  - Fix or unset the {CONFIG_ENV} environment variable."
        )

    return file
