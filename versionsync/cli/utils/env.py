from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """Load the nearest .env file, walking up from ``start`` (default: cwd).

    Values already present in the environment win over the file.

    Returns:
        The file that was loaded, if any
    """
    current_path = Path(start) if start else Path.cwd()
    for parent in [current_path] + list(current_path.parents):
        dotenv_path = parent / ".env"
        if dotenv_path.is_file():
            load_dotenv(dotenv_path=dotenv_path, override=False)
            return dotenv_path
    return None
