"""AI Feedback System API.

Settings come from the environment. A ``.env`` file next to the package or
at the project root fills in variables that are not already set.
"""

from pathlib import Path

from dotenv import load_dotenv

_PACKAGE_DIR = Path(__file__).resolve().parent

for _env_file in (_PACKAGE_DIR / ".env", _PACKAGE_DIR.parent / ".env"):
    if _env_file.is_file():
        load_dotenv(dotenv_path=_env_file, override=False)
