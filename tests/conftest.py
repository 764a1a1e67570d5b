import os
import shutil
import tempfile
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def isolate_user_environment():
    """Hide the user-level config file and API key for the test session.

    Tests assume defaults when no ``--config`` is given and no key in the
    environment. Both are moved aside and restored afterwards.
    """
    config_path = Path.home() / ".commit_sage" / "config.json"
    backup_dir = None
    if config_path.exists():
        backup_dir = Path(tempfile.mkdtemp(prefix="commit_sage_backup_"))
        shutil.move(str(config_path), str(backup_dir / "config.json"))
    saved_key = os.environ.pop("TOGETHER_API_KEY", None)

    try:
        yield
    finally:
        if saved_key is not None:
            os.environ["TOGETHER_API_KEY"] = saved_key
        if backup_dir is not None:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(backup_dir / "config.json"), str(config_path))
            shutil.rmtree(str(backup_dir), ignore_errors=True)
