import os
import stat

import pytest

from nobuild.utils.settings import Settings


@pytest.fixture(autouse=True)
def reset_settings():
    yield
    Settings().reset()


@pytest.fixture
def stub_compiler(tmp_path, monkeypatch):
    """
    Creates executable shell scripts in a temporary directory that is prepended to the PATH.
    Returns a function that gets the name and the body of the script and returns its path.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", "{}{}{}".format(bin_dir, os.pathsep, os.environ.get("PATH", "")))

    def create(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return create
