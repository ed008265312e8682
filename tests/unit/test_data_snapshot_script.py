"""Unit tests for the data_snapshot command line script."""

import importlib.util
import sys
from pathlib import Path

import pytest

from tradeback.infrastructure.config import Settings

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "data_snapshot.py"


@pytest.fixture
def data_snapshot():
    spec = importlib.util.spec_from_file_location("data_snapshot", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestMemoryBackendRefused:
    """The script has nothing to export from, or keep after, an in-memory store."""

    @pytest.mark.parametrize("action", ["export", "import"])
    def test_exits_with_usage_error(self, data_snapshot, monkeypatch, tmp_path, action):
        target = tmp_path / "backup.json"
        if action == "import":
            target.write_text('{"version": 1}', encoding="utf-8")
        monkeypatch.setattr(data_snapshot, "settings", Settings(storage_backend="memory"))
        monkeypatch.setattr(sys, "argv", ["data_snapshot.py", action, str(target)])

        with pytest.raises(SystemExit) as exc:
            data_snapshot.main()

        assert exc.value.code == 2
        if action == "export":
            assert not target.exists()
