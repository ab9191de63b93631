import importlib.util
from pathlib import Path

import pytest

from postboard.auth.accounts import find_account_by_email
from postboard.infra.db import make_engine, make_sessionmaker

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "create_user.py"


def _load_script(tmp_path, monkeypatch):
    monkeypatch.setenv("POSTBOARD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("POSTBOARD_DATABASE_URL", raising=False)
    spec = importlib.util.spec_from_file_location("create_user", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _answers(monkeypatch, module, inputs, passwords):
    inputs = iter(inputs)
    passwords = iter(passwords)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(inputs))
    monkeypatch.setattr(module, "getpass", lambda prompt="": next(passwords))


def test_creates_account(tmp_path, monkeypatch, capsys):
    module = _load_script(tmp_path, monkeypatch)
    _answers(monkeypatch, module, ["admin", "admin@b.com"], ["Adm1nPass", "Adm1nPass"])

    module.main()

    assert "OK -> account" in capsys.readouterr().out
    engine = make_engine(module.DATABASE_URL)
    with make_sessionmaker(engine)() as db:
        assert find_account_by_email(db, "admin@b.com").username == "admin"
    engine.dispose()


def test_mismatched_passwords_abort(tmp_path, monkeypatch):
    module = _load_script(tmp_path, monkeypatch)
    _answers(monkeypatch, module, ["admin", "admin@b.com"], ["Adm1nPass", "other"])

    with pytest.raises(SystemExit, match="Passwords do not match"):
        module.main()


def test_weak_password_aborts(tmp_path, monkeypatch):
    module = _load_script(tmp_path, monkeypatch)
    _answers(monkeypatch, module, ["admin", "admin@b.com"], ["weak", "weak"])

    with pytest.raises(SystemExit, match="at least 6 chars"):
        module.main()
