import json

import pytest
from eth_account import Account

from tvl_pipeline.tools.decrypt_keystore import main

PRIVATE_KEY = "0x" + "4c" * 32


@pytest.fixture
def keystore(tmp_path):
    encrypted = Account.encrypt(PRIVATE_KEY, "hunter2", kdf="pbkdf2", iterations=1024)
    path = tmp_path / "keystore.json"
    path.write_text(json.dumps(encrypted))
    return path


def test_prints_private_key(keystore, capsys):
    assert main([str(keystore), "hunter2"]) == 0

    assert capsys.readouterr().out.strip() == PRIVATE_KEY


def test_wrong_password(keystore, capsys):
    assert main([str(keystore), "wrong"]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Failed to decrypt keystore:")


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.json"), "hunter2"]) == 1

    assert "Keystore file does not exist" in capsys.readouterr().err


def test_not_a_keystore(tmp_path, capsys):
    path = tmp_path / "garbage.json"
    path.write_text("not json")

    assert main([str(path), "hunter2"]) == 1
    assert "Failed to decrypt keystore" in capsys.readouterr().err


def test_missing_arguments_report_failure(capsys):
    assert main([]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Failed to decrypt keystore:")
    assert "required" in captured.err


def test_extra_arguments_report_failure(keystore, capsys):
    assert main([str(keystore), "hunter2", "surplus"]) == 1

    assert capsys.readouterr().err.startswith("Failed to decrypt keystore:")
