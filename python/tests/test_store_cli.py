import json

import pytest

import store_cli


@pytest.fixture(autouse=True)
def mock_env(monkeypatch, mocker, tmp_path):
    for name in ("EE_CHAINSTORE_API_URL", "EE_R1FS_API_URL", "R1_MOCK_R1FS_SEED"):
        monkeypatch.delenv(name, raising=False)
    seed = tmp_path / "cstore.json"
    seed.write_text(json.dumps([{"key": "jobs:1", "value": {"status": "queued"}}, {"key": "jobs:2", "value": 2}]))
    monkeypatch.setenv("R1_MOCK_CSTORE_SEED", str(seed))
    mocker.patch("cstore.env.load_dotenv")
    mocker.patch("r1fs.env.load_dotenv")


def test_get_prints_item(capsys):
    assert store_cli.main(["--mode", "mock", "get", "jobs:1"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["key"] == "jobs:1"
    assert out["value"] == {"status": "queued"}


def test_list_with_limit(capsys):
    assert store_cli.main(["--mode", "mock", "list", "jobs:", "--limit", "1"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert [i["key"] for i in out["items"]] == ["jobs:1"]
    assert out["next_cursor"] == "jobs:1"


def test_add_yaml_prints_cid(capsys, tmp_path):
    doc = tmp_path / "deploy.json"
    doc.write_text(json.dumps({"replicas": 3}))
    assert store_cli.main(["--mode", "mock", "add-yaml", str(doc)]) == 0
    assert json.loads(capsys.readouterr().out)["cid"]


def test_store_error_exits_1(capsys):
    assert store_cli.main(["--mode", "mock", "get-yaml", "missing"]) == 1
    assert "get_yaml reported error" in capsys.readouterr().err


def test_http_mode_without_url_exits_1(capsys):
    assert store_cli.main(["--mode", "http", "get", "foo"]) == 1
    assert "EE_CHAINSTORE_API_URL" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert store_cli.main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
