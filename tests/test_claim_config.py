"""
Tests for the claim worker ecosystem generator script.
"""

import json

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'scripts'))

import generate_claim_config  # noqa: E402
from service_proxy.app.pool.backend_pool import RpcLists  # noqa: E402
from shared.errors import ConfigurationError  # noqa: E402


@pytest.fixture
def keypair_root(tmp_path):
    root = tmp_path / "keys"
    root.mkdir()
    for name in ["wallet-b.json", "wallet-a.json", "wallet-c.key.json"]:
        (root / name).write_text("[]")
    (root / "nested").mkdir()
    return root


@pytest.fixture
def rpc_lists():
    return RpcLists(
        default_rpc_list=["https://d1.example/", "https://d2.example/"],
        submit_rpc_list=["https://s1.example/"],
    )


def test_build_apps_round_robins_rpc_urls(keypair_root, rpc_lists, tmp_path):
    apps = generate_claim_config.build_apps(keypair_root, rpc_lists, cwd=tmp_path)

    assert [app["name"] for app in apps] == ["claim-wallet-a", "claim-wallet-b", "claim-wallet-c"]
    assert apps[0]["args"] == f"{keypair_root / 'wallet-a.json'} https://d1.example/ https://s1.example/"
    assert apps[1]["args"] == f"{keypair_root / 'wallet-b.json'} https://d2.example/ https://s1.example/"
    assert apps[2]["args"] == f"{keypair_root / 'wallet-c.key.json'} https://d1.example/ https://s1.example/"
    for app in apps:
        assert app["script"] == "./claim.sh"
        assert app["interpreter"] == "/bin/bash"
        assert app["autorestart"] is False
        assert app["cwd"] == str(tmp_path)


def test_build_apps_requires_directory(tmp_path, rpc_lists):
    with pytest.raises(ConfigurationError):
        generate_claim_config.build_apps(tmp_path / "missing", rpc_lists)


def test_build_apps_requires_submit_list(keypair_root):
    lists = RpcLists(default_rpc_list=["https://d1.example/"])
    with pytest.raises(ConfigurationError):
        generate_claim_config.build_apps(keypair_root, lists)


def test_main_writes_output(keypair_root, tmp_path):
    rpc_list = tmp_path / "rpc_list.json"
    rpc_list.write_text(json.dumps({
        "default_rpc_list": ["https://d1.example/"],
        "submit_rpc_list": ["https://s1.example/"],
    }))
    output = tmp_path / "ecosystem.json"

    exit_code = generate_claim_config.main([
        "--keypair-root", str(keypair_root),
        "--rpc-list-file", str(rpc_list),
        "--output", str(output),
    ])

    assert exit_code == 0
    document = json.loads(output.read_text())
    assert len(document["apps"]) == 3


def test_main_without_keypair_root(monkeypatch, tmp_path):
    monkeypatch.delenv("KEYPAIR_ROOT", raising=False)
    monkeypatch.delenv("RPC_PROXY_KEYPAIR_ROOT", raising=False)
    monkeypatch.chdir(tmp_path)

    assert generate_claim_config.main([]) == 2
