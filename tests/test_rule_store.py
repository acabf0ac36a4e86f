import os

import pytest

from connscope.actions.rule_store import RuleSetFileStore
from connscope.errors import ActionError


def test_submit_appends_once(tmp_path):
    store = RuleSetFileStore(str(tmp_path / "sets"))
    assert store.submit("proxy", "DOMAIN,example.com") is True
    assert store.submit("proxy", "IP-CIDR,1.2.3.4/32,no-resolve") is True
    assert store.submit("proxy", "DOMAIN,example.com") is False

    with open(store.path_for("proxy"), encoding="utf-8") as f:
        assert f.read() == "DOMAIN,example.com\nIP-CIDR,1.2.3.4/32,no-resolve\n"


def test_existing_file_without_trailing_newline(tmp_path):
    path = tmp_path / "direct.list"
    path.write_text("# managed by hand\nDOMAIN,a.com", encoding="utf-8")
    store = RuleSetFileStore(str(tmp_path))
    store.submit("direct", "DOMAIN,b.com")
    assert store.read_rules("direct") == ["DOMAIN,a.com", "DOMAIN,b.com"]


@pytest.mark.parametrize("name", ["../escape", "a/b", "", ".."])
def test_invalid_names_are_rejected(tmp_path, name):
    store = RuleSetFileStore(str(tmp_path))
    with pytest.raises(ActionError):
        store.submit(name, "DOMAIN,x.com")
    assert os.listdir(tmp_path) == []
