"""
CLI tests with the controller client replaced by a fake.
"""
from unittest import mock

from click.testing import CliRunner

from connscope.cli.main import cli
from connscope.errors import ActionError

SNAPSHOT = {
    "uploadTotal": 10,
    "downloadTotal": 20,
    "connections": [
        {"id": "a", "upload": 1, "download": 2,
         "metadata": {"host": "example.com", "destinationIP": "93.184.216.34", "destinationPort": "443"}},
        {"id": "b", "upload": 3, "download": 4,
         "metadata": {"host": "", "destinationIP": "1.2.3.4", "destinationPort": "53"}},
    ],
}


def _fake_client(fail=()):
    client = mock.Mock()
    client.get_connections.return_value = SNAPSHOT

    def terminate(identity):
        if identity in fail:
            raise ActionError("refused")

    client.terminate_connection.side_effect = terminate
    return client


def _invoke(args, client):
    runner = CliRunner()
    with mock.patch("connscope.cli.actions.KernelClient", return_value=client):
        return runner.invoke(cli, args, catch_exceptions=False)


def test_columns_command():
    result = CliRunner().invoke(cli, ["columns"])
    assert result.exit_code == 0
    assert "dl_speed" in result.output
    assert "DL Speed" in result.output


def test_close_command():
    client = _fake_client()
    result = _invoke(["close", "a"], client)
    assert result.exit_code == 0
    assert "Closed a" in result.output
    client.terminate_connection.assert_called_once_with("a")


def test_close_unknown_connection_fails():
    result = _invoke(["close", "zzz"], _fake_client())
    assert result.exit_code != 0
    assert "not live" in result.output


def test_close_all_reports_failures():
    client = _fake_client(fail={"b"})
    result = _invoke(["close-all"], client)
    assert result.exit_code == 1
    assert "Closed 1 of 2 connection(s)" in result.output
    assert client.terminate_connection.call_count == 2


def test_add_rule_writes_rule_set(tmp_path):
    client = _fake_client()
    result = _invoke(["--rule-set-dir", str(tmp_path), "add-rule", "b", "direct"], client)
    assert result.exit_code == 0
    assert "IP-CIDR,1.2.3.4/32,no-resolve" in result.output
    assert (tmp_path / "direct.list").read_text(encoding="utf-8") == "IP-CIDR,1.2.3.4/32,no-resolve\n"
    client.refresh_rule_provider.assert_called_once_with("direct")


def test_fetch_failure_is_reported():
    client = _fake_client()
    client.get_connections.side_effect = ActionError("GET /connections failed")
    result = _invoke(["close", "a"], client)
    assert result.exit_code != 0
    assert "Failed to fetch connections" in result.output


def test_watch_with_dummy_backend():
    runner = CliRunner()
    result = runner.invoke(cli, ["watch", "--backend", "dummy", "--duration", "1",
                                 "--interval", "0.2", "--columns", "host,dl_speed"])
    assert result.exit_code == 0, result.output
    assert "Duration reached" in result.output


def test_watch_rejects_unknown_column():
    result = CliRunner().invoke(cli, ["watch", "--backend", "dummy", "--columns", "host,bogus"])
    assert result.exit_code != 0
    assert "bogus" in result.output
