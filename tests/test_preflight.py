"""Tests for the host guard and root check."""

from unittest.mock import patch

from fedtune import preflight
from fedtune.preflight import check_host, check_root, current_hostname, product_uuid

from conftest import FakeExecutor, fail, ok

UUID = "4C4C4544-0042-3510-8052-B4C04F4E3332"


def _host(name: str) -> FakeExecutor:
    return FakeExecutor({("hostnamectl", "--static"): ok(name + "\n")})


def _uuid_root(tmp_path, value: str = UUID):
    p = tmp_path / "sys/class/dmi/id/product_uuid"
    p.parent.mkdir(parents=True)
    p.write_text(value + "\n")
    return tmp_path


def test_matching_host_passes():
    assert check_host("zer0sum", _host("zer0sum")) is None


def test_host_mismatch_refuses():
    err = check_host("zer0sum", _host("buildbox"))
    assert err == "Refusing to run: host mismatch (expected zer0sum, got buildbox)"


def test_hostname_falls_back_to_socket():
    executor = FakeExecutor({("hostnamectl",): fail(returncode=127)})
    with patch.object(preflight.socket, "gethostname", return_value="zer0sum.lan"):
        assert current_hostname(executor) == "zer0sum"
        assert check_host("zer0sum", executor) is None


def test_empty_hostnamectl_output_falls_back_to_socket():
    with patch.object(preflight.socket, "gethostname", return_value="laptop"):
        assert current_hostname(_host("")) == "laptop"


def test_uuid_pin_matches_case_insensitively(tmp_path):
    root = _uuid_root(tmp_path)
    assert check_host("zer0sum", _host("zer0sum"), UUID.lower(), root) is None


def test_uuid_pin_mismatch(tmp_path):
    root = _uuid_root(tmp_path, "00000000-0000-0000-0000-000000000000")
    err = check_host("zer0sum", _host("zer0sum"), UUID, root)
    assert err == "Refusing to run: hardware UUID mismatch"


def test_uuid_pin_unreadable(tmp_path):
    assert product_uuid(tmp_path) == ""
    assert check_host("zer0sum", _host("zer0sum"), UUID, tmp_path) is not None


def test_no_uuid_pin_ignores_dmi(tmp_path):
    assert check_host("zer0sum", _host("zer0sum"), None, tmp_path) is None


def test_check_root():
    with patch.object(preflight.os, "geteuid", return_value=0):
        assert check_root() is None
    with patch.object(preflight.os, "geteuid", return_value=1000):
        assert "must be root" in check_root()
