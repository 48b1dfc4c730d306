import click
import pytest
from ape.utils import ZERO_ADDRESS
from eth_utils import is_checksum_address

from proxy_deployment.confirm import _confirm_resolution
from proxy_deployment.types import ChecksumAddress


def answers(monkeypatch, *replies):
    replies = iter(replies)
    monkeypatch.setattr("builtins.input", lambda _: next(replies))


def test_confirmed_resolution(monkeypatch, capsys):
    answers(monkeypatch, "Y")
    _confirm_resolution("Box", "constructor", ["initialValue"], [42])
    assert "initialValue=42" in capsys.readouterr().out


def test_aborted_resolution(monkeypatch):
    answers(monkeypatch, "n")
    with pytest.raises(SystemExit):
        _confirm_resolution("Box", "constructor", [], [])


def test_zero_address_needs_confirmation(monkeypatch):
    answers(monkeypatch, "y", " N ")
    with pytest.raises(SystemExit):
        _confirm_resolution("ProxyAdmin", "constructor", ["initialOwner"], [ZERO_ADDRESS])


def test_checksum_address_param():
    param_type = ChecksumAddress()
    address = param_type.convert("0x" + "ab" * 20, None, None)
    assert is_checksum_address(address)
    assert address.lower() == "0x" + "ab" * 20
    with pytest.raises(click.BadParameter):
        param_type.convert("0x1234", None, None)
