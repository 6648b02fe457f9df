"""Tests for the command-line client. None of these commands reach the network."""

import json

import pytest
from typer.testing import CliRunner

from cli.app import app
from factswap.application.token_codec import decode, encode, extract_share_token
from factswap.domain import Fact, Owner, PrivacyLevel, ShareGroup, SharePayload

runner = CliRunner()


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("FACTSWAP_HOME", str(tmp_path))
    monkeypatch.setenv("FACTSWAP_API_URL", "http://127.0.0.1:9")
    monkeypatch.setenv("FACTSWAP_PUBLIC_ORIGIN", "https://fs.example")
    (tmp_path / "profile.json").write_text(
        json.dumps(
            {
                "name": "Alex",
                "phone": "+12025550000",
                "privacy": "direct-only",
                "groups": [{"id": "g1", "name": "Work", "facts": [{"id": "f1", "text": "Backend engineer"}]}],
            }
        ),
        encoding="utf-8",
    )
    return tmp_path


def _dana_token():
    return encode(
        SharePayload(
            owner=Owner(id="u1", name="Dana"),
            groups=(ShareGroup(id="g1", name="Work", facts=(Fact(id="f1", text="Backend engineer"),)),),
            generated_at=1700000000000,
            privacy=PrivacyLevel.SECOND_DEGREE,
        )
    )


def test_share_prints_link_with_saved_privacy(home):
    result = runner.invoke(app, ["share"])

    assert result.exit_code == 0, result.output
    url = result.stdout.strip().splitlines()[0]
    assert url.startswith("https://fs.example/share?token=")
    payload = decode(extract_share_token(url))
    assert payload.owner.name == "Alex"
    assert payload.owner.phone is None
    assert payload.privacy is PrivacyLevel.DIRECT_ONLY


def test_share_privacy_override(home):
    result = runner.invoke(app, ["share", "--privacy", "public"])

    assert result.exit_code == 0, result.output
    payload = decode(extract_share_token(result.stdout))
    assert payload.owner.phone == "+12025550000"


def test_share_without_full_privacy_is_public(home, monkeypatch):
    monkeypatch.setenv("FACTSWAP_FULL_PRIVACY", "0")

    result = runner.invoke(app, ["share"])

    assert result.exit_code == 0, result.output
    payload = decode(extract_share_token(result.stdout))
    assert payload.privacy is PrivacyLevel.PUBLIC
    assert payload.owner.phone == "+12025550000"


def test_receive_adds_contact_and_lists_it(home):
    result = runner.invoke(app, ["receive", _dana_token(), "--no-reciprocal"])

    assert result.exit_code == 0, result.output
    assert "Added Dana: 1 new fact(s)." in result.stdout
    assert "second-degree" in result.stdout

    listed = runner.invoke(app, ["contacts"])
    assert listed.exit_code == 0
    assert "Dana (1 facts)" in listed.stdout


def test_receive_invalid_link_exits_non_zero(home):
    result = runner.invoke(app, ["receive", "factswap-v1:bm90IGpzb24", "--no-reciprocal"])

    assert result.exit_code == 1
    assert not (home / "contacts.json").exists()
