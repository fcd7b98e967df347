"""Tests for minting, signing and persisting repository identities."""

import json
import uuid
from pathlib import Path

import blake3
import pydantic
import pytest

from afilia.core.config import REPO_FORMAT_VERSION, SIGN_FILE_NAME
from afilia.core.exceptions import AppError, CustomErrorKind, ErrorKind, RepositoryExistsError
from afilia.models.identity import RepositoryIdentity


def test_new_identity_is_signed() -> None:
    identity = RepositoryIdentity.new("myrepo", "secret")

    assert identity.name == "myrepo"
    assert identity.id.version == 4
    assert identity.format_version == REPO_FORMAT_VERSION
    expected = blake3.blake3(f"{identity.id}:myrepo:secret".encode()).hexdigest()
    assert identity.signature == expected
    assert len(identity.signature) == 64


def test_ids_are_unique() -> None:
    ids = {RepositoryIdentity.new("same-name", "same-payload").id for _ in range(2000)}
    assert len(ids) == 2000


def test_signature_is_deterministic() -> None:
    repo_id = uuid.uuid4()
    assert RepositoryIdentity.sign(repo_id, "myrepo", "secret") == RepositoryIdentity.sign(repo_id, "myrepo", "secret")


def test_signature_changes_with_each_input() -> None:
    repo_id = uuid.uuid4()
    base = RepositoryIdentity.sign(repo_id, "myrepo", "secret")

    assert RepositoryIdentity.sign(uuid.uuid4(), "myrepo", "secret") != base
    assert RepositoryIdentity.sign(repo_id, "myrepo2", "secret") != base
    assert RepositoryIdentity.sign(repo_id, "myrepo", "secret2") != base


@pytest.mark.parametrize(("name", "payload"), [("\udcff", "secret"), ("myrepo", "\ud800")])
def test_unencodable_input_is_a_utf8_error(name: str, payload: str) -> None:
    with pytest.raises(AppError) as exc_info:
        RepositoryIdentity.sign(uuid.uuid4(), name, payload)
    assert exc_info.value.kind is ErrorKind.UTF8
    assert isinstance(exc_info.value.cause, UnicodeEncodeError)


def test_verify() -> None:
    identity = RepositoryIdentity.new("myrepo", "secret")
    assert identity.verify("secret")
    assert not identity.verify("guess")
    assert not identity.verify("")


def test_empty_name_is_rejected() -> None:
    with pytest.raises(AppError) as exc_info:
        RepositoryIdentity.new("", "secret")
    assert exc_info.value.custom_kind is CustomErrorKind.REPOSITORY_METADATA


def test_identity_is_immutable() -> None:
    identity = RepositoryIdentity.new("myrepo", "secret")
    with pytest.raises(pydantic.ValidationError):
        identity.name = "other"


def test_serialize_writes_pretty_marker(tmp_path: Path) -> None:
    identity = RepositoryIdentity.new("myrepo", "secret")

    marker_path = identity.serialize(tmp_path)

    assert marker_path == tmp_path / SIGN_FILE_NAME
    content = marker_path.read_text(encoding="utf-8")
    assert content.endswith("}\n")
    assert '\n  "uuid": ' in content
    document = json.loads(content)
    assert list(document) == ["uuid", "name", "sign", "version"]
    assert document == {
        "uuid": str(identity.id),
        "name": "myrepo",
        "sign": identity.signature,
        "version": REPO_FORMAT_VERSION,
    }
    assert "secret" not in content


def test_round_trip(tmp_path: Path) -> None:
    identity = RepositoryIdentity.new("myrepo", "secret")
    identity.serialize(tmp_path)

    loaded = RepositoryIdentity.load(tmp_path)

    assert loaded == identity
    assert loaded.verify("secret")


def test_marker_without_version_loads_as_current_format(tmp_path: Path) -> None:
    identity = RepositoryIdentity.new("myrepo", "secret")
    document = {"uuid": str(identity.id), "name": "myrepo", "sign": identity.signature}
    (tmp_path / SIGN_FILE_NAME).write_text(json.dumps(document), encoding="utf-8")

    assert RepositoryIdentity.load(tmp_path).format_version == REPO_FORMAT_VERSION


def test_serialize_does_not_overwrite(tmp_path: Path) -> None:
    first = RepositoryIdentity.new("first", "secret")
    first.serialize(tmp_path)

    with pytest.raises(RepositoryExistsError):
        RepositoryIdentity.new("second", "secret").serialize(tmp_path)

    assert RepositoryIdentity.load(tmp_path) == first


def test_serialize_overwrite(tmp_path: Path) -> None:
    RepositoryIdentity.new("first", "secret").serialize(tmp_path)
    second = RepositoryIdentity.new("second", "secret")

    second.serialize(tmp_path, overwrite=True)

    assert RepositoryIdentity.load(tmp_path) == second


def test_serialize_into_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(AppError) as exc_info:
        RepositoryIdentity.new("myrepo", "secret").serialize(tmp_path / "missing")
    assert exc_info.value.kind is ErrorKind.IO


def test_load_missing_marker(tmp_path: Path) -> None:
    with pytest.raises(AppError) as exc_info:
        RepositoryIdentity.load(tmp_path)
    assert exc_info.value.kind is ErrorKind.IO


@pytest.mark.parametrize(
    "content",
    [
        b"{not json",
        b'{"uuid": "not-a-uuid", "name": "x", "sign": "00"}',
        b'{"uuid": "6a0f1f0e-8a2b-4c57-9a51-5b2f8d7f4a10", "name": "", "sign": "' + b"a" * 64 + b'"}',
    ],
)
def test_load_malformed_marker(tmp_path: Path, content: bytes) -> None:
    (tmp_path / SIGN_FILE_NAME).write_bytes(content)
    with pytest.raises(AppError) as exc_info:
        RepositoryIdentity.load(tmp_path)
    assert exc_info.value.kind is ErrorKind.JSON


def test_load_invalid_utf8(tmp_path: Path) -> None:
    (tmp_path / SIGN_FILE_NAME).write_bytes(b'{"name": "\xff"}')
    with pytest.raises(AppError) as exc_info:
        RepositoryIdentity.load(tmp_path)
    assert exc_info.value.kind is ErrorKind.UTF8
