import base64
import json

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from pydantic import ValidationError

from tyrbackup.codec import (
    MIN_CONTAINER_LEN,
    decode,
    encode,
    join_container,
    split_container,
)
from tyrbackup.errors import ContainerTooShortError, MalformedPayloadError, UnsupportedVersionError
from tyrbackup.models import SCHEMA_VERSION, ConfigSnapshot

WIRE_KEYS = {
    "version", "timestamp", "password", "peers", "useDefaultPeers", "autoStart",
    "mailAddress", "publicKey", "includesDatabase", "onboardingCompleted",
}

peer_uris = st.from_regex(r"(tcp|tls|quic)://[a-z0-9.-]{1,20}:[0-9]{1,5}", fullmatch=True)
optional_text = st.one_of(st.none(), st.text(min_size=1, max_size=40))

snapshots = st.builds(
    ConfigSnapshot,
    created_at=st.integers(min_value=0, max_value=2**53),
    auth_secret=optional_text,
    custom_peers=st.lists(peer_uris, max_size=5),
    use_default_peers=st.booleans(),
    auto_start_enabled=st.booleans(),
    identity_address=optional_text,
    identity_public_key=optional_text,
    onboarding_completed=st.booleans(),
    embedded_blob=st.one_of(st.none(), st.binary(max_size=512)),
)


def payload_of(snapshot: ConfigSnapshot) -> dict:
    return json.loads(encode(snapshot))

def as_bytes(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


@settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(snapshot=snapshots)
def test_decode_inverts_encode(snapshot: ConfigSnapshot):
    assert decode(encode(snapshot)) == snapshot

def test_encode_uses_wire_keys(full_snapshot):
    payload = payload_of(full_snapshot)

    assert set(payload) == WIRE_KEYS | {"databaseData"}
    assert payload["version"] == SCHEMA_VERSION
    assert payload["timestamp"] == 1_700_000_000_000
    assert payload["peers"] == "\n".join(full_snapshot.custom_peers)
    assert payload["includesDatabase"] is True
    assert base64.b64decode(payload["databaseData"]) == full_snapshot.embedded_blob

def test_absent_fields_encode_as_empty_strings():
    payload = payload_of(ConfigSnapshot())

    assert set(payload) == WIRE_KEYS
    assert payload["password"] == ""
    assert payload["mailAddress"] == ""
    assert payload["publicKey"] == ""
    assert payload["peers"] == ""
    assert payload["includesDatabase"] is False

def test_encode_is_canonical(full_snapshot):
    assert encode(full_snapshot) == encode(full_snapshot.model_copy())
    text = encode(full_snapshot).decode("utf-8")
    assert ", " not in text and ": " not in text

def test_empty_blob_and_no_blob_stay_distinct():
    empty = decode(encode(ConfigSnapshot(embedded_blob=b"")))
    absent = decode(encode(ConfigSnapshot()))

    assert empty.embedded_blob == b"" and empty.includes_database
    assert absent.embedded_blob is None and not absent.includes_database

def test_missing_version_is_malformed(full_snapshot):
    payload = payload_of(full_snapshot)
    del payload["version"]

    with pytest.raises(MalformedPayloadError):
        decode(as_bytes(payload))

def test_newer_version_is_unsupported(full_snapshot):
    payload = payload_of(full_snapshot)
    payload["version"] = SCHEMA_VERSION + 1

    with pytest.raises(UnsupportedVersionError):
        decode(as_bytes(payload))

def test_newer_version_wins_over_unknown_shape():
    payload = {"version": SCHEMA_VERSION + 1, "somethingNew": [1, 2, 3]}

    with pytest.raises(UnsupportedVersionError):
        decode(as_bytes(payload))

@pytest.mark.parametrize("version", [True, "1", 1.0, 0, -1, None])
def test_bad_versions_are_malformed(full_snapshot, version):
    payload = payload_of(full_snapshot)
    payload["version"] = version

    with pytest.raises(MalformedPayloadError):
        decode(as_bytes(payload))

@pytest.mark.parametrize("key, value", [
    ("timestamp", 1.5),
    ("timestamp", "1700000000000"),
    ("useDefaultPeers", "true"),
    ("autoStart", 1),
    ("password", None),
    ("peers", ["tcp://a:1"]),
    ("includesDatabase", "yes"),
    ("databaseData", "not base64!!"),
])
def test_mistyped_fields_are_malformed(full_snapshot, key, value):
    payload = payload_of(full_snapshot)
    payload[key] = value

    with pytest.raises(MalformedPayloadError):
        decode(as_bytes(payload))

@pytest.mark.parametrize("key", ["timestamp", "useDefaultPeers", "autoStart"])
def test_missing_required_fields_are_malformed(full_snapshot, key):
    payload = payload_of(full_snapshot)
    del payload[key]

    with pytest.raises(MalformedPayloadError):
        decode(as_bytes(payload))

def test_flagged_database_without_data_decodes_as_absent(full_snapshot):
    payload = payload_of(full_snapshot)
    del payload["databaseData"]

    snapshot = decode(as_bytes(payload))

    assert snapshot.embedded_blob is None
    assert snapshot.includes_database is False
    assert snapshot.custom_peers == full_snapshot.custom_peers

def test_flagged_database_with_empty_data_stays_included():
    payload = payload_of(ConfigSnapshot())
    payload["includesDatabase"] = True
    payload["databaseData"] = ""

    assert decode(as_bytes(payload)).embedded_blob == b""

@pytest.mark.parametrize("data", [b"", b"not json", b"\xff\xfe\x00", b"[1, 2]", b'"text"'])
def test_non_object_payloads_are_malformed(data):
    with pytest.raises(MalformedPayloadError):
        decode(data)

def test_malformed_error_does_not_name_the_field(full_snapshot):
    payload = payload_of(full_snapshot)
    payload["autoStart"] = "maybe"

    with pytest.raises(MalformedPayloadError) as excinfo:
        decode(as_bytes(payload))

    assert str(excinfo.value) == MalformedPayloadError.default_message
    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__

def test_optional_keys_fall_back_to_defaults():
    snapshot = decode(as_bytes({
        "version": SCHEMA_VERSION,
        "timestamp": 42,
        "useDefaultPeers": True,
        "autoStart": False,
    }))

    assert snapshot.created_at == 42
    assert snapshot.auth_secret is None
    assert snapshot.custom_peers == []
    assert snapshot.onboarding_completed is True
    assert snapshot.embedded_blob is None

def test_unknown_keys_and_unflagged_data_are_ignored(full_snapshot):
    payload = payload_of(ConfigSnapshot())
    payload["futureField"] = {"nested": True}
    payload["databaseData"] = base64.b64encode(b"stale").decode("ascii")

    assert decode(as_bytes(payload)).embedded_blob is None

def test_peer_list_is_trimmed():
    payload = payload_of(ConfigSnapshot())
    payload["peers"] = "tcp://a.example:1\n\n  tls://b.example:2  \n"

    assert decode(as_bytes(payload)).custom_peers == ["tcp://a.example:1", "tls://b.example:2"]

def test_snapshot_normalises_and_validates():
    snapshot = ConfigSnapshot(auth_secret="", identity_address="", custom_peers=["  tcp://a.example:1 "])
    assert snapshot.auth_secret is None
    assert snapshot.identity_address is None
    assert snapshot.custom_peers == ["tcp://a.example:1"]

    with pytest.raises(ValidationError):
        ConfigSnapshot(custom_peers=["tcp://a.example:1\ntcp://b.example:2"])
    with pytest.raises(ValidationError):
        ConfigSnapshot(custom_peers=[""])
    with pytest.raises(ValidationError):
        ConfigSnapshot(schema_version=SCHEMA_VERSION + 1)

def test_split_container_layout():
    data = bytes(range(100))
    salt, nonce, ciphertext = split_container(data)

    assert salt == data[:32]
    assert nonce == data[32:44]
    assert ciphertext == data[44:]
    assert join_container(salt, nonce, ciphertext) == data

def test_split_container_minimum_length():
    salt, nonce, ciphertext = split_container(b"\x01" * MIN_CONTAINER_LEN)
    assert MIN_CONTAINER_LEN == 60
    assert len(ciphertext) == 16

    with pytest.raises(ContainerTooShortError):
        split_container(b"\x01" * (MIN_CONTAINER_LEN - 1))
    with pytest.raises(ContainerTooShortError):
        split_container(b"")
