from __future__ import annotations

from pathlib import Path

from txc_stop_index.core import hashing, json


def test_sha256_file(tmp_path: Path) -> None:
    f = tmp_path / "data.bin"
    f.write_bytes(b"abc")
    digest = hashing.sha256_file(f)
    assert digest.sha256 == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert digest.bytes == 3


def test_json_helpers(tmp_path: Path) -> None:
    obj = {"b": 1, "a": "é"}
    out = tmp_path / "sample.json"
    json.atomic_write_json(out, obj)
    assert json.read_json(out) == {"a": "é", "b": 1}
    assert out.read_text(encoding="utf-8").endswith("\n")

    compact = tmp_path / "compact.json"
    json.atomic_write_json(compact, obj, indent=None)
    assert compact.read_text(encoding="utf-8") == '{"b":1,"a":"é"}'

    assert json.stable_json_dumps(obj, indent=None) == '{"a":"é","b":1}'
