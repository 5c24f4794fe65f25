from pathlib import Path
from urllib.parse import unquote

from pgdiff.utils import encode_key, write_text


def test_encode_key_plain_keys_unchanged() -> None:
    assert encode_key("JIRA-123") == "JIRA-123"
    assert encode_key("v1.2_rc") == "v1.2_rc"


def test_encode_key_no_path_separators() -> None:
    assert "/" not in encode_key("../../etc/passwd")
    assert encode_key("../../etc/passwd") == "..%2F..%2Fetc%2Fpasswd"


def test_encode_key_distinct_keys_stay_distinct() -> None:
    keys = ["release/1", "release 1", "release_1", "release%2F1", "rélease"]
    encoded = [encode_key(k) for k in keys]
    assert len(set(encoded)) == len(keys)
    assert [unquote(e) for e in encoded] == keys


def test_write_text_normalizes_newlines(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "summary.md"
    write_text(out, "a\r\nb\rc\n")
    assert out.read_bytes() == b"a\nb\nc\n"
