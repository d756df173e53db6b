import struct

import pytest

from hcxkit.hccapx import RECORD_SIZE, HccapxRecord, read_hccapx
from hcxkit.hcx2ssid import find_oui_database, main, SYSTEM_OUI_DATABASE

_EAPOL = struct.Struct(">BBHBHHQ32s16s8s8s16sH")

MSG1 = 0x008A
MSG2 = 0x010A


def make_record(mac_ap=b"\x02\x00\x00\x00\x00\x01", mac_sta=b"\x02\x00\x00\x00\x00\xaa",
                essid=b"testnet", key_info=MSG2, message_pair=0, nonce_fill=0x11):
    eapol = _EAPOL.pack(2, 3, 117, 2, key_info, 16, 1, bytes([nonce_fill]) * 32,
                        bytes(16), bytes(8), bytes(8), bytes(16), 22)
    return HccapxRecord(
        message_pair=message_pair,
        essid_len=len(essid),
        essid=essid.ljust(32, b"\0"),
        keyver=2,
        mac_ap=mac_ap,
        nonce_ap=bytes([nonce_fill]) * 32,
        mac_sta=mac_sta,
        nonce_sta=bytes([0x22]) * 32,
        eapol_len=121,
        eapol=eapol.ljust(256, b"\0"),
    )


def write_input(path, records):
    path.write_bytes(b"".join(r.to_bytes() for r in records))
    return str(path)


def test_find_oui_database_prefers_user_copy(tmp_path):
    user = tmp_path / ".hcxtools" / "oui.txt"
    user.parent.mkdir()
    user.write_text("x")
    assert find_oui_database(tmp_path) == user


def test_find_oui_database_without_user_copy(tmp_path):
    found = find_oui_database(tmp_path)
    assert found in (None, SYSTEM_OUI_DATABASE)


def test_no_input_returns_success():
    assert main([]) == 0


def test_help_returns_failure(capsys):
    assert main(["-h"]) == 1
    assert "usage" in capsys.readouterr().out


@pytest.mark.parametrize(
    "args",
    [
        ["-E", "a" * 33],
        ["-X", "a" * 33],
        ["-x", "33"],
        ["-A", "0200000000"],
        ["-S", "zz0000000001"],
        ["-O", "0200"],
    ],
)
def test_bad_option_values(args):
    assert main(args) == 1


def test_split_by_mac_ap(tmp_path):
    first = make_record()
    second = make_record(mac_ap=b"\x02\x00\x00\x00\x00\x02")
    src = write_input(tmp_path / "in.hccapx", [first, second])
    out = tmp_path / "out"
    out.mkdir()
    assert main(["-i", src, "-p", str(out), "-a"]) == 0
    assert read_hccapx(out / "020000000001.hccapx") == [first]
    assert read_hccapx(out / "020000000002.hccapx") == [second]


def test_split_by_essid_uses_hex_names(tmp_path):
    record = make_record(essid=b"ab")
    src = write_input(tmp_path / "in.hccapx", [record])
    assert main(["-i", src, "-p", str(tmp_path), "-e"]) == 0
    assert read_hccapx(tmp_path / (b"ab".hex() + ".hccapx")) == [record]


def test_single_mac_sta(tmp_path):
    wanted = make_record()
    other = make_record(mac_sta=b"\x02\x00\x00\x00\x00\xbb")
    src = write_input(tmp_path / "in.hccapx", [wanted, other])
    assert main(["-i", src, "-p", str(tmp_path), "-S", "0200000000aa"]) == 0
    assert read_hccapx(tmp_path / "0200000000aa.hccapx") == [wanted]


def test_mac_list_needs_output(tmp_path):
    src = write_input(tmp_path / "in.hccapx", [make_record()])
    assert main(["-i", src, "-p", str(tmp_path), "-L", "list.txt"]) == 1


def test_mac_list(tmp_path):
    wanted = make_record()
    other = make_record(mac_ap=b"\x02\x00\x00\x00\x00\x09")
    src = write_input(tmp_path / "in.hccapx", [wanted, other])
    (tmp_path / "list.txt").write_text("020000000001\nshort\n")
    assert main(["-i", src, "-p", str(tmp_path), "-L", "list.txt", "-l", "out.hccapx"]) == 0
    assert read_hccapx(tmp_path / "out.hccapx") == [wanted]


def test_remove_duplicates(tmp_path, capsys):
    record = make_record()
    src = write_input(tmp_path / "in.hccapx", [record, record])
    assert main(["-i", src, "-p", str(tmp_path), "-D", "dedup.hccapx"]) == 0
    assert read_hccapx(tmp_path / "dedup.hccapx") == [record]
    assert "1 records removed" in capsys.readouterr().out


def test_key_version_files(tmp_path):
    record = make_record()
    src = write_input(tmp_path / "in.hccapx", [record])
    assert main(["-i", src, "-p", str(tmp_path), "-k", "base"]) == 0
    assert read_hccapx(tmp_path / "base.2.hccapx") == [record]


def test_message_pair_filter(tmp_path):
    m12 = make_record(message_pair=0)
    m32 = make_record(message_pair=2, nonce_fill=0x33)
    src = write_input(tmp_path / "in.hccapx", [m12, m32])
    assert main(["-i", src, "-p", str(tmp_path), "-2", "mp.hccapx"]) == 0
    assert read_hccapx(tmp_path / "mp.hccapx") == [m32]


def test_flawless_strips_message_one(tmp_path, capsys):
    good = make_record()
    bad = make_record(key_info=MSG1, nonce_fill=0x44)
    src = write_input(tmp_path / "in.hccapx", [good, bad])
    assert main(["-i", src, "-p", str(tmp_path), "-F", "ok.hccapx"]) == 0
    assert read_hccapx(tmp_path / "ok.hccapx") == [good]
    assert "1 damaged records stripped" in capsys.readouterr().out


def test_vendor_name(tmp_path, monkeypatch):
    home = tmp_path / "home"
    db = home / ".hcxtools" / "oui.txt"
    db.parent.mkdir(parents=True)
    db.write_text("020000     (base 16)\t\tExampleCorp\n")
    monkeypatch.setenv("HOME", str(home))
    record = make_record()
    src = write_input(tmp_path / "in.hccapx", [record])
    assert main(["-i", src, "-p", str(tmp_path), "-V", "ExampleCorp"]) == 0
    assert read_hccapx(tmp_path / "ExampleCorp.hccapx") == [record]


def test_corrupt_input_writes_nothing(tmp_path):
    src = tmp_path / "in.hccapx"
    src.write_bytes(bytes(RECORD_SIZE + 1))
    assert main(["-i", str(src), "-p", str(tmp_path), "-a"]) == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == ["in.hccapx"]