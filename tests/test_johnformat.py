import struct

import pytest

from hcxkit.hccapx import (
    KEYMIC_OFFSET,
    MESSAGE_PAIR_M12E2,
    MESSAGE_PAIR_M14E4,
    MESSAGE_PAIR_M32E3,
    RECORD_SIZE,
    REPLAYCOUNT_NOT_CHECKED,
    read_hccapx,
)
from hcxkit.johnformat import (
    Hccap,
    decode_john_line,
    is_printable_essid,
    main,
    read_john,
)

HCCAP_FMT = "<36s6s6s32s32s256sii16s"
ITOA64 = b"./0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

MAC_AP = bytes.fromhex("020000000001")
MAC_STA = bytes.fromhex("020000000002")
ANONCE = bytes(range(32))
SNONCE = bytes(range(32, 64))
KEYMIC = bytes(range(0xA0, 0xB0))

KI_M1 = 0x008A
KI_M2 = 0x010A
KI_M3 = 0x13CA
KI_M4 = 0x030A


def make_eapol(key_info):
    eapol = bytearray(256)
    eapol[0] = 1
    eapol[1] = 3
    eapol[2:4] = (117).to_bytes(2, "big")
    eapol[4] = 2
    eapol[5:7] = key_info.to_bytes(2, "big")
    eapol[17:49] = SNONCE
    eapol[KEYMIC_OFFSET : KEYMIC_OFFSET + 16] = KEYMIC
    return bytes(eapol)


def pack_hccap(essid, key_info, eapol_size=121):
    return struct.pack(
        HCCAP_FMT,
        essid.ljust(36, b"\0"),
        MAC_AP,
        MAC_STA,
        SNONCE,
        ANONCE,
        make_eapol(key_info),
        eapol_size,
        2,
        KEYMIC,
    )


def encode_body(body):
    out = bytearray()
    full = body[:354]
    it = iter(full)
    for b0, b1, b2 in zip(it, it, it):
        out += bytes(
            (
                ITOA64[b0 >> 2],
                ITOA64[((b0 & 3) << 4) | (b1 >> 4)],
                ITOA64[((b1 & 0xF) << 2) | (b2 >> 6)],
                ITOA64[b2 & 0x3F],
            )
        )
    b0, b1 = body[354:]
    out += bytes(
        (
            ITOA64[b0 >> 2],
            ITOA64[((b0 & 3) << 4) | (b1 >> 4)],
            ITOA64[(b1 & 0xF) << 2],
        )
    )
    return bytes(out)


def john_line(essid, key_info):
    raw = pack_hccap(essid, key_info)
    return (
        b"$WPAPSK$"
        + essid
        + b"#"
        + encode_body(raw[36:])
        + b":020000000001:020000000002:020000000001::WPA2:x.hccap\n"
    )


def test_encoded_body_has_expected_length():
    line = john_line(b"home", KI_M2)
    body = line.split(b"#")[1].split(b":")[0]
    assert len(body) == 475
    decoded = decode_john_line(line)
    assert decoded.eapol_size == 121
    assert decoded.mac2 == MAC_STA


def test_decode_round_trip():
    decoded = decode_john_line(john_line(b"home", KI_M2))
    assert decoded == Hccap.from_bytes(pack_hccap(b"home", KI_M2))
    assert decoded.mac1 == MAC_AP
    assert decoded.nonce2 == ANONCE
    assert decoded.eapol_size == 121


def test_decode_accepts_str():
    line = john_line(b"home", KI_M2)
    assert decode_john_line(line.decode("ascii")) == decode_john_line(line)


def test_decode_rejects_line_without_tag():
    line = john_line(b"home", KI_M2).replace(b"$WPAPSK$", b"$OTHER$$")
    assert decode_john_line(line) is None


def test_decode_rejects_short_line():
    assert decode_john_line(b"abc") is None


def test_decode_rejects_long_essid():
    assert decode_john_line(john_line(b"a" * 33, KI_M2)) is None


def test_decode_rejects_wrong_body_length():
    line = john_line(b"home", KI_M2)
    head, rest = line.split(b"#")
    assert decode_john_line(head + b"#" + rest[1:]) is None


def test_decode_rejects_missing_colon():
    line = john_line(b"home", KI_M2)
    head = line.split(b":")[0]
    assert decode_john_line(head) is None


def test_hccap_from_bytes_wrong_size():
    with pytest.raises(ValueError):
        Hccap.from_bytes(bytes(10))


def test_to_record_message_two():
    record = decode_john_line(john_line(b"home", KI_M2)).to_record(False)
    assert record.message_pair == MESSAGE_PAIR_M12E2 | REPLAYCOUNT_NOT_CHECKED
    assert record.keyver == 2
    assert record.mac_ap == MAC_AP
    assert record.mac_sta == MAC_STA
    assert record.nonce_ap == ANONCE
    assert record.nonce_sta == SNONCE
    assert record.keymic == KEYMIC
    assert record.eapol_len == 121
    assert record.essid_bytes() == b"home"
    assert record.eapol[KEYMIC_OFFSET : KEYMIC_OFFSET + 16] == bytes(16)


def test_to_record_replaycount_checked():
    record = decode_john_line(john_line(b"home", KI_M2)).to_record(True)
    assert record.message_pair == MESSAGE_PAIR_M12E2


@pytest.mark.parametrize(
    "key_info, pair",
    [(KI_M3, MESSAGE_PAIR_M32E3), (KI_M4, MESSAGE_PAIR_M14E4)],
)
def test_to_record_other_messages(key_info, pair):
    record = Hccap.from_bytes(pack_hccap(b"home", key_info)).to_record(True)
    assert record.message_pair == pair


def test_to_record_rejects_message_one():
    assert Hccap.from_bytes(pack_hccap(b"home", KI_M1)).to_record(False) is None


def test_to_record_rejects_empty_essid():
    assert Hccap.from_bytes(pack_hccap(b"", KI_M2)).to_record(False) is None


@pytest.mark.parametrize(
    "essid, expected",
    [
        (b"home", True),
        (b"~ x", True),
        (b"", False),
        (b"a" * 33, False),
        (b"\x01x", False),
        (b"caf\xc3\xa9", False),
    ],
)
def test_is_printable_essid(essid, expected):
    assert is_printable_essid(essid) is expected


def test_read_john(tmp_path):
    path = tmp_path / "hashes.john"
    path.write_bytes(
        john_line(b"home", KI_M2)
        + b"garbage line here\n"
        + john_line(b"office", KI_M4)
        + john_line(b"lab", KI_M1)
    )
    records = read_john(path, False)
    assert [r.essid_bytes() for r in records] == [b"home", b"office"]


def test_main_writes_records_and_essids(tmp_path, capsys):
    src = tmp_path / "hashes.john"
    src.write_bytes(
        john_line(b"home", KI_M2) + john_line(b"caf\xc3\xa9", KI_M3)
    )
    out = tmp_path / "out.hccapx"
    essids = tmp_path / "essids.txt"
    assert main(["-o", str(out), "-e", str(essids), str(src)]) == 0
    assert out.stat().st_size == 2 * RECORD_SIZE
    records = read_hccapx(out)
    assert [r.essid_bytes() for r in records] == [b"home", b"caf\xc3\xa9"]
    assert essids.read_bytes() == b"home\n"
    assert f"2 record(s) written to {out}" in capsys.readouterr().out


def test_main_missing_input(tmp_path):
    assert main(["-o", str(tmp_path / "o"), str(tmp_path / "missing.john")]) == 1