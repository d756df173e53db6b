import pytest

from hcxkit.hccapx import HccapxRecord, append_records, read_hccapx
from hcxkit.noncefix import (
    ap_nonce_lines,
    correct_nonces,
    main,
    nonce_matches_eapol,
)

MAC_A = bytes.fromhex("020000000001")
MAC_B = bytes.fromhex("020000000002")
NONCE_1 = bytes(range(32))
NONCE_2 = bytes(range(100, 132))


def make_record(mac_ap, nonce_ap, eapol_nonce):
    eapol = bytearray(256)
    eapol[17:49] = eapol_nonce
    return HccapxRecord(mac_ap=mac_ap, nonce_ap=nonce_ap, eapol=bytes(eapol))


def test_nonce_matches_eapol_true():
    assert nonce_matches_eapol(make_record(MAC_A, NONCE_1, NONCE_1)) is True


def test_nonce_matches_eapol_false():
    assert nonce_matches_eapol(make_record(MAC_A, NONCE_1, NONCE_2)) is False


def test_ap_nonce_lines_sorted_and_filtered():
    records = [
        make_record(MAC_B, NONCE_1, NONCE_2),
        make_record(MAC_A, NONCE_2, NONCE_1),
        make_record(MAC_A, NONCE_1, NONCE_1),
    ]
    assert ap_nonce_lines(records) == [
        MAC_A.hex() + ":" + NONCE_2.hex(),
        MAC_B.hex() + ":" + NONCE_1.hex(),
    ]


def test_correct_nonces_steps_byte():
    original = make_record(MAC_A, NONCE_1, NONCE_2)
    result = correct_nonces([original], MAC_A, 5, 2)
    assert len(result) == 3
    assert [r.nonce_ap[5] for r in result] == [NONCE_1[5] + 1, NONCE_1[5] + 2, NONCE_1[5] + 3]
    for record in result:
        assert record.nonce_ap[:5] == NONCE_1[:5]
        assert record.nonce_ap[6:] == NONCE_1[6:]
        assert record.mac_ap == MAC_A
    assert original.nonce_ap == NONCE_1


def test_correct_nonces_wraps():
    nonce = bytes([0xFF]) + bytes(31)
    result = correct_nonces([make_record(MAC_A, nonce, NONCE_2)], MAC_A, 0, 0)
    assert [r.nonce_ap[0] for r in result] == [0]


def test_correct_nonces_skips_other_macs_and_matching():
    records = [
        make_record(MAC_B, NONCE_1, NONCE_2),
        make_record(MAC_A, NONCE_1, NONCE_1),
    ]
    assert correct_nonces(records, MAC_A, 0, 3) == []


def test_correct_nonces_bad_index():
    with pytest.raises(ValueError):
        correct_nonces([], MAC_A, 32, 0)


def test_main_info(tmp_path, capsys):
    src = tmp_path / "in.hccapx"
    append_records(src, [make_record(MAC_A, NONCE_1, NONCE_2)])
    assert main(["-i", str(src), "-I"]) == 0
    out = capsys.readouterr().out
    assert f"1 records read from {src}" in out
    assert MAC_A.hex() + ":" + NONCE_1.hex() in out


def test_main_writes_corrections(tmp_path, capsys):
    src = tmp_path / "in.hccapx"
    dst = tmp_path / "out.hccapx"
    append_records(
        src,
        [make_record(MAC_A, NONCE_1, NONCE_2), make_record(MAC_B, NONCE_1, NONCE_2)],
    )
    assert main(["-i", str(src), "-o", str(dst), "-a", MAC_A.hex(), "-b", "31", "-n", "3"]) == 0
    written = read_hccapx(dst)
    assert len(written) == 4
    assert all(r.mac_ap == MAC_A for r in written)
    assert [r.nonce_ap[31] for r in written] == [NONCE_1[31] + k for k in (1, 2, 3, 4)]
    assert "4 records written" in capsys.readouterr().out


def test_main_requires_input():
    assert main(["-I"]) == 1


def test_main_requires_output(tmp_path):
    src = tmp_path / "in.hccapx"
    append_records(src, [make_record(MAC_A, NONCE_1, NONCE_2)])
    assert main(["-i", str(src)]) == 1


def test_main_rejects_bad_byte():
    assert main(["-i", "x", "-b", "40"]) == 1


def test_main_rejects_long_mac():
    assert main(["-i", "x", "-a", "0200000000011"]) == 1