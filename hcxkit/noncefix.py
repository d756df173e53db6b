"""Nonce error correction: derive hccapx records with varied AP nonce bytes."""

from __future__ import annotations

import getopt
import string
import sys
from dataclasses import replace
from itertools import takewhile
from pathlib import Path
from typing import Iterable

from hcxkit.hccapx import HccapxError, HccapxRecord, append_records, read_hccapx

_NONCE_LEN = 32
_DEFAULT_MAC_AP = 0xFFFFFFFFFFFF


def nonce_matches_eapol(record: HccapxRecord) -> bool:
    """Return True when the AP nonce equals the nonce inside the EAPOL frame."""
    return record.nonce_ap == record.eapol_key().nonce


def ap_nonce_lines(records: Iterable[HccapxRecord]) -> list[str]:
    """List 'mac_ap:anonce' for records whose nonce differs from the EAPOL one."""
    ordered = sorted(records, key=lambda r: (bytes(r.mac_ap), bytes(r.nonce_ap)))
    return [
        f"{bytes(r.mac_ap).hex()}:{bytes(r.nonce_ap).hex()}"
        for r in ordered
        if not nonce_matches_eapol(r)
    ]


def correct_nonces(
    records: Iterable[HccapxRecord], mac_ap: bytes, byte_index: int, count: int
) -> list[HccapxRecord]:
    """Return count+1 copies of each matching record, stepping one nonce byte each time."""
    if not 0 <= byte_index < _NONCE_LEN:
        raise ValueError("error wrong value (only 0 > 31 allowed)")
    mac_ap = bytes(mac_ap)
    result = []
    for record in records:
        if bytes(record.mac_ap) != mac_ap or nonce_matches_eapol(record):
            continue
        nonce = bytearray(record.nonce_ap)
        for _ in range(count + 1):
            nonce[byte_index] = (nonce[byte_index] + 1) & 0xFF
            result.append(replace(record, nonce_ap=bytes(nonce)))
    return result


def _strtoul(text: str, base: int) -> int:
    """Parse the leading number of text the lenient way strtoul does."""
    rest = text.lstrip(" \t\n\v\f\r")
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if base == 16 and rest[:2].lower() == "0x" and rest[2:3] in set(string.hexdigits) - {""}:
        rest = rest[2:]
    valid = set("0123456789abcdefABCDEF"[: base if base <= 10 else 10 + (base - 10) * 2])
    digits = "".join(takewhile(lambda ch: ch in valid, rest))
    return sign * int(digits, base) if digits else 0


def _usage(name: str) -> None:
    print(
        f"usage: {name} <options>\n"
        "\n"
        "options:\n"
        "-i <file>   : input hccapx file\n"
        "-o <file>   : input hccapx file\n"
        "-a <xdigit> : mac_ap to correct\n"
        "-b <digit>  : nonce byte to correct\n"
        "-n <xdigit> : nonce hex value\n"
        "-I          : show mac_ap and anonces\n"
        "-h          : this help\n"
    )


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "noncefix"
    try:
        opts, _ = getopt.gnu_getopt(args, "i:o:a:b:n:Ivh")
    except getopt.GetoptError:
        _usage(name)
        return 1

    in_name = out_name = None
    byte_index = 0
    count = 0
    mac_ap = _DEFAULT_MAC_AP
    show_info = False
    for opt, value in opts:
        if opt == "-i":
            in_name = value
        elif opt == "-o":
            out_name = value
        elif opt == "-b":
            byte_index = _strtoul(value, 10)
            if not 0 <= byte_index < _NONCE_LEN:
                print("error wrong value (only 0 > 31 allowed)", file=sys.stderr)
                return 1
        elif opt == "-a":
            if len(value) > 12:
                print(
                    "error wrong mac_ap size (only 12 xdigit allowed: 112233aabbcc)",
                    file=sys.stderr,
                )
                return 1
            mac_ap = _strtoul(value, 16)
        elif opt == "-n":
            count = _strtoul(value, 16) & 0xFF
        elif opt == "-I":
            show_info = True
        else:
            _usage(name)
            return 1

    if in_name is None:
        print("no inputfile selected", file=sys.stderr)
        return 1

    try:
        records = read_hccapx(in_name)
    except HccapxError as exc:
        print(exc, file=sys.stderr)
        return 0
    print(f"{len(records)} records read from {in_name}")
    if not records:
        return 0

    if show_info:
        for line in ap_nonce_lines(records):
            print(line)
        return 0

    if out_name is None:
        print("no outputfile selected", file=sys.stderr)
        return 1

    mac = (mac_ap & 0xFFFFFFFFFFFF).to_bytes(6, "big")
    try:
        written = append_records(out_name, correct_nonces(records, mac, byte_index, count))
    except OSError:
        print(f"error opening file {out_name}", file=sys.stderr)
        return 0
    print(f"{written} records written")
    return 0