"""Conversion of captured handshake files in the wkp container to hccapx."""

from __future__ import annotations

import getopt
import os
import sys
from pathlib import Path

from hcxkit.hccapx import (
    ESSID_MAX,
    KEYMIC_OFFSET,
    HccapxRecord,
    EapolKey,
    append_records,
)

WKP_SIZE = 2622
WKP_MAGIC = b"CPWE"

_ESSID = 0x520
_ESSID_LEN = 0x540
_MAC_AP = 0x514
_MAC_STA = 0x51A
_KEYVER = 0x544
_EAPOL_SIZE = 0x548
_NONCE_AP = 0x54C
_NONCE_STA = 0x56C
_EAPOL = 0x58C
_KEYMIC = 0x68C


class WkpError(ValueError):
    """Raised for wkp data that cannot be converted."""


def parse_wkp(data: bytes) -> HccapxRecord:
    """Build an hccapx record from the first wkp block of the data."""
    if len(data) < WKP_SIZE:
        raise WkpError("error reading file")
    block = bytes(data[:WKP_SIZE])
    if block[:4] != WKP_MAGIC:
        raise WkpError("wrong magic number")
    essid_len = block[_ESSID_LEN]
    if essid_len == 0 or essid_len > ESSID_MAX:
        raise WkpError("wrong ESSID len")

    eapol = bytearray(block[_EAPOL : _EAPOL + 256])
    eapol[KEYMIC_OFFSET : KEYMIC_OFFSET + 16] = bytes(16)
    return HccapxRecord(
        # the message number itself is stored as message pair
        message_pair=EapolKey.from_bytes(block[_EAPOL:]).message_number(),
        essid_len=essid_len,
        essid=block[_ESSID : _ESSID + essid_len].ljust(ESSID_MAX, b"\0"),
        keyver=block[_KEYVER],
        keymic=block[_KEYMIC : _KEYMIC + 16],
        mac_ap=block[_MAC_AP : _MAC_AP + 6],
        nonce_ap=block[_NONCE_AP : _NONCE_AP + 32],
        mac_sta=block[_MAC_STA : _MAC_STA + 6],
        nonce_sta=block[_NONCE_STA : _NONCE_STA + 32],
        eapol_len=block[_EAPOL_SIZE],
        eapol=bytes(eapol),
    )


def read_wkp(path) -> HccapxRecord:
    """Read a wkp file and convert it."""
    try:
        size = os.stat(path).st_size
    except OSError as exc:
        raise WkpError(f"can't stat {path}") from exc
    if size % WKP_SIZE:
        raise WkpError("file corrupt")
    try:
        with open(path, "rb") as handle:
            data = handle.read(WKP_SIZE)
    except OSError as exc:
        raise WkpError(f"error opening file {path}") from exc
    return parse_wkp(data)


def _usage(name: str) -> None:
    print(
        f"usage: {name} <options> [input.wkp] [input.wkp] ...\n"
        f"       {name} <options> *.wkp\n"
        "\n"
        "options:\n"
        "-o <file> : output hccapx file\n"
        "-e <file> : output essidlist\n"
    )


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "wkp"
    try:
        opts, files = getopt.gnu_getopt(args, "o:e:hv")
    except getopt.GetoptError:
        _usage(name)
        return 1

    hcx_out = essid_out = None
    for opt, value in opts:
        if opt == "-o":
            hcx_out = value
        elif opt == "-e":
            essid_out = value
        else:
            _usage(name)
            return 1

    written = 0
    for filename in files:
        if hcx_out is None:
            continue
        try:
            record = read_wkp(filename)
        except WkpError as exc:
            print(f"{exc} {filename}", file=sys.stderr)
            print(f"error processing records from {filename}", file=sys.stderr)
            return 1
        try:
            append_records(hcx_out, [record])
            written += 1
        except OSError:
            print(f"error opening essid file {hcx_out}", file=sys.stderr)
        if essid_out is not None:
            try:
                with open(essid_out, "ab") as handle:
                    handle.write(record.essid_bytes().split(b"\0", 1)[0] + b"\n")
            except OSError:
                print(f"error opening essid file {essid_out}", file=sys.stderr)
        print(f"1 record(s) read from {filename}")

    if written > 0:
        print(f"{written} record(s) written to {hcx_out}")
    return 0