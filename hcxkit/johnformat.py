"""Reading john's $WPAPSK$ hash lines and turning them into hccapx records."""

from __future__ import annotations

import getopt
import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from hcxkit.hccapx import (
    ESSID_MAX,
    KEYMIC_OFFSET,
    MESSAGE_PAIR_M12E2,
    MESSAGE_PAIR_M14E4,
    MESSAGE_PAIR_M32E3,
    REPLAYCOUNT_NOT_CHECKED,
    EapolKey,
    HccapxRecord,
    append_records,
)

_HCCAP = struct.Struct("<36s6s6s32s32s256sii16s")
HCCAP_SIZE = _HCCAP.size

_FORMAT_TAG = b"$WPAPSK$"
_MIN_LINE = 10
_ENCODED_LEN = 475
_FULL_GROUPS_LEN = 472

_ITOA64 = b"./0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_INVALID = 0x7F
_ATOI64 = bytes(_ITOA64.find(bytes([c])) if c in _ITOA64 else _INVALID for c in range(256))

# handshake message number -> message pair stored in the record
_MESSAGE_PAIRS = {
    2: MESSAGE_PAIR_M12E2,
    3: MESSAGE_PAIR_M32E3,
    4: MESSAGE_PAIR_M14E4,
}


@dataclass(frozen=True)
class Hccap:
    """One record of the older hccap layout used inside john hash lines."""

    essid: bytes
    mac1: bytes
    mac2: bytes
    nonce1: bytes
    nonce2: bytes
    eapol: bytes
    eapol_size: int
    keyver: int
    keymic: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> "Hccap":
        if len(data) != HCCAP_SIZE:
            raise ValueError(f"hccap record must be {HCCAP_SIZE} bytes, got {len(data)}")
        return cls(*_HCCAP.unpack(bytes(data)))

    def to_record(self, replaycount_checked: bool = False) -> Optional[HccapxRecord]:
        """Convert to an hccapx record, or return None if the handshake is unusable."""
        essid = self.essid.split(b"\0", 1)[0]
        if not essid or len(essid) > ESSID_MAX:
            return None
        key = EapolKey.from_bytes(self.eapol)
        message_pair = _MESSAGE_PAIRS.get(key.message_number())
        if message_pair is None:
            return None
        if not replaycount_checked:
            message_pair |= REPLAYCOUNT_NOT_CHECKED
        eapol = bytearray(self.eapol)
        eapol[KEYMIC_OFFSET : KEYMIC_OFFSET + 16] = bytes(16)
        return HccapxRecord(
            message_pair=message_pair,
            essid_len=len(essid),
            essid=essid.ljust(ESSID_MAX, b"\0"),
            keyver=key.key_version(),
            keymic=bytes(self.keymic),
            mac_ap=bytes(self.mac1),
            nonce_ap=bytes(self.nonce2),
            mac_sta=bytes(self.mac2),
            nonce_sta=bytes(self.nonce1),
            eapol_len=self.eapol_size & 0xFFFF,
            eapol=bytes(eapol),
        )


def _decode64(encoded: bytes) -> bytes:
    values = [_ATOI64[c] for c in encoded]
    out = bytearray()
    groups = iter(values[:_FULL_GROUPS_LEN])
    for a, b, c, d in zip(groups, groups, groups, groups):
        out += bytes(
            (
                (a << 2 | b >> 4) & 0xFF,
                (b << 4 | c >> 2) & 0xFF,
                (c << 6 | d) & 0xFF,
            )
        )
    a, b, c = values[_FULL_GROUPS_LEN:]
    out += bytes(((a << 2 | b >> 4) & 0xFF, (b << 4 | c >> 2) & 0xFF))
    return bytes(out)


def decode_john_line(line: Union[bytes, str]) -> Optional[Hccap]:
    """Decode one john $WPAPSK$ line; return None when the line does not hold one."""
    if isinstance(line, str):
        line = line.encode("utf-8", "surrogateescape")
    line = line.rstrip(b"\n").rstrip(b"\r")
    if len(line) < _MIN_LINE:
        return None
    start = line.find(_FORMAT_TAG)
    if start < 0:
        return None
    start += len(_FORMAT_TAG)
    hash_at = line.rfind(b"#")
    if hash_at < 0:
        return None
    essid_len = hash_at - start
    if essid_len < 0 or essid_len > ESSID_MAX:
        return None
    end = line.find(b":", hash_at + 1)
    if end < 0:
        return None
    encoded = line[hash_at + 1 : end]
    if len(encoded) != _ENCODED_LEN:
        return None
    essid = line[start:hash_at].ljust(36, b"\0")
    return Hccap.from_bytes(essid + _decode64(encoded))


def read_john(path, replaycount_checked: bool = False) -> list[HccapxRecord]:
    """Read every usable handshake of a john hash file as hccapx records."""
    records = []
    with open(path, "rb") as handle:
        for line in handle:
            hccap = decode_john_line(line)
            if hccap is None:
                continue
            record = hccap.to_record(replaycount_checked)
            if record is not None:
                records.append(record)
    return records


def is_printable_essid(essid: bytes) -> bool:
    """Return True for a 1 to 32 byte ESSID made of printable ASCII only."""
    if not essid or len(essid) > ESSID_MAX:
        return False
    return all(0x20 <= byte <= 0x7E for byte in essid)


def _usage(name: str) -> None:
    print(
        f"usage: {name} <options> [input.john] [input.john] ...\n"
        "\n"
        "options:\n"
        "-o <file> : output hccapx file\n"
        "-e <file> : output ESSID list\n"
    )


def _process_file(filename: str, hcx_out: Optional[str], essid_out: Optional[str]) -> int:
    count = 0
    with open(filename, "rb") as handle:
        for line in handle:
            hccap = decode_john_line(line)
            if hccap is None:
                continue
            record = hccap.to_record(False)
            if record is None:
                continue
            if hcx_out is not None:
                try:
                    append_records(hcx_out, [record])
                except OSError:
                    print(f"error opening essid file {hcx_out}", file=sys.stderr)
                    continue
            if essid_out is not None:
                essid = record.essid_bytes()
                try:
                    with open(essid_out, "ab") as essid_handle:
                        if is_printable_essid(essid):
                            essid_handle.write(essid + b"\n")
                except OSError:
                    print(f"error opening essid file {essid_out}", file=sys.stderr)
                    continue
            count += 1
    return count


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "johnformat"
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

    for filename in files:
        try:
            count = _process_file(filename, hcx_out, essid_out)
        except OSError:
            print(f"unable to open database {filename}", file=sys.stderr)
            return 1
        target = hcx_out if hcx_out is not None else "(null)"
        print(f"{count} record(s) written to {target}")
    return 0