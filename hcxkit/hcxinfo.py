"""Statistics and per-record field listings for hccapx files."""

from __future__ import annotations

import enum
import getopt
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from hcxkit.hccapx import (
    ESSID_MAX,
    REPLAYCOUNT_NOT_CHECKED,
    EapolKey,
    HccapxError,
    HccapxRecord,
    read_hccapx,
)
from hcxkit.johnformat import read_john

_FORCED_FLAG = 0x10
_LITTLE_ENDIAN_FLAG = 0x20
_BIG_ENDIAN_FLAG = 0x40
_GREEN = "\x1b[32m"
_RESET = "\x1b[0m"

# (mask, value) selecting the six message pair counters
_PAIR_MASKS = ((0x03, 0), (0x03, 1), (0x03, 2), (0x07, 3), (0x07, 4), (0x07, 5))
_PAIR_NAMES = ("M12E2", "M14E4", "M32E2", "M32E3", "M34E3", "M34E4")


class InfoField(enum.IntFlag):
    """Fields that can be listed for each record."""

    MAC_AP = 0x001
    MAC_STA = 0x002
    MESSAGE_PAIR = 0x004
    NONCE_AP = 0x008
    NONCE_STA = 0x010
    KEYMIC = 0x020
    REPLAYCOUNT = 0x040
    KEYVER = 0x080
    KEYTYPE = 0x100
    ESSID_LEN = 0x200
    ESSID = 0x400


def format_essid(record: HccapxRecord) -> str:
    """Show the ESSID as text, as $HEX[...] when unprintable, or as a placeholder."""
    length = min(record.essid_len, ESSID_MAX)
    essid = bytes(record.essid[:length])
    if length and all(0x20 <= byte <= 0x7E for byte in essid):
        return essid.decode("ascii")
    if length:
        return f"$HEX[{essid.hex()}]"
    return "<empty ESSID>"


_Formatter = Callable[[HccapxRecord, EapolKey], str]

_FIELD_ORDER: tuple[tuple[InfoField, _Formatter], ...] = (
    (InfoField.MAC_AP, lambda r, k: bytes(r.mac_ap).hex()),
    (InfoField.NONCE_AP, lambda r, k: bytes(r.nonce_ap).hex()),
    (InfoField.MAC_STA, lambda r, k: bytes(r.mac_sta).hex()),
    (InfoField.NONCE_STA, lambda r, k: bytes(r.nonce_sta).hex()),
    (InfoField.KEYMIC, lambda r, k: bytes(r.keymic).hex()),
    (InfoField.REPLAYCOUNT, lambda r, k: f"{k.replay_count:016x}"),
    (InfoField.KEYVER, lambda r, k: str(k.key_version())),
    (InfoField.KEYTYPE, lambda r, k: str(k.message_number())),
    (InfoField.MESSAGE_PAIR, lambda r, k: f"{r.message_pair:02x}"),
    (InfoField.ESSID_LEN, lambda r, k: f"{r.essid_len:02d}"),
    (InfoField.ESSID, lambda r, k: format_essid(r)),
)


def format_record(record: HccapxRecord, fields) -> str:
    """Join the selected fields of a record with ':' in a fixed order."""
    selected = int(fields)
    key = record.eapol_key()
    return ":".join(fmt(record, key) for flag, fmt in _FIELD_ORDER if selected & flag)


@dataclass(frozen=True)
class Summary:
    """Counts gathered over all records of a file."""

    total: int
    from_clients: int
    little_endian: int
    big_endian: int
    zeroed_essid: int
    eapol_2001: int
    eapol_2004: int
    wpa1: int
    wpa2: int
    wpa2_cmac: int
    group_key: int
    message_pairs: tuple[int, ...]
    not_checked: tuple[int, ...]
    nonce_corrections: bool

    def format(self) -> str:
        lines = [
            f"total hashes read from file.......: {self.total}",
            f"{_GREEN}handshakes from clients...........: {self.from_clients}{_RESET}",
            f"little endian router detected.....: {self.little_endian}",
            f"big endian router detected........: {self.big_endian}",
            f"zeroed ESSID......................: {self.zeroed_essid}",
            f"802.1x Version 2001...............: {self.eapol_2001}",
            f"802.1x Version 2004...............: {self.eapol_2004}",
            f"WPA1 RC4 Cipher, HMAC-MD5.........: {self.wpa1}",
            f"WPA2 AES Cipher, HMAC-SHA1........: {self.wpa2}",
            f"WPA2 AES Cipher, AES-128-CMAC.....: {self.wpa2_cmac}",
            f"group key flag set................: {self.group_key}",
        ]
        lines += [
            f"message pair {name}................: {count} ({unchecked} not replaycount checked)"
            for name, count, unchecked in zip(_PAIR_NAMES, self.message_pairs, self.not_checked)
        ]
        if self.nonce_corrections:
            lines.append(f"{_GREEN}nonce-error-corrections is working on that file{_RESET}")
        return "\n".join(lines) + "\n"


def summarize(
    records: Iterable[HccapxRecord],
    own_nonce: Optional[bytes] = None,
    own_replaycount: Optional[int] = None,
) -> Summary:
    """Count key versions, message pairs and flags over the records.

    own_nonce and own_replaycount identify handshakes forced by the capturing
    tool; with no own nonce only the forced flag of the message pair counts.
    """
    ordered = sorted(records, key=lambda r: bytes(r.nonce_ap))
    counts: Counter[str] = Counter()
    pairs = [0] * len(_PAIR_MASKS)
    unchecked = [0] * len(_PAIR_MASKS)
    previous = bytes(32)
    corrections = False
    own = bytes(own_nonce) if own_nonce is not None else None

    for record in ordered:
        key = record.eapol_key()
        nonce = bytes(record.nonce_ap)
        mp = record.message_pair
        counts[f"keyver{key.key_version()}"] += 1
        counts[f"eapol{key.version}"] += 1
        if key.key_type() == 0:
            counts["group"] += 1
        own_match = own is not None and key.replay_count == own_replaycount and nonce == own
        if own_match or mp & _FORCED_FLAG:
            counts["clients"] += 1
        if nonce[:28] == previous[:28] and nonce != previous:
            corrections = True
        previous = nonce
        for index, (mask, value) in enumerate(_PAIR_MASKS):
            if mp & mask == value:
                pairs[index] += 1
                if mp & REPLAYCOUNT_NOT_CHECKED:
                    unchecked[index] += 1
        if mp & _LITTLE_ENDIAN_FLAG:
            counts["le"] += 1
        if mp & _BIG_ENDIAN_FLAG:
            counts["be"] += 1
        if record.essid_len == 0 and record.essid[0] == 0:
            counts["noessid"] += 1

    return Summary(
        total=len(ordered),
        from_clients=counts["clients"],
        little_endian=counts["le"],
        big_endian=counts["be"],
        zeroed_essid=counts["noessid"],
        eapol_2001=counts["eapol1"],
        eapol_2004=counts["eapol2"],
        wpa1=counts["keyver1"],
        wpa2=counts["keyver2"],
        wpa2_cmac=counts["keyver3"],
        group_key=counts["group"],
        message_pairs=tuple(pairs),
        not_checked=tuple(unchecked),
        nonce_corrections=corrections,
    )


_OPTION_FIELDS = {
    "-a": InfoField.MAC_AP,
    "-A": InfoField.NONCE_AP,
    "-s": InfoField.MAC_STA,
    "-S": InfoField.NONCE_STA,
    "-M": InfoField.KEYMIC,
    "-R": InfoField.REPLAYCOUNT,
    "-w": InfoField.KEYVER,
    "-P": InfoField.KEYTYPE,
    "-p": InfoField.MESSAGE_PAIR,
    "-l": InfoField.ESSID_LEN,
    "-e": InfoField.ESSID,
}


def _usage(name: str) -> None:
    print(
        f"usage..: {name} <options>\n"
        f"example: {name} -i <hashfile> show general information about file\n"
        "\n"
        "options:\n"
        "-i <file> : input hccapx file\n"
        "-j <file> : input john file (doesn't support all list options)\n"
        "-o <file> : output info file (default stdout)\n"
        "-a        : list access points\n"
        "-A        : list anonce\n"
        "-s        : list stations\n"
        "-S        : list snonce\n"
        "-M        : list key mic\n"
        "-R        : list replay count\n"
        "-w        : list wpa version\n"
        "-P        : list key key number\n"
        "-p        : list messagepair\n"
        "-l        : list essid len\n"
        "-e        : list essid\n"
        "-h        : this help\n"
    )


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "hcxinfo"
    try:
        opts, _ = getopt.gnu_getopt(args, "i:j:o:aAsSMRwpPlehv")
    except getopt.GetoptError:
        _usage(name)
        return 1

    hcx_in = john_in = None
    fields = InfoField(0)
    for opt, value in opts:
        if opt == "-i":
            hcx_in = value
        elif opt == "-j":
            john_in = value
        elif opt == "-o":
            try:
                open(value, "w").close()
            except OSError:
                print(f"unable to open outputfile {value}", file=sys.stderr)
                return 1
        elif opt in _OPTION_FIELDS:
            fields |= _OPTION_FIELDS[opt]
        else:
            _usage(name)
            return 1

    records: list[HccapxRecord] = []
    if hcx_in is not None:
        try:
            records = read_hccapx(hcx_in)
        except HccapxError as exc:
            print(exc, file=sys.stderr)
            records = []
    if john_in is not None:
        try:
            records = read_john(john_in, True)
        except OSError:
            print(f"unable to open database {john_in}", file=sys.stderr)
            return 1

    if not records:
        print("0 records loaded", file=sys.stderr)
        return 0

    if fields:
        for record in sorted(records, key=lambda r: bytes(r.nonce_ap)):
            print(format_record(record, fields))
    else:
        print(summarize(records).format(), end="")
    return 0