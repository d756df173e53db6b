"""Command that splits and filters hccapx files into new hccapx files."""

from __future__ import annotations

import getopt
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from hcxkit.hccapx import (
    MESSAGE_PAIR_M12E2,
    MESSAGE_PAIR_M14E4,
    MESSAGE_PAIR_M32E2,
    MESSAGE_PAIR_M32E3,
    MESSAGE_PAIR_M34E3,
    MESSAGE_PAIR_M34E4,
    HccapxError,
    HccapxRecord,
    append_records,
    parse_mac,
    read_hccapx,
)
from hcxkit.search import (
    by_essid_length,
    by_mac_ap,
    by_mac_ap_list,
    by_mac_sta,
    by_oui,
    essid_contains,
    essid_equals,
    group_by_essid,
    group_by_mac_ap,
    group_by_mac_sta,
    group_by_oui,
    parse_mac_list,
    vendor_ouis,
)
from hcxkit.selection import (
    by_message_pair,
    flawless_records,
    forced_records,
    group_by_key_version,
    group_key_records,
    not_forced_records,
    one_per_combination,
    one_per_station_essid,
    pairwise_key_records,
    replaycount_checked,
    replaycount_not_checked,
    strip_duplicates,
)

SYSTEM_OUI_DATABASE = Path("/usr/share/ieee-data/oui.txt")
USER_OUI_DATABASE = Path(".hcxtools") / "oui.txt"

_OPTIONS = "i:A:S:O:V:E:X:x:p:l:L:w:W:r:R:N:n:g:G:0:1:2:3:4:5:k:F:D:asoeh"
_HEXDIGITS = frozenset("0123456789abcdefABCDEF")

_MESSAGE_PAIR_OPTIONS = {
    "-0": MESSAGE_PAIR_M12E2,
    "-1": MESSAGE_PAIR_M14E4,
    "-2": MESSAGE_PAIR_M32E2,
    "-3": MESSAGE_PAIR_M32E3,
    "-4": MESSAGE_PAIR_M34E3,
    "-5": MESSAGE_PAIR_M34E4,
}

# options that take a file name and select the mode of the same letter
_FILE_MODES = frozenset("-w -W -r -R -N -n -g -G -k -F -D".split())


def find_oui_database(home) -> Optional[Path]:
    """Return the OUI list to use: the user's copy wins over the system-wide one."""
    found = None
    if SYSTEM_OUI_DATABASE.exists():
        found = SYSTEM_OUI_DATABASE
    user = Path(home) / USER_OUI_DATABASE
    if user.exists():
        found = user
    return found


@dataclass
class _Settings:
    hcx_in: Optional[str] = None
    workdir: Optional[str] = None
    mode: str = ""
    value: Optional[str] = None
    essid_part: Optional[str] = None
    essid_exact: Optional[str] = None
    essid_len: int = 1
    ap_list: Optional[str] = None
    ap_out: Optional[str] = None
    mac: bytes = field(default=bytes(6))
    oui: int = 0
    message_pair: int = 0


class _UsageError(Exception):
    """Raised when the command line cannot be used; holds the message to show."""


def _usage(name: str) -> None:
    print(
        f"usage: {name} <options>\n"
        "\n"
        "options:\n"
        "-i <file>     : input hccapx file\n"
        "-p <path>     : change directory for outputfiles\n"
        "-a            : output file by mac_ap's\n"
        "-s            : output file by mac_sta's\n"
        "-o            : output file by vendor's (oui)\n"
        "-e            : output file by essid's\n"
        "-E <essid>    : output file by part of essid name\n"
        "-X <essid>    : output file by essid name (exactly)\n"
        "-x <digit>    : output by essid len (0 <= 32)\n"
        "-A <mac_ap>   : output file by single mac_ap\n"
        "-S <mac_sta>  : output file by single mac_sta\n"
        "-O <oui>      : output file by single vendor (oui)\n"
        "-V <name>     : output file by single vendor name or part of vendor name\n"
        "-L <mac_list> : input list containing mac_ap's (need -l)\n"
        "              : format of mac_ap's each line: 112233445566\n"
        "-l <file>     : output file (hccapx) by mac_list (need -L)\n"
        "-w <file>     : write only forced from clients to hccapx file\n"
        "-W <file>     : write only forced from access points to hccapx file\n"
        "-r <file>     : write only replaycount checked to hccapx file\n"
        "-R <file>     : write only not replaycount checked to hccapx file\n"
        "-N <file>     : output stripped file (only one record each mac_ap, mac_sta, essid, message_pair combination)\n"
        "-n <file>     : output stripped file (only one record each mac_sta, essid)\n"
        "-g <file>     : write only handshakes with pairwise key flag set\n"
        "-G <file>     : write only handshakes with groupkey flag set\n"
        "-0 <file>     : write only MESSAGE_PAIR_M12E2 to hccapx file\n"
        "-1 <file>     : write only MESSAGE_PAIR_M14E4 to hccapx file\n"
        "-2 <file>     : write only MESSAGE_PAIR_M32E2 to hccapx file\n"
        "-3 <file>     : write only MESSAGE_PAIR_M32E3 to hccapx file\n"
        "-4 <file>     : write only MESSAGE_PAIR_M34E3 to hccapx file\n"
        "-5 <file>     : write only MESSAGE_PAIR_M34E4 to hccapx file\n"
        "-k <file>     : write keyversion based on key information field (use only basename)\n"
        "              : output: basename.x.hccapx\n"
        "              : WPA1 RC4 Cipher, HMAC-MD5..... basename.1.hccapx\n"
        "              : WPA2 AES Cipher, HMAC-SHA1.... basename.2.hccapx\n"
        "              : WPA2 AES Cipher, AES-128-CMAC2 basename.3.hccapx\n"
        "              : all other are unknown\n"
        "-F <file>     : remove bad records and write only flawless records to hccapx file\n"
        "-D <file>     : remove duplicates from the same authentication sequence\n"
        "              : you must use nonce-error-corrections on that file!\n"
        "-h            : this help\n"
    )


def _leading_decimal(text: str) -> int:
    rest = text.lstrip(" \t\n\v\f\r")
    sign = -1 if rest[:1] == "-" else 1
    if rest[:1] in ("+", "-"):
        rest = rest[1:]
    digits = ""
    for char in rest:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def _parse_settings(opts: Iterable[tuple[str, str]]) -> _Settings:
    settings = _Settings()
    for opt, value in opts:
        if opt == "-i":
            settings.hcx_in = value
        elif opt == "-p":
            settings.workdir = value
        elif opt in ("-a", "-s", "-o", "-e"):
            settings.mode = opt[1]
        elif opt in ("-E", "-X"):
            if len(os.fsencode(value)) > 32:
                raise _UsageError("essid > 32")
            if opt == "-E":
                settings.essid_part = value
            else:
                settings.essid_exact = value
        elif opt == "-x":
            settings.essid_len = _leading_decimal(value)
            if not 0 <= settings.essid_len <= 32:
                raise _UsageError("essid > 32")
            settings.mode = "x"
        elif opt in ("-A", "-S"):
            try:
                settings.mac = parse_mac(value)
            except HccapxError as exc:
                raise _UsageError(str(exc)) from exc
            settings.mode = opt[1]
        elif opt == "-O":
            if len(value) != 6 or not set(value) <= _HEXDIGITS:
                raise _UsageError(f"error wrong oui size {value} (need 1122aa)")
            settings.oui = int(value, 16)
            settings.mode = "O"
        elif opt == "-V":
            settings.value = value
            settings.mode = "V"
        elif opt == "-l":
            settings.ap_out = value
        elif opt == "-L":
            settings.ap_list = value
            settings.mode = "L"
        elif opt in _MESSAGE_PAIR_OPTIONS:
            settings.value = value
            settings.message_pair = _MESSAGE_PAIR_OPTIONS[opt]
            settings.mode = "M"
        elif opt in _FILE_MODES:
            settings.value = value
            settings.mode = opt[1]
        else:
            raise _UsageError("")
    return settings


class _Writer:
    """Appends records to files below the output directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path(self, name: str) -> Path:
        return self.directory / name

    def write(self, name: str, records: Iterable[HccapxRecord]) -> int:
        return append_records(self.path(name), records)

    def write_if_any(self, name: str, records: list[HccapxRecord]) -> int:
        """Append records, creating the file only when there is something to add."""
        return self.write(name, records) if records else 0


def _write_groups(out: _Writer, groups: dict, name_of: Callable[[object], str]) -> None:
    written = sum(out.write(name_of(key), members) for key, members in groups.items())
    print(f"{written} records written")


def _run_vendor(records: list[HccapxRecord], vendor: str, out: _Writer) -> int:
    database = find_oui_database(Path.home())
    if database is None:
        print("failed read oui.txt\nrun whoismac -d to download oui.txt", file=sys.stderr)
        return 1
    print(f"using {database}")
    try:
        with open(database, "rb") as handle:
            ouis = vendor_ouis(handle, vendor)
    except OSError:
        print(f"unable to open database {database}", file=sys.stderr)
        return 1
    name = f"{vendor}.hccapx"
    for oui in ouis:
        selected = by_oui(records, oui)
        written = out.write(name, selected)
        if written > 0:
            print(f"{oui:06x}: {written} records written to {out.path(name)}")
    return 0


def _run(records: list[HccapxRecord], settings: _Settings, out: _Writer) -> int:
    mode = settings.mode
    value = settings.value

    if mode == "a":
        _write_groups(out, group_by_mac_ap(records), lambda mac: f"{mac.hex()}.hccapx")
    elif mode == "s":
        _write_groups(out, group_by_mac_sta(records), lambda mac: f"{mac.hex()}.hccapx")
    elif mode == "o":
        _write_groups(out, group_by_oui(records), lambda oui: f"{oui.hex()}.hccapx")
    elif mode == "e":
        _write_groups(out, group_by_essid(records), lambda essid: f"{essid.hex()}.hccapx")
    elif mode in ("A", "S"):
        select = by_mac_ap if mode == "A" else by_mac_sta
        written = out.write_if_any(f"{settings.mac.hex()}.hccapx", select(records, settings.mac))
        print(f"{written} records written")
    elif mode == "O":
        written = out.write_if_any(f"{settings.oui:06x}.hccapx", by_oui(records, settings.oui))
        print(f"{written} records written")
    elif mode == "V":
        return _run_vendor(records, value or "", out)
    elif settings.essid_part is not None:
        name = f"{settings.essid_part}.hccapx"
        written = out.write_if_any(name, essid_contains(records, settings.essid_part))
        print(f"{written} records written")
    elif mode == "x":
        name = f"{settings.essid_len}.hccapx"
        written = out.write_if_any(name, by_essid_length(records, settings.essid_len))
        print(f"{written} records written to {name}")
    elif settings.essid_exact is not None:
        name = f"{settings.essid_exact}.hccapx"
        written = out.write_if_any(name, essid_equals(records, settings.essid_exact))
        print(f"{written} records written")
    elif mode == "L":
        if settings.ap_list is None or settings.ap_out is None:
            print(
                "need -L (input list of mac_ap's to strip and -l output file (hccapx)",
                file=sys.stderr,
            )
            return 1
        try:
            with open(out.path(settings.ap_list), "rb") as handle:
                macs = parse_mac_list(handle)
        except OSError:
            print(f"error opening file {settings.ap_list}", file=sys.stderr)
            return 0
        written = out.write_if_any(settings.ap_out, by_mac_ap_list(records, macs))
        print(f"{written} records written to {settings.ap_out}")
    elif value is None:
        return 0
    elif mode in ("w", "W", "r", "R", "M", "g", "G"):
        selectors = {
            "w": forced_records,
            "W": not_forced_records,
            "r": replaycount_checked,
            "R": replaycount_not_checked,
            "M": lambda rs: by_message_pair(rs, settings.message_pair),
            "g": pairwise_key_records,
            "G": group_key_records,
        }
        written = out.write_if_any(value, selectors[mode](records))
        print(f"{written} records written to {value}")
    elif mode in ("N", "n"):
        strip = one_per_combination if mode == "N" else one_per_station_essid
        written = out.write(value, strip(records))
        print(f"{written} records written to {value}")
    elif mode == "k":
        written = sum(
            out.write(f"{value}.{version:x}.hccapx", members)
            for version, members in group_by_key_version(records).items()
        )
        print(f"{written} records precessed")
    elif mode == "F":
        kept = flawless_records(records)
        out.write_if_any(value, kept)
        print(f"{len(kept)} records precessed\n{len(records) - len(kept)} damaged records stripped")
    elif mode == "D":
        kept = strip_duplicates(records)
        out.write(value, kept)
        print(
            f"{len(records) - len(kept)} records removed\n"
            f"{len(kept)} records written to {value}"
        )
    return 0


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "hcx2ssid"
    try:
        opts, _ = getopt.gnu_getopt(args, _OPTIONS)
        settings = _parse_settings(opts)
    except getopt.GetoptError:
        _usage(name)
        return 1
    except _UsageError as exc:
        if str(exc):
            print(exc, file=sys.stderr)
        else:
            _usage(name)
        return 1

    if settings.hcx_in is None:
        return 0
    try:
        records = read_hccapx(settings.hcx_in)
    except HccapxError as exc:
        print(exc, file=sys.stderr)
        return 0
    print(f"{len(records)} records read from {settings.hcx_in}")
    if not records:
        return 0

    directory = Path.cwd()
    if settings.workdir is not None:
        if Path(settings.workdir).is_dir():
            directory = Path(settings.workdir)
        else:
            print(
                f" couldn't change working directory to {settings.workdir}\nusing {directory}",
                file=sys.stderr,
            )

    try:
        return _run(records, settings, _Writer(directory))
    except OSError as exc:
        print(f"error opening file {exc.filename}", file=sys.stderr)
        return 0