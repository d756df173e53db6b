"""Turning plain master keys and ESSIDs into PBKDF2 hash lines."""

from __future__ import annotations

import base64
import getopt
import os
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Iterable, Optional, TextIO, Union

_HEXDIGITS = frozenset("0123456789abcdefABCDEF")


def parse_pmk(text: str) -> bytes:
    """Turn 64 hex digits into a 32 byte plain master key."""
    if len(text) != 64 or not set(text) <= _HEXDIGITS:
        raise ValueError("error wrong plainmasterkey len (allowed: 64 xdigits)")
    return bytes.fromhex(text)


def hashcat_line(pmk: bytes, essid: bytes) -> str:
    """Return the line for hashcat hash mode 12000."""
    salt = base64.b64encode(essid).decode("ascii")
    digest = base64.b64encode(pmk).decode("ascii")
    return f"sha1:4096:{salt}:{digest}"


def john_line(pmk: bytes, essid: bytes) -> str:
    """Return the line for john's pbkdf2-hmac-sha1 format."""
    return f"$pbkdf2-hmac-sha1$4096${essid.hex()}${pmk.hex()}"


def parse_combi_line(line: Union[bytes, str]) -> Optional[tuple[bytes, bytes]]:
    """Split a 'pmk:essid' line; return None when it has to be skipped."""
    if isinstance(line, str):
        line = line.encode("utf-8", "surrogateescape")
    line = line.rstrip(b"\n").rstrip(b"\r")
    if len(line) < 66 or line[64:65] != b":":
        return None
    try:
        pmk = parse_pmk(line[:64].decode("ascii"))
    except (ValueError, UnicodeDecodeError):
        return None
    essid = line[65:]
    if not 1 <= len(essid) <= 32:
        return None
    return pmk, essid


def convert_combilist(
    lines: Iterable[Union[bytes, str]],
    hashcat_out: Optional[TextIO],
    john_out: Optional[TextIO],
) -> tuple[int, int]:
    """Write hash lines for each usable line; return (generated, skipped)."""
    generated = skipped = 0
    for line in lines:
        parsed = parse_combi_line(line)
        if parsed is None:
            skipped += 1
            continue
        pmk, essid = parsed
        if hashcat_out is not None:
            hashcat_out.write(hashcat_line(pmk, essid) + "\n")
        if john_out is not None:
            john_out.write(john_line(pmk, essid) + "\n")
        generated += 1
    return generated, skipped


def _usage(name: str) -> None:
    print(
        f"usage: {name} <options>\n"
        "\n"
        "options:\n"
        "-i <file>  : input combilist (pmk:essid)\n"
        "-o <file>  : output hashcat hashfile (-m 12000)\n"
        "-j <file>  : output john hashfile (pbkdf2-hmac-sha1)\n"
        "-e <essid> : input single essid (networkname: 1 .. 32 characters)\n"
        "-p <pmk>   : input plainmasterkey (64 xdigits)\n"
        "-h         : this help\n"
    )


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "pmkhash"
    try:
        opts, _ = getopt.gnu_getopt(args, "i:o:j:e:p:h")
    except getopt.GetoptError:
        _usage(name)
        return 1

    with ExitStack() as stack:
        combi = hashcat_out = john_out = None
        essid: Optional[bytes] = None
        pmk: Optional[bytes] = None
        for opt, value in opts:
            try:
                if opt == "-i":
                    combi = stack.enter_context(open(value, "rb"))
                    continue
                if opt == "-o":
                    hashcat_out = stack.enter_context(open(value, "a"))
                    continue
                if opt == "-j":
                    john_out = stack.enter_context(open(value, "a"))
                    continue
            except OSError:
                print(f"error opening {value}", file=sys.stderr)
                return 1
            if opt == "-e":
                essid = os.fsencode(value)
                if not 1 <= len(essid) <= 32:
                    print(
                        "error wrong essid len (allowed: 1 .. 32 characters)",
                        file=sys.stderr,
                    )
                    return 1
            elif opt == "-p":
                try:
                    pmk = parse_pmk(value)
                except ValueError as exc:
                    print(exc, file=sys.stderr)
                    return 1
            else:
                _usage(name)
                return 1

        if essid is not None and pmk is not None:
            print("\nhashcat: hash-mode -m 12000 to get password")
            print(hashcat_line(pmk, essid) + "\n")
            print("\njohn: pbkdf2-hmac-sha1 to get password")
            print(john_line(pmk, essid) + "\n")
        elif combi is not None and (hashcat_out is not None or john_out is not None):
            generated, skipped = convert_combilist(combi, hashcat_out, john_out)
            print(f"\r{generated} hashrecords generated, {skipped} password(s) skipped")
    return 0