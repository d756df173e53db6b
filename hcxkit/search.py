"""Selecting and grouping hccapx records by addresses, vendors and ESSIDs."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Hashable, Iterable, Optional, Union

from hcxkit.hccapx import HccapxRecord

_HEXDIGITS = frozenset("0123456789abcdefABCDEF")
_WHITESPACE = " \t\n\v\f\r"
_MAC_MASK = 0xFFFFFFFFFFFF
_VENDOR_MARKER = "(base 16)"
_MIN_VENDOR_LINE = 10

TextLine = Union[str, bytes]


def _as_text(line: TextLine) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8", "surrogateescape")
    return line


def _chop(line: str) -> str:
    return line.rstrip("\n").rstrip("\r")


def _as_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    return bytes(value)


def _leading_hex(text: str, width: Optional[int] = None) -> Optional[int]:
    """Read the hex number at the start of text, skipping leading blanks."""
    rest = text.lstrip(_WHITESPACE)
    if width is not None:
        rest = rest[:width]
    if rest[:2].lower() == "0x" and rest[2:3] and rest[2] in _HEXDIGITS:
        rest = rest[2:]
    digits = []
    for char in rest:
        if char not in _HEXDIGITS:
            break
        digits.append(char)
    if not digits:
        return None
    return int("".join(digits), 16)


def _c_string(data: bytes) -> bytes:
    return data.split(b"\0", 1)[0]


def _essid_text(record: HccapxRecord) -> bytes:
    return _c_string(record.essid_bytes())


def by_essid_length(records: Iterable[HccapxRecord], length: int) -> list[HccapxRecord]:
    """Keep records whose stated ESSID length equals length."""
    return [r for r in records if r.essid_len == length]


def parse_mac_list(lines: Iterable[TextLine]) -> list[bytes]:
    """Read AP addresses written as twelve hex digits per line; skip other lines."""
    macs = []
    for raw in lines:
        line = _chop(_as_text(raw))
        if len(line) != 12:
            continue
        value = _leading_hex(line) or 0
        macs.append((value & _MAC_MASK).to_bytes(6, "big"))
    return macs


def by_mac_ap_list(
    records: Iterable[HccapxRecord], macs: Iterable[bytes]
) -> list[HccapxRecord]:
    """For each address in turn, collect the records sent by that AP."""
    records = list(records)
    return [r for mac in macs for r in records if bytes(r.mac_ap) == bytes(mac)]


def by_oui(records: Iterable[HccapxRecord], oui: Union[int, bytes]) -> list[HccapxRecord]:
    """Keep records whose AP address starts with the vendor prefix."""
    prefix = (oui & 0xFFFFFF).to_bytes(3, "big") if isinstance(oui, int) else bytes(oui)[:3]
    return [r for r in records if bytes(r.mac_ap[:3]) == prefix]


def by_mac_sta(records: Iterable[HccapxRecord], mac: bytes) -> list[HccapxRecord]:
    """Keep records of one station."""
    mac = bytes(mac)
    return [r for r in records if bytes(r.mac_sta) == mac]


def by_mac_ap(records: Iterable[HccapxRecord], mac: bytes) -> list[HccapxRecord]:
    """Keep records of one access point."""
    mac = bytes(mac)
    return [r for r in records if bytes(r.mac_ap) == mac]


def essid_contains(
    records: Iterable[HccapxRecord], text: Union[str, bytes]
) -> list[HccapxRecord]:
    """Keep records whose ESSID contains text."""
    needle = _c_string(_as_bytes(text))
    return [r for r in records if needle in _essid_text(r)]


def essid_equals(
    records: Iterable[HccapxRecord], essid: Union[str, bytes]
) -> list[HccapxRecord]:
    """Keep records whose ESSID is exactly essid."""
    wanted = _c_string(_as_bytes(essid))
    return [r for r in records if _essid_text(r) == wanted]


def vendor_ouis(lines: Iterable[TextLine], vendor: str) -> list[int]:
    """Return the prefixes of every '(base 16)' line of an OUI list naming vendor."""
    ouis = []
    for raw in lines:
        line = _chop(_as_text(raw))
        if len(line) < _MIN_VENDOR_LINE:
            continue
        if _VENDOR_MARKER not in line or vendor not in line:
            continue
        value = _leading_hex(line, 6)
        if value is not None:
            ouis.append(value)
    return ouis


def _group(
    records: Iterable[HccapxRecord], key: Callable[[HccapxRecord], Hashable]
) -> dict:
    groups: dict = defaultdict(list)
    for record in records:
        groups[key(record)].append(record)
    return dict(groups)


def group_by_essid(records: Iterable[HccapxRecord]) -> dict[bytes, list[HccapxRecord]]:
    """Group records by ESSID, in order of first appearance."""
    return _group(records, lambda r: r.essid_bytes())


def group_by_oui(records: Iterable[HccapxRecord]) -> dict[bytes, list[HccapxRecord]]:
    """Group records by the vendor prefix of the AP address."""
    return _group(records, lambda r: bytes(r.mac_ap[:3]))


def group_by_mac_sta(records: Iterable[HccapxRecord]) -> dict[bytes, list[HccapxRecord]]:
    """Group records by station address."""
    return _group(records, lambda r: bytes(r.mac_sta))


def group_by_mac_ap(records: Iterable[HccapxRecord]) -> dict[bytes, list[HccapxRecord]]:
    """Group records by AP address."""
    return _group(records, lambda r: bytes(r.mac_ap))