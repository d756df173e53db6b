"""Reading and writing hccapx handshake records and their EAPOL-Key frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Union

PathLike = Union[str, "Path"]

HCCAPX_SIGNATURE = 0x58504348
HCCAPX_VERSION = 4

MESSAGE_PAIR_M12E2 = 0
MESSAGE_PAIR_M14E4 = 1
MESSAGE_PAIR_M32E2 = 2
MESSAGE_PAIR_M32E3 = 3
MESSAGE_PAIR_M34E3 = 4
MESSAGE_PAIR_M34E4 = 5
REPLAYCOUNT_NOT_CHECKED = 0x80

WPA_KEY_INFO_TYPE_MASK = 0x0007
WPA_KEY_INFO_KEY_TYPE = 0x0008
WPA_KEY_INFO_INSTALL = 0x0040
WPA_KEY_INFO_ACK = 0x0080
WPA_KEY_INFO_MIC = 0x0100
WPA_KEY_INFO_SECURE = 0x0200

ESSID_MAX = 32
EAPOL_MAX = 256
KEYMIC_OFFSET = 0x51

_RECORD = struct.Struct("<IIBB32sB16s6s32s6s32sH256s")
RECORD_SIZE = _RECORD.size

_EAPOL_KEY = struct.Struct(">BBHBHHQ32s16s8s8s16sH")
EAPOL_KEY_SIZE = _EAPOL_KEY.size


class HccapxError(ValueError):
    """Raised for malformed or unreadable hccapx data."""


@dataclass(frozen=True)
class EapolKey:
    """The fixed header of an 802.1X EAPOL-Key frame."""

    version: int
    packet_type: int
    length: int
    descriptor: int
    key_info: int
    key_length: int
    replay_count: int
    nonce: bytes
    key_iv: bytes
    key_rsc: bytes
    key_id: bytes
    key_mic: bytes
    wpa_data_len: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "EapolKey":
        raw = bytes(data[:EAPOL_KEY_SIZE]).ljust(EAPOL_KEY_SIZE, b"\0")
        return cls(*_EAPOL_KEY.unpack(raw))

    def message_number(self) -> int:
        """Return which message (1 to 4) of the four-way handshake this is."""
        if self.key_info & WPA_KEY_INFO_ACK:
            return 3 if self.key_info & WPA_KEY_INFO_INSTALL else 1
        return 4 if self.key_info & WPA_KEY_INFO_SECURE else 2

    def key_version(self) -> int:
        """Return the key descriptor version from the key information field."""
        return self.key_info & WPA_KEY_INFO_TYPE_MASK

    def key_type(self) -> int:
        """Return the pairwise flag: 8 for a pairwise key, 0 for a group key."""
        return self.key_info & WPA_KEY_INFO_KEY_TYPE


@dataclass
class HccapxRecord:
    """One hccapx record."""

    signature: int = HCCAPX_SIGNATURE
    version: int = HCCAPX_VERSION
    message_pair: int = 0
    essid_len: int = 0
    essid: bytes = field(default=bytes(ESSID_MAX))
    keyver: int = 0
    keymic: bytes = field(default=bytes(16))
    mac_ap: bytes = field(default=bytes(6))
    nonce_ap: bytes = field(default=bytes(32))
    mac_sta: bytes = field(default=bytes(6))
    nonce_sta: bytes = field(default=bytes(32))
    eapol_len: int = 0
    eapol: bytes = field(default=bytes(EAPOL_MAX))

    @classmethod
    def from_bytes(cls, data: bytes) -> "HccapxRecord":
        if len(data) != RECORD_SIZE:
            raise HccapxError(f"record must be {RECORD_SIZE} bytes, got {len(data)}")
        return cls(*_RECORD.unpack(bytes(data)))

    def to_bytes(self) -> bytes:
        return _RECORD.pack(
            self.signature,
            self.version,
            self.message_pair & 0xFF,
            self.essid_len & 0xFF,
            bytes(self.essid),
            self.keyver & 0xFF,
            bytes(self.keymic),
            bytes(self.mac_ap),
            bytes(self.nonce_ap),
            bytes(self.mac_sta),
            bytes(self.nonce_sta),
            self.eapol_len & 0xFFFF,
            bytes(self.eapol),
        )

    def eapol_key(self) -> EapolKey:
        return EapolKey.from_bytes(self.eapol)

    def essid_bytes(self) -> bytes:
        """Return the ESSID cut to its stated length (at most 32 bytes)."""
        return bytes(self.essid[: min(self.essid_len, ESSID_MAX)])


def _iter_records(data: bytes) -> Iterator[HccapxRecord]:
    view = memoryview(data)
    for offset in range(0, len(data), RECORD_SIZE):
        yield HccapxRecord.from_bytes(view[offset : offset + RECORD_SIZE].tobytes())


def parse_records(data: bytes) -> list[HccapxRecord]:
    """Split a buffer into hccapx records."""
    if len(data) % RECORD_SIZE:
        raise HccapxError("file corrupt")
    return list(_iter_records(data))


def read_hccapx(path: PathLike) -> list[HccapxRecord]:
    """Read every record of an hccapx file."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise HccapxError(f"can't read {path}") from exc
    return parse_records(data)


def append_records(path: PathLike, records: Iterable[HccapxRecord]) -> int:
    """Append records to an hccapx file and return how many were written."""
    count = 0
    with open(path, "ab") as handle:
        for record in records:
            handle.write(record.to_bytes())
            count += 1
    return count


def parse_mac(text: str) -> bytes:
    """Turn twelve hex digits such as 112233aabbcc into six bytes."""
    if len(text) != 12 or any(ch not in "0123456789abcdefABCDEF" for ch in text):
        raise HccapxError(f"error wrong mac size {text} (need 112233aabbcc)")
    return bytes.fromhex(text)