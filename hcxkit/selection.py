"""Filters and de-duplication over lists of hccapx records."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Hashable, Iterable, Optional

from hcxkit.hccapx import REPLAYCOUNT_NOT_CHECKED, HccapxRecord

_ZERO_NONCE = bytes(32)
_FAKE_ANONCE = bytes.fromhex(
    "07bc92ea2f5a1ee254f6b1b7e0aad353f45b0aacf9c9902f90d87880b7030a20"
)
_FAKE_SNONCE = bytes.fromhex(
    "9530d1c7c355b9abe683d6f37ecb7802751f53ccb581d1523bb4baad23ab0107"
)
_FAKE_REPLAYCOUNT = 17
_FORCED_FLAG = 0x10
_PAIRWISE = 8
_GROUP = 0


def _keep_first_of_runs(
    ordered: Iterable[HccapxRecord], ident: Callable[[HccapxRecord], Hashable]
) -> list[HccapxRecord]:
    kept = []
    previous = object()
    for record in ordered:
        current = ident(record)
        if current != previous:
            kept.append(record)
        previous = current
    return kept


def strip_duplicates(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep one record per AP, station, ESSID and first 28 AP nonce bytes."""
    ordered = sorted(
        records,
        key=lambda r: (
            bytes(r.mac_ap),
            bytes(r.mac_sta),
            bytes(r.essid),
            bytes(r.nonce_ap[:28]),
            r.message_pair,
        ),
    )
    return _keep_first_of_runs(
        ordered,
        lambda r: (bytes(r.mac_ap), bytes(r.mac_sta), bytes(r.nonce_ap[:28]), bytes(r.essid)),
    )


def _is_flawless(
    record: HccapxRecord, own_nonce: Optional[bytes], own_replaycount: Optional[int]
) -> bool:
    key = record.eapol_key()
    nonce_ap = bytes(record.nonce_ap)
    nonce_sta = bytes(record.nonce_sta)
    if key.message_number() == 1:
        return False
    if _ZERO_NONCE in (nonce_ap, nonce_sta):
        return False
    if key.replay_count == _FAKE_REPLAYCOUNT and {nonce_ap, nonce_sta} == {
        _FAKE_ANONCE,
        _FAKE_SNONCE,
    }:
        return False
    if (
        own_nonce is not None
        and bytes(own_nonce) in (nonce_ap, nonce_sta)
        and key.replay_count != own_replaycount
    ):
        return False
    return key.wpa_data_len <= key.length - 95


def flawless_records(
    records: Iterable[HccapxRecord],
    own_nonce: Optional[bytes] = None,
    own_replaycount: Optional[int] = None,
) -> list[HccapxRecord]:
    """Drop message-1 records, zero or fake nonces and damaged EAPOL frames."""
    return [r for r in records if _is_flawless(r, own_nonce, own_replaycount)]


def group_by_key_version(records: Iterable[HccapxRecord]) -> dict[int, list[HccapxRecord]]:
    """Group records by the key descriptor version of their EAPOL frame."""
    groups: dict[int, list[HccapxRecord]] = defaultdict(list)
    for record in records:
        groups[record.eapol_key().key_version()].append(record)
    return dict(groups)


def one_per_station_essid(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep one record for each station and ESSID."""
    ident = lambda r: (bytes(r.mac_sta), bytes(r.essid))  # noqa: E731
    return _keep_first_of_runs(sorted(records, key=ident), ident)


def one_per_combination(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep one record for each station, AP, ESSID and message pair."""
    ident = lambda r: (  # noqa: E731
        bytes(r.mac_sta),
        bytes(r.mac_ap),
        bytes(r.essid),
        r.message_pair,
    )
    return _keep_first_of_runs(sorted(records, key=ident), ident)


def by_message_pair(records: Iterable[HccapxRecord], message_pair: int) -> list[HccapxRecord]:
    """Keep records whose message pair byte equals message_pair exactly."""
    return [r for r in records if r.message_pair == message_pair]


def group_key_records(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep records whose EAPOL frame carries a group key."""
    return [r for r in records if r.eapol_key().key_type() == _GROUP]


def pairwise_key_records(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep records whose EAPOL frame carries the pairwise key flag."""
    return [r for r in records if r.eapol_key().key_type() == _PAIRWISE]


def replaycount_checked(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep records whose replay count was checked."""
    return [r for r in records if not r.message_pair & REPLAYCOUNT_NOT_CHECKED]


def replaycount_not_checked(records: Iterable[HccapxRecord]) -> list[HccapxRecord]:
    """Keep records whose replay count was not checked."""
    return [r for r in records if r.message_pair & REPLAYCOUNT_NOT_CHECKED]


def forced_records(
    records: Iterable[HccapxRecord],
    own_nonce: Optional[bytes] = None,
    own_replaycount: Optional[int] = None,
) -> list[HccapxRecord]:
    """Keep handshakes forced from clients by the capturing tool."""
    own = bytes(own_nonce) if own_nonce is not None else None

    def forced(record: HccapxRecord) -> bool:
        if record.message_pair & _FORCED_FLAG:
            return True
        return (
            own is not None
            and bytes(record.nonce_ap) == own
            and record.eapol_key().replay_count == own_replaycount
        )

    return [r for r in records if forced(r)]


def not_forced_records(
    records: Iterable[HccapxRecord],
    own_nonce: Optional[bytes] = None,
    own_replaycount: Optional[int] = None,
) -> list[HccapxRecord]:
    """Keep handshakes whose nonce and replay count both differ from the own ones,
    or which lack the forced flag."""
    own = bytes(own_nonce) if own_nonce is not None else None

    def not_forced(record: HccapxRecord) -> bool:
        if not record.message_pair & _FORCED_FLAG:
            return True
        return (
            bytes(record.nonce_ap) != own
            and record.eapol_key().replay_count != own_replaycount
        )

    return [r for r in records if not_forced(r)]