# hcxkit

Tools for working with captured WPA/WPA2 handshake records. The package
reads and writes the binary hccapx record format (393 bytes per record)
and converts john `$WPAPSK$` lines and `.wkp` files into it.

- Read hccapx files, print a summary or chosen fields of every record.
- Split and filter records by access point, station, vendor prefix (OUI),
  vendor name, ESSID, message pair, key version, replay-count state and more.
- Remove duplicate and damaged records.
- Convert john `$WPAPSK$` lines and `.wkp` files to hccapx.
- Turn PMK/ESSID pairs into hashcat (mode 12000) and john
  (`pbkdf2-hmac-sha1`) hash lines.
- Write nonce-corrected copies of the records of one access point.

There are no dependencies outside the standard library; Python 3.10 or
later is needed.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Commands

Every command takes short options; an unknown option or `-h` prints the
list of options and exits with status 1.

| Command | Purpose |
| --- | --- |
| `hcxkit-info` | Summary of an hccapx (`-i`) or john (`-j`) file, or a per-record field listing |
| `hcxkit-hcx2ssid` | Filter, split and clean an hccapx file (`-i`) into new hccapx files |
| `hcxkit-john2hcx` | Convert john files to hccapx (`-o`) and an ESSID list (`-e`) |
| `hcxkit-wkp2hcx` | Convert `.wkp` files to hccapx (`-o`) and an ESSID list (`-e`) |
| `hcxkit-pmk2hcx` | Hash lines from one PMK and ESSID (`-p`, `-e`) or from a `pmk:essid` list (`-i` with `-o` and/or `-j`) |
| `hcxkit-mnc` | List AP nonces (`-I`) or write nonce-corrected records (`-a`, `-b`, `-n`, `-o`) |

Some details worth knowing:

- Output files are opened in append mode, so running a command twice adds
  the records twice.
- `hcxkit-info` prints to standard output. Its `-o` option only creates
  (or empties) the named file. The field options (`-a`, `-A`, `-s`, `-S`,
  `-M`, `-R`, `-w`, `-P`, `-p`, `-l`, `-e`) print one `:`-separated line
  per record, sorted by AP nonce; without them a summary is printed.
- `hcxkit-hcx2ssid -p <dir>` writes its output files into `<dir>` instead
  of the current directory. `-V <name>` looks vendor names up in an OUI
  list, `~/.hcxtools/oui.txt` if it exists, otherwise
  `/usr/share/ieee-data/oui.txt`.
- `hcxkit-wkp2hcx` does nothing unless `-o` is given, and converts the
  first block of each `.wkp` file.
- `hcxkit-john2hcx` marks converted records as not replay-count checked;
  its ESSID list holds only printable ESSIDs.
- `hcxkit-mnc -a 112233aabbcc -b 31 -n 2 -i in.hccapx -o out.hccapx`
  writes three copies of each record of that access point whose AP nonce
  differs from the nonce in its EAPOL frame, raising the chosen nonce byte
  by one for each copy.

## Library use

```python
from hcxkit.hccapx import read_hccapx, append_records
from hcxkit.selection import strip_duplicates
from hcxkit.search import by_essid_length

records = read_hccapx("capture.hccapx")
unique = strip_duplicates(records)
append_records("eight.hccapx", by_essid_length(unique, 8))
```

Modules:

- `hcxkit.hccapx`: `HccapxRecord`, `EapolKey`, `parse_records`,
  `read_hccapx`, `append_records`, `parse_mac`; problems are raised as
  `HccapxError`.
- `hcxkit.selection`: `strip_duplicates`, `flawless_records`,
  `group_by_key_version`, `one_per_station_essid`, `one_per_combination`,
  `by_message_pair`, `group_key_records`, `pairwise_key_records`,
  `replaycount_checked`, `replaycount_not_checked`, `forced_records`,
  `not_forced_records`.
- `hcxkit.search`: `by_mac_ap`, `by_mac_sta`, `by_oui`, `by_mac_ap_list`,
  `parse_mac_list`, `by_essid_length`, `essid_contains`, `essid_equals`,
  `vendor_ouis`, and `group_by_essid`, `group_by_oui`, `group_by_mac_sta`,
  `group_by_mac_ap`.
- `hcxkit.hcxinfo`: `summarize`, `Summary`, `InfoField`, `format_record`,
  `format_essid`.
- `hcxkit.johnformat`: `decode_john_line`, `read_john`, `Hccap`,
  `is_printable_essid`.
- `hcxkit.wkp`: `parse_wkp`, `read_wkp`; problems are raised as `WkpError`.
- `hcxkit.pmkhash`: `parse_pmk`, `hashcat_line`, `john_line`,
  `parse_combi_line`, `convert_combilist`.
- `hcxkit.noncefix`: `nonce_matches_eapol`, `ap_nonce_lines`,
  `correct_nonces`.
- `hcxkit.hcx2ssid`: `find_oui_database`.

## What it does not do

- It does not capture traffic or read pcap files; it works on records that
  are already in hccapx, john or `.wkp` form.
- It does not test passwords or PMKs against handshakes, and does not
  derive PMKs from passwords.
- It does not download the OUI vendor list used by `hcxkit-hcx2ssid -V`;
  that file has to be put in place beforehand.
- The command-line tools do not know the nonce and replay count of any
  capturing tool; the filters in `hcxkit.selection` and `summarize` accept
  them as optional arguments.