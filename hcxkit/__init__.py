"""Reading, filtering and converting WPA handshake records in hccapx, john and wkp formats."""

__version__ = "1.0.0"