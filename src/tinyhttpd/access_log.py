"""
=============================================================================
ACCESS LOG
=============================================================================

One log entry per transaction, emitted on the "tinyhttpd.access" logger.

=============================================================================
FORMATS
=============================================================================

text (Common Log Format, plus duration and kind):

    127.0.0.1 - - [19/Oct/2026:18:34:02 +0000] "GET /home.html HTTP/1.0" 200 245 0.41ms static

json (one object per line, for log shippers):

    {"conn_id": "3f2a9c1e", "client": "127.0.0.1", "method": "GET", ...}

For CGI responses the byte count only covers what the server wrote itself
(the status prefix); the program's own output never passes through the
server.

=============================================================================
"""

import json
import time
import logging
from dataclasses import dataclass, asdict


# Namespaced so it can be routed separately:
#   logging.getLogger("tinyhttpd.access").addHandler(file_handler)
logger = logging.getLogger("tinyhttpd.access")


@dataclass
class TransactionLog:
    """Structured record of one finished transaction."""

    conn_id: str
    client: str
    method: str
    target: str
    version: str
    status: int
    bytes_sent: int
    duration_ms: float
    kind: str
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        request_line = f"{self.method} {self.target} {self.version}".strip() or "-"
        return (
            f'{self.client} - - [{self.timestamp}] '
            f'"{request_line}" {self.status or "-"} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms {self.kind}'
        )


class AccessLogger:
    """
    Formats and emits TransactionLog entries.

    Args:
        log_format: "text" or "json".
        log_level: Level the entries are logged at.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def log(
        self,
        conn_id: str,
        client: str,
        method: str,
        target: str,
        version: str,
        status: int,
        bytes_sent: int,
        started_at: float,
        kind: str,
    ) -> TransactionLog:
        entry = TransactionLog(
            conn_id=conn_id,
            client=client,
            method=method,
            target=target,
            version=version,
            status=int(status),
            bytes_sent=bytes_sent,
            duration_ms=(time.time() - started_at) * 1000,
            kind=kind,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
        return entry
