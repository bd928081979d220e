"""Output sinks for exporting ledger snapshots."""

from nasiya.sinks.console import ConsoleSink
from nasiya.sinks.json_file import JsonFileSink

__all__ = ["ConsoleSink", "JsonFileSink"]
