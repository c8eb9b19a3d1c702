from __future__ import annotations

from pathlib import Path

from stockledger.domain.errors import PersistenceError


class HistoryLogFile:
    """Append-only text file, one activity entry per line."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def append_line(self, line: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8", newline="\n") as fh:
                fh.write(line.rstrip("\n") + "\n")
                fh.flush()
        except OSError as e:
            raise PersistenceError(f"Could not write history log: {e}") from e

    def read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8", errors="replace") as fh:
                return [ln.rstrip("\r\n") for ln in fh if ln.strip()]
        except OSError as e:
            raise PersistenceError(f"Could not read history log: {e}") from e
