from __future__ import annotations

from typing import List, Optional


class LogsService:
    @staticmethod
    def tail(path: Optional[str], lines: int = 200, level: Optional[str] = None) -> List[str]:
        """Last `lines` log lines, optionally only those at `level` (e.g. "WARNING")."""
        if not path:
            return ["(log_path not configured)"]
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                data = f.readlines()
        except FileNotFoundError:
            return [f"(log file not found: {path})"]
        except OSError as e:
            return [f"(failed to read log file: {e})"]

        if level:
            marker = f" - {level.upper()} - "
            data = [line for line in data if marker in line]
        return data[-max(1, lines) :]
