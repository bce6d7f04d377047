import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

SECRET_FIELDS = ("authorization", "api_key", "apikey", "token", "x-api-key")
RULE = "=" * 80
THIN_RULE = "-" * 80
PRIMITIVES = (str, int, float, bool, type(None))


class APILogger:
    """
    Appends raw provider requests and responses to ``api_calls.log``.

    Credential-looking fields are masked before writing. One logger can be
    shared by several adapters; entries are written whole under a lock.
    """

    def __init__(self, log_dir: Path):
        self.log_dir = Path(log_dir)
        self.log_file = self.log_dir / "api_calls.log"
        self._lock = threading.Lock()
        self._ensure_log_file()

    def _ensure_log_file(self):
        self.log_dir.mkdir(parents=True, exist_ok=True)
        if not self.log_file.exists():
            self.log_file.write_text(
                f"# showscribe API call log\n# Created at: {datetime.now().isoformat()}\n\n"
            )

    def log(self, provider: str, endpoint: str, request: Any, response: Any, error: Optional[str] = None):
        entry = self._entry(provider, endpoint, request, response, error)
        with self._lock, open(self.log_file, "a") as f:
            f.write(entry)

    def _entry(self, provider: str, endpoint: str, request: Any, response: Any, error: Optional[str]) -> str:
        outcome = f"ERROR: {error}" if error else self._format_data(self._sanitize(response))
        parts = [
            RULE,
            f"[{datetime.now().isoformat()}] {provider.upper()} - {endpoint}",
            RULE,
            "",
            "REQUEST:",
            THIN_RULE,
            self._format_data(self._sanitize(request)),
            "",
            "RESPONSE:",
            THIN_RULE,
            outcome,
            "",
            "",
        ]
        return "\n".join(parts) + "\n"

    @staticmethod
    def _format_data(data: Any) -> str:
        if isinstance(data, (dict, list)) and data:
            return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, width=120).rstrip()
        return str(data)

    def _sanitize(self, data: Any) -> Any:
        """Mask secrets and reduce SDK objects to plain data."""
        if isinstance(data, PRIMITIVES):
            return data
        if isinstance(data, (list, tuple)):
            return [self._sanitize(item) for item in data]
        if isinstance(data, dict):
            return {
                str(k): "***" if str(k).lower() in SECRET_FIELDS else self._sanitize(v)
                for k, v in data.items()
            }
        if hasattr(data, "model_dump"):
            return self._sanitize(data.model_dump(mode="json"))
        return str(data)
