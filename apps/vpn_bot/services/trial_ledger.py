# vpn_bot/services/trial_ledger.py - Persisted set of users who used the free trial
import json
import logging
import os
import tempfile
import threading
from typing import Iterable, Set

from exceptions import PersistenceWarning

logger = logging.getLogger(__name__)


class TrialLedger:
    """Set of user ids that consumed the one-time trial, mirrored to a flat file.

    The file holds one id per line and is rewritten in full on every new
    redemption. A missing file is an empty ledger. Write failures are logged
    and the in-memory mark is kept.

    ``reserve``/``release`` let a caller hold a user's trial while the
    provisioning call is in flight so two concurrent attempts cannot both pass
    the ``has_redeemed`` check.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._redeemed: Set[int] = set()
        self._reserved: Set[int] = set()
        self._loaded = False

    def load(self) -> int:
        """Reads the ledger file once at startup; returns the number of ids."""
        ids = self._read_file()
        with self._lock:
            self._redeemed = ids
            self._loaded = True
        logger.info(f"[TRIAL] Loaded {len(ids)} redeemed users from {self.path}")
        return len(ids)

    def _read_file(self) -> Set[int]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            return set()

        content = content.strip()
        if not content:
            return set()
        if content.startswith("["):
            try:
                return {int(x) for x in json.loads(content)}
            except (ValueError, TypeError) as e:
                logger.error(f"[TRIAL] Ignoring unreadable JSON ledger {self.path}: {e}")
                return set()
        return set(self._parse_lines(content.splitlines()))

    def _parse_lines(self, lines: Iterable[str]) -> Iterable[int]:
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                yield int(line)
            except ValueError:
                logger.warning(f"[TRIAL] Skipping invalid ledger line: {line!r}")

    def _check_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("TrialLedger used before load()")

    def has_redeemed(self, user_id: int) -> bool:
        with self._lock:
            self._check_loaded()
            return user_id in self._redeemed

    def reserve(self, user_id: int) -> bool:
        """Claims the user's trial; False if already redeemed or claimed."""
        with self._lock:
            self._check_loaded()
            if user_id in self._redeemed or user_id in self._reserved:
                return False
            self._reserved.add(user_id)
            return True

    def release(self, user_id: int) -> None:
        """Drops an unconsumed reservation."""
        with self._lock:
            self._reserved.discard(user_id)

    def mark_redeemed(self, user_id: int) -> bool:
        """Records the redemption and persists the ledger.

        Idempotent; returns True only when the id was not recorded before.
        """
        with self._lock:
            self._check_loaded()
            self._reserved.discard(user_id)
            if user_id in self._redeemed:
                return False
            self._redeemed.add(user_id)
            snapshot = sorted(self._redeemed)
            # Writing under the lock serializes concurrent full-file rewrites
            try:
                self._write_file(snapshot)
            except PersistenceWarning as e:
                logger.error(f"[TRIAL] {e.message}; redemption of {user_id} kept in memory only")
        logger.info(f"[TRIAL] User {user_id} redeemed the trial")
        return True

    def _write_file(self, ids) -> None:
        directory = os.path.dirname(self.path) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".trial-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write("\n".join(str(i) for i in ids))
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise PersistenceWarning(self.path, str(e))

    def count(self) -> int:
        with self._lock:
            return len(self._redeemed)
