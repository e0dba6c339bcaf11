##########################################################################################
#
# Script name: cache.py
#
# Description: TTL content cache backed by one JSON file per key.
#
##########################################################################################

import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = 'data/cache'
DEFAULT_TTL_HOURS = 24


# ****************************************************************************************
# Classes
# ****************************************************************************************


class ContentCache:
    '''
    Keyed text store with an absolute expiry per entry.

    Each entry is written to <cache_dir>/<sha256(key)>.json as
    {"content": ..., "expiresAt": <epoch milliseconds>}. Reads of missing,
    corrupt, or expired entries return None; expired entries are removed.

    get_or_fetch is not locked. Two callers racing on the same key may both
    fetch and both write; the last write wins.
    '''

    def __init__(
        self,
        cache_dir: str = DEFAULT_CACHE_DIR,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.clock = clock
        self.log = logger or log
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode('utf-8')).hexdigest()
        return self.cache_dir / f'{digest}.json'

    def _now_ms(self) -> float:
        return self.clock() * 1000.0

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding='utf-8'))
            content = entry['content']
            expires_at = float(entry['expiresAt'])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            self.log.debug('Ignoring unreadable cache entry %s: %s', path.name, exc)
            return None
        if not isinstance(content, str):
            return None
        if self._now_ms() > expires_at:
            self.log.debug('Cache entry expired for %s', key)
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            return None
        return content

    def set(self, key: str, content: str, ttl_hours: float = DEFAULT_TTL_HOURS) -> None:
        path = self._path_for(key)
        entry = {
            'content': content,
            'expiresAt': self._now_ms() + ttl_hours * 60 * 60 * 1000,
        }
        # Whole-file replace so concurrent readers never see a partial entry.
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix='.tmp-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                json.dump(entry, handle, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], str],
        ttl_hours: float = DEFAULT_TTL_HOURS,
    ) -> str:
        cached = self.get(key)
        if cached:
            return cached
        content = fetch_fn()
        self.set(key, content, ttl_hours)
        return content
