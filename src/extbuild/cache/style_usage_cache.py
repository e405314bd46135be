"""
Style class usage cache.

Remembers which style class tokens each script source referenced the last
time it was built. A partial build of a script compares the tokens it finds
now against the stored set; a difference means class usage moved and every
stylesheet has to be recompiled.

The record is a single JSON object on disk:

    {
        "src/components/App.tsx": ["p-4", "text-lg", "w-64"],
        "src/popup/index.tsx": ["space-y-4"]
    }

Concurrency:
    Partial builds for different files run concurrently on the watcher's
    thread pool and all of them read-modify-write this one file. Every
    load + compare + store sequence in has_changed() runs under a single
    lock so that two near-simultaneous script changes cannot drop each
    other's update. This is the only shared mutable resource between builds.
"""

import json
import logging
import re
import threading
from pathlib import Path, PurePath
from typing import Dict, Iterable, Optional, Set, Union

# class="..." / className='...' / className={`...`}, values may span lines
CLASS_ATTRIBUTE_PATTERN = re.compile(
    r"\bclass(?:Name)?\s*=\s*\{?\s*([\"'`])(.*?)\1",
    re.DOTALL,
)


class StyleUsageCache:
    """Persisted mapping from source path to the style class tokens it uses.

    All mutation goes through has_changed(), which holds the instance lock for
    the whole read-compare-write cycle. Create one instance per project and
    share it between builds; separate instances do not share the lock.
    """

    def __init__(self, cache_file: Path, project_dir: Optional[Path] = None):
        """Initialize the cache.

        Args:
            cache_file: JSON file holding the usage record
            project_dir: Project root; absolute paths under it are stored relative
        """
        self.cache_file = Path(cache_file)
        self.project_dir = Path(project_dir) if project_dir is not None else None
        self.lock = threading.Lock()

    @staticmethod
    def extract_tokens(source_text: str) -> Set[str]:
        """Collect style class tokens from source text.

        Args:
            source_text: Full content of a script or markup source

        Returns:
            Set of whitespace-separated tokens found in class attribute values
        """
        tokens: Set[str] = set()
        for match in CLASS_ATTRIBUTE_PATTERN.finditer(source_text):
            tokens.update(token for token in match.group(2).split() if token)
        return tokens

    def key_for(self, path: Union[str, PurePath]) -> str:
        """Normalize a path into the record key."""
        path = Path(path)
        if self.project_dir is not None and path.is_absolute():
            try:
                path = path.relative_to(self.project_dir)
            except ValueError:
                pass
        return path.as_posix()

    def load(self) -> Dict[str, Set[str]]:
        """Read the persisted record.

        Returns:
            Mapping of path key to token set. Missing or malformed storage
            yields an empty mapping; this never raises.
        """
        if not self.cache_file.exists():
            return {}

        try:
            with open(self.cache_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logging.warning(f"Ignoring unreadable style usage cache {self.cache_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logging.warning(f"Ignoring malformed style usage cache {self.cache_file}")
            return {}

        record: Dict[str, Set[str]] = {}
        for key, tokens in data.items():
            if isinstance(tokens, list):
                record[str(key)] = {str(token) for token in tokens}
        return record

    def has_changed(self, path: Union[str, PurePath], new_tokens: Iterable[str]) -> bool:
        """Compare tokens against the stored set, then store them.

        The stored entry is overwritten and the whole record persisted before
        returning, whether or not the sets differ.

        Args:
            path: Source path the tokens were extracted from
            new_tokens: Tokens found in the current content

        Returns:
            True if the token set differs from the stored one (an absent entry
            counts as the empty set)
        """
        key = self.key_for(path)
        tokens = set(new_tokens)

        with self.lock:
            record = self.load()
            previous = record.get(key, set())
            changed = previous != tokens
            record[key] = tokens
            self._save(record)

        if changed:
            logging.info(f"Style class usage changed in {key} ({len(previous)} -> {len(tokens)} tokens)")
        return changed

    def reset(self) -> None:
        """Forget all stored usage."""
        with self.lock:
            self.cache_file.unlink(missing_ok=True)

    def _save(self, record: Dict[str, Set[str]]) -> None:
        """Write the record atomically. Caller holds the lock."""
        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        data = {key: sorted(tokens) for key, tokens in sorted(record.items())}

        temp_file = self.cache_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            temp_file.replace(self.cache_file)
        except KeyboardInterrupt:
            temp_file.unlink(missing_ok=True)
            raise
        except OSError:
            temp_file.unlink(missing_ok=True)
            raise
