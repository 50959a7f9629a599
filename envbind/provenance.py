# envbind/provenance.py
"""
envbind.provenance
------------------

Optional record of where each flat config value came from.

Enabled with ``Builder(track_provenance=True)``. Every write made by
``Builder.merge`` is recorded against its flat key with a source label, so
"why is ``db__port`` 5433?" can be answered by reading the override chain.

Source labels:
    ``"env"``, ``"file:<path>"``, ``"dotenv:<path>"``, ``"toml:<path>"``,
    ``"mapping"``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProvenanceEntry:
    """One write of a flat key.

    Attributes:
        key: Lower-cased flat key (e.g. ``"db__port"``).
        value: Value stored after pre-processing.
        source: Label of the merge that wrote it.
        raw_value: Value as read from the source, before pre-processing.
    """

    key: str
    value: str
    source: str
    raw_value: str

    @property
    def preprocessed(self) -> bool:
        return self.value != self.raw_value

    def __repr__(self) -> str:
        # resolved secrets are not echoed back
        shown = "<resolved>" if self.preprocessed else repr(self.value)
        return f"{self.key} = {shown}  ← {self.source}"


@dataclass
class ProvenanceStore:
    """Current and superseded provenance entries per flat key."""

    _entries: dict[str, ProvenanceEntry] = field(default_factory=dict)
    _history: dict[str, list[ProvenanceEntry]] = field(default_factory=dict)

    def record(self, key: str, value: str, source: str, raw_value: str | None = None) -> None:
        """Record a write; a previous entry for ``key`` moves to its history."""
        entry = ProvenanceEntry(
            key=key,
            value=value,
            source=source,
            raw_value=value if raw_value is None else raw_value,
        )
        previous = self._entries.get(key)
        if previous is not None:
            self._history.setdefault(key, []).append(previous)
        self._entries[key] = entry

    def get(self, key: str) -> ProvenanceEntry | None:
        return self._entries.get(key.lower())

    def get_history(self, key: str) -> list[ProvenanceEntry]:
        """All writes of ``key``, oldest first, ending with the current one."""
        key = key.lower()
        history = list(self._history.get(key, []))
        current = self._entries.get(key)
        if current is not None:
            history.append(current)
        return history

    def all_entries(self) -> dict[str, ProvenanceEntry]:
        return dict(self._entries)

    def sources_summary(self) -> dict[str, int]:
        """Count current keys per source kind (the label part before ``:``)."""
        counts: dict[str, int] = {}
        for entry in self._entries.values():
            kind = entry.source.split(":", 1)[0]
            counts[kind] = counts.get(kind, 0) + 1
        return counts
