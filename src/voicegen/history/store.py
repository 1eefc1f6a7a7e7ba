"""
Generation History Store.

Keeps an append-only record of completed generations. Records describe
what was generated (script, voice, model, dials, time); the audio itself
and the credential are never stored.

Implementations:
    - InMemoryGenerationStore: process-lifetime dict guarded by a lock
    - NullGenerationStore: inert sink that keeps nothing

Retention:
    InMemoryGenerationStore(max_records=None) keeps every record until the
    process exits, so memory grows with every generation. This is a known
    limitation of the in-memory store. Pass max_records to drop the oldest
    records beyond that count.

Ordering:
    list() returns newest first by created_at. Records created within the
    same clock tick keep insertion order (later insert first).

Usage:
    store = InMemoryGenerationStore()
    record = store.append(GenerationDraft.from_request(request))
    latest = store.list(limit=10)
    by_voice = store.list(RecordFilter(voice_id="21m00Tcm4TlvDq8ikWAM"))
"""
from __future__ import annotations

import itertools
import threading
import uuid
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from voicegen.core.logging import debug, get_logger
from voicegen.services.models import SynthesisRequest, VoiceModel, VoiceSettings, displayable_text

_LOG = get_logger("voicegen.history")


@dataclass(frozen=True)
class GenerationDraft:
    """
    What the endpoint knows about a generation before it is stored.

    Built from a SynthesisRequest, minus the credential.
    """
    script: str
    voice_id: str
    model: VoiceModel
    settings: VoiceSettings
    audio_url: Optional[str] = None

    @classmethod
    def from_request(cls, request: SynthesisRequest) -> "GenerationDraft":
        return cls(
            script=request.script,
            voice_id=request.voice_id,
            model=request.model,
            settings=request.settings,
        )


@dataclass(frozen=True)
class GenerationRecord:
    """
    An immutable history entry.

    Attributes:
        id: Unique identifier (uuid4 string).
        script: Script that was synthesized.
        voice_id: Provider voice identifier.
        model: Provider model.
        settings: Dials used.
        created_at: Server-assigned UTC timestamp.
        audio_url: Always None for now; audio is not persisted.
    """
    id: str
    script: str
    voice_id: str
    model: VoiceModel
    settings: VoiceSettings
    created_at: datetime
    audio_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase field names used on the API."""
        return {
            "id": self.id,
            "script": displayable_text(self.script),
            "voiceId": displayable_text(self.voice_id),
            "model": self.model.value,
            "settings": self.settings.to_wire(),
            "createdAt": self.created_at.isoformat(),
            "audioUrl": self.audio_url,
        }


@dataclass(frozen=True)
class RecordFilter:
    """Optional criteria for list(). None means "any"."""
    voice_id: Optional[str] = None
    model: Optional[VoiceModel] = None

    def matches(self, record: GenerationRecord) -> bool:
        if self.voice_id is not None and record.voice_id != self.voice_id:
            return False
        if self.model is not None and record.model != self.model:
            return False
        return True


class GenerationStore(ABC):
    """
    Interface for generation record sinks.

    append() must be safe to call from several request threads at once.
    """

    @abstractmethod
    def append(self, draft: GenerationDraft) -> GenerationRecord:
        """Store a new record, assigning its id and created_at."""

    @abstractmethod
    def list(self, filter: Optional[RecordFilter] = None, limit: Optional[int] = None) -> List[GenerationRecord]:
        """Return matching records, newest first, at most `limit` of them."""

    @abstractmethod
    def get(self, record_id: str) -> Optional[GenerationRecord]:
        """Return one record by id, or None."""

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Remove a record. Returns True if it existed."""

    @abstractmethod
    def __len__(self) -> int:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryGenerationStore(GenerationStore):
    """
    Thread-safe in-memory store.

    Records live in an insertion-ordered dict keyed by id. A single lock
    guards every read and write; records never reference each other, so
    no finer coordination is needed.

    Attributes:
        max_records: Retention cap, or None for unbounded.
    """

    def __init__(self, max_records: Optional[int] = None, clock=_utcnow):
        """
        Args:
            max_records: Keep at most this many records (oldest dropped first).
                None or 0 keeps everything.
            clock: Callable returning an aware datetime (injectable for tests).
        """
        self.max_records = max_records or None
        self._clock = clock
        self._records: "OrderedDict[str, tuple[int, GenerationRecord]]" = OrderedDict()
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def append(self, draft: GenerationDraft) -> GenerationRecord:
        with self._lock:
            record_id = str(uuid.uuid4())
            while record_id in self._records:
                record_id = str(uuid.uuid4())

            record = GenerationRecord(
                id=record_id,
                script=draft.script,
                voice_id=draft.voice_id,
                model=draft.model,
                settings=draft.settings,
                created_at=self._clock(),
                audio_url=draft.audio_url,
            )
            self._records[record_id] = (next(self._seq), record)

            dropped = 0
            if self.max_records is not None:
                while len(self._records) > self.max_records:
                    self._records.popitem(last=False)
                    dropped += 1
            size = len(self._records)

        debug(_LOG, "record_appended", record_id=record_id, size=size, dropped=dropped)
        return record

    def list(self, filter: Optional[RecordFilter] = None, limit: Optional[int] = None) -> List[GenerationRecord]:
        with self._lock:
            entries = list(self._records.values())

        if filter is not None:
            entries = [(seq, rec) for seq, rec in entries if filter.matches(rec)]
        entries.sort(key=lambda e: (e[1].created_at, e[0]), reverse=True)

        records = [rec for _, rec in entries]
        if limit is not None:
            records = records[:max(limit, 0)]
        return records

    def get(self, record_id: str) -> Optional[GenerationRecord]:
        with self._lock:
            entry = self._records.get(record_id)
        return entry[1] if entry else None

    def delete(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class NullGenerationStore(GenerationStore):
    """
    Sink that accepts records and keeps none.

    Used when history is disabled; the history endpoint then lists nothing.
    """

    def __init__(self, clock=_utcnow):
        self._clock = clock

    def append(self, draft: GenerationDraft) -> GenerationRecord:
        return GenerationRecord(
            id=str(uuid.uuid4()),
            script=draft.script,
            voice_id=draft.voice_id,
            model=draft.model,
            settings=draft.settings,
            created_at=self._clock(),
            audio_url=draft.audio_url,
        )

    def list(self, filter: Optional[RecordFilter] = None, limit: Optional[int] = None) -> List[GenerationRecord]:
        return []

    def get(self, record_id: str) -> Optional[GenerationRecord]:
        return None

    def delete(self, record_id: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0
