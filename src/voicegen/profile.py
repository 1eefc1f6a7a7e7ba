"""
Local Client Profile.

The CLI remembers the last voice, model and dial values between runs,
the five most recently used voice ids, and a short history of the last
ten generations. Profiles can be exported to a JSON file and imported
back (for example on another machine).

The provider credential is never written: it comes from --api-key or
VOICEGEN_API_KEY on every run. An "apiKey" found in an imported file is
ignored.

File Format (~/.voicegen/profile.json):
    {
        "voiceId": "21m00Tcm4TlvDq8ikWAM",
        "model": "eleven_flash_v2_5",
        "stability": 50,
        "similarity": 65,
        "styleExaggeration": 0,
        "speed": 0.85,
        "autoSave": false,
        "recentVoiceIds": ["21m00Tcm4TlvDq8ikWAM"],
        "history": [
            {
                "id": 3,
                "preview": "Welcome to the show, today we talk about the...",
                "timestamp": "2026-10-17T09:30:00+00:00",
                "settings": {"voiceId": ..., "model": ..., "stability": ..., ...},
                "file": "voice_1792230600000.mp3"
            }
        ]
    }

Export Format (voice_generator_export_<YYYY-MM-DD>.json):
    {
        "exportedAt": "2026-10-17T09:30:00+00:00",
        "history": [...],
        "recentVoiceIds": [...],
        "settings": {"voiceId": ..., "model": ..., "stability": ..., ..., "autoSave": ...}
    }

Auto-save:
    With autoSave on, audio written without --out goes to the voices
    directory (~/.voicegen/voices) instead of the current directory.

Environment Variables:
    VOICEGEN_PROFILE: Profile file path override
    VOICEGEN_VOICES_DIR: Auto-save directory override
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from voicegen.core.logging import get_logger, info
from voicegen.services.models import DEFAULT_MODEL, SynthesisRequest, VoiceModel, VoiceSettings, displayable_text
from voicegen.services.validators import ValidationError, validate_model, validate_voice_settings

_LOG = get_logger("voicegen.profile")

MAX_RECENT_VOICE_IDS = 5
MAX_HISTORY_ENTRIES = 10
PREVIEW_CHARS = 50
_DEFAULT_DIALS = VoiceSettings().to_wire()


class ProfileError(Exception):
    """Raised when a profile or export file cannot be read."""


def default_profile_path() -> Path:
    override = os.getenv("VOICEGEN_PROFILE")
    if override:
        return Path(override)
    return Path.home() / ".voicegen" / "profile.json"


def default_voices_dir() -> Path:
    """Where auto-saved audio goes."""
    override = os.getenv("VOICEGEN_VOICES_DIR")
    if override:
        return Path(override)
    return Path.home() / ".voicegen" / "voices"


def export_filename(day: Optional[date] = None) -> str:
    """Default export file name, e.g. voice_generator_export_2026-10-17.json."""
    day = day or date.today()
    return f"voice_generator_export_{day.isoformat()}.json"


def script_preview(script: str) -> str:
    """First 50 characters of the script, with "..." when cut."""
    text = displayable_text(script)
    if len(text) <= PREVIEW_CHARS:
        return text
    return text[:PREVIEW_CHARS] + "..."


@dataclass(frozen=True)
class HistoryEntry:
    """
    One past CLI generation.

    Attributes:
        id: Sequence number, 1 for the first entry after a clear.
        preview: Start of the script (see script_preview()).
        timestamp: ISO 8601 UTC time of the generation.
        settings: voiceId, model and the four dials used.
        file: Where the audio was written, if known.
    """
    id: int
    preview: str
    timestamp: str
    settings: Dict[str, Any]
    file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "preview": self.preview,
            "timestamp": self.timestamp,
            "settings": dict(self.settings),
            "file": self.file,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["HistoryEntry"]:
        """Entry from its JSON form, or None if the mapping is malformed."""
        if not isinstance(data, Mapping):
            return None
        entry_id = data.get("id")
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            return None
        settings = data.get("settings")
        file = data.get("file")
        return cls(
            id=entry_id,
            preview=str(data.get("preview") or ""),
            timestamp=str(data.get("timestamp") or ""),
            settings=dict(settings) if isinstance(settings, Mapping) else {},
            file=str(file) if file else None,
        )


@dataclass
class Profile:
    """
    Persisted client preferences.

    Attributes:
        voice_id: Last used voice id ("" if none yet).
        model: Last used model.
        settings: Last used dial values.
        auto_save: Without --out, write audio to the voices directory.
        recent_voice_ids: Most recent first, unique, at most 5.
        history: Past generations, newest first, at most 10.
    """
    voice_id: str = ""
    model: VoiceModel = DEFAULT_MODEL
    settings: VoiceSettings = field(default_factory=VoiceSettings)
    auto_save: bool = False
    recent_voice_ids: List[str] = field(default_factory=list)
    history: List[HistoryEntry] = field(default_factory=list)

    def remember_voice(self, voice_id: str) -> None:
        """Move voice_id to the front of the recent list."""
        if not voice_id:
            return
        recent = [v for v in self.recent_voice_ids if v != voice_id]
        self.recent_voice_ids = [voice_id, *recent][:MAX_RECENT_VOICE_IDS]

    def add_generation(
        self,
        request: SynthesisRequest,
        file: Optional[Path] = None,
        now: Optional[datetime] = None,
    ) -> HistoryEntry:
        """
        Record a successful generation at the front of the history.

        The credential is not part of the entry. The oldest entries beyond
        MAX_HISTORY_ENTRIES are dropped.
        """
        next_id = max((e.id for e in self.history), default=0) + 1
        entry = HistoryEntry(
            id=next_id,
            preview=script_preview(request.script),
            timestamp=(now or datetime.now(timezone.utc)).isoformat(),
            settings={
                "voiceId": displayable_text(request.voice_id),
                "model": request.model.value,
                **request.settings.to_wire(),
            },
            file=str(file) if file is not None else None,
        )
        self.history = [entry, *self.history][:MAX_HISTORY_ENTRIES]
        return entry

    def clear_history(self) -> int:
        """Forget all past generations. Returns how many were removed."""
        removed = len(self.history)
        self.history = []
        return removed

    def settings_dict(self) -> Dict[str, Any]:
        return {
            "voiceId": self.voice_id,
            "model": self.model.value,
            **self.settings.to_wire(),
            "autoSave": self.auto_save,
        }

    def history_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.history]

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.settings_dict(),
            "recentVoiceIds": list(self.recent_voice_ids),
            "history": self.history_list(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], strict: bool = False) -> "Profile":
        """
        Build a profile from its JSON form.

        Args:
            data: Decoded profile (or export "settings") mapping.
            strict: Validate model and dials and raise on bad values.
                When False, bad or missing values fall back to defaults.

        Raises:
            ValidationError: strict and a value is out of bounds.
        """
        defaults = cls()

        if strict:
            model = validate_model(data.get("model") or DEFAULT_MODEL.value)
            dials = {k: data.get(k, _DEFAULT_DIALS[k]) for k in _DEFAULT_DIALS}
            settings = validate_voice_settings(dials)
        else:
            try:
                model = VoiceModel(data.get("model"))
            except ValueError:
                model = DEFAULT_MODEL
            try:
                dials = {k: data.get(k, _DEFAULT_DIALS[k]) for k in _DEFAULT_DIALS}
                settings = validate_voice_settings(dials)
            except ValidationError:
                settings = defaults.settings

        recent = data.get("recentVoiceIds") or []
        raw_history = data.get("history") or []
        entries = [HistoryEntry.from_dict(item) for item in raw_history] if isinstance(raw_history, list) else []

        profile = cls(
            voice_id=str(data.get("voiceId") or ""),
            model=model,
            settings=settings,
            auto_save=bool(data.get("autoSave", False)),
            history=[e for e in entries if e is not None][:MAX_HISTORY_ENTRIES],
        )
        for voice_id in reversed([str(v) for v in recent if v]):
            profile.remember_voice(voice_id)
        return profile


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ProfileError(f"{path}: not valid JSON ({e.msg})") from e
    if not isinstance(data, dict):
        raise ProfileError(f"{path}: expected a JSON object")
    return data


def load_profile(path: Optional[Path] = None) -> Profile:
    """Load the profile, or defaults if the file does not exist yet."""
    p = Path(path) if path else default_profile_path()
    if not p.exists():
        return Profile()
    return Profile.from_dict(_read_json(p))


def save_profile(profile: Profile, path: Optional[Path] = None) -> Path:
    """Write the profile (never the credential). Returns the path written."""
    p = Path(path) if path else default_profile_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(profile.to_dict(), indent=2), encoding="utf-8")
    info(_LOG, "profile_saved", path=str(p))
    return p


def _is_directory_target(path: str | os.PathLike) -> bool:
    """An existing directory, a path ending in a separator, or a path with no suffix."""
    text = os.fspath(path)
    if text.endswith(("/", os.sep)):
        return True
    target = Path(text)
    return target.is_dir() or (not target.exists() and not target.suffix)


def export_profile(profile: Profile, path: str | os.PathLike) -> Path:
    """
    Export settings, recent voice ids and history to a JSON file.

    Args:
        profile: Profile to export.
        path: Target file, or a directory (created if missing) to place
            the default-named file in. A path ending in a separator or
            without a suffix counts as a directory.

    Returns:
        Path of the written file.
    """
    target = Path(path)
    if _is_directory_target(path):
        target.mkdir(parents=True, exist_ok=True)
        target = target / export_filename()
    target.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "history": profile.history_list(),
        "recentVoiceIds": list(profile.recent_voice_ids),
        "settings": profile.settings_dict(),
    }
    target.write_text(json.dumps(data, indent=2), encoding="utf-8")
    info(_LOG, "profile_exported", path=str(target), history=len(profile.history))
    return target


def import_profile(path: Path) -> Profile:
    """
    Read an export file (or a plain profile file) and validate it.

    Malformed history entries are skipped; settings are validated strictly.

    Raises:
        ProfileError: File unreadable, not a JSON object, or a section has
            the wrong type.
        ValidationError: A dial or the model is invalid.
    """
    p = Path(path)
    if not p.exists():
        raise ProfileError(f"{p}: no such file")
    data = _read_json(p)

    settings = data.get("settings", data)
    if not isinstance(settings, dict):
        raise ProfileError(f"{p}: \"settings\" must be an object")
    history = data.get("history", settings.get("history", []))
    if not isinstance(history, list):
        raise ProfileError(f"{p}: \"history\" must be a list")

    merged = {
        **settings,
        "recentVoiceIds": data.get("recentVoiceIds", settings.get("recentVoiceIds", [])),
        "history": history,
    }
    merged.pop("apiKey", None)

    profile = Profile.from_dict(merged, strict=True)
    info(_LOG, "profile_imported", path=str(p), recent=len(profile.recent_voice_ids), history=len(profile.history))
    return profile
