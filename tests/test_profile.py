"""Tests for the local client profile (save, recent voices, generation history, export/import)."""
from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest

from voicegen.profile import (
    MAX_HISTORY_ENTRIES,
    MAX_RECENT_VOICE_IDS,
    HistoryEntry,
    Profile,
    ProfileError,
    default_profile_path,
    default_voices_dir,
    export_filename,
    export_profile,
    import_profile,
    load_profile,
    save_profile,
    script_preview,
)
from voicegen.services.models import VoiceModel, VoiceSettings
from voicegen.services.validators import ValidationError, validate_generation_request

from conftest import SECRET_KEY, make_body


class TestRecentVoices:
    def test_most_recent_first(self):
        profile = Profile()
        for voice in ("a", "b", "c"):
            profile.remember_voice(voice)
        assert profile.recent_voice_ids == ["c", "b", "a"]

    def test_reuse_moves_to_front(self):
        profile = Profile(recent_voice_ids=["c", "b", "a"])
        profile.remember_voice("a")
        assert profile.recent_voice_ids == ["a", "c", "b"]

    def test_capped(self):
        profile = Profile()
        for i in range(8):
            profile.remember_voice(f"v{i}")
        assert len(profile.recent_voice_ids) == MAX_RECENT_VOICE_IDS
        assert profile.recent_voice_ids[0] == "v7"

    def test_empty_ignored(self):
        profile = Profile()
        profile.remember_voice("")
        assert profile.recent_voice_ids == []


def _request(**overrides):
    return validate_generation_request(make_body(**overrides))


class TestGenerationHistory:
    """Tests for Profile.add_generation() and clear_history()."""

    def test_entry_shape(self, tmp_path):
        profile = Profile()
        when = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)
        entry = profile.add_generation(
            _request(voiceId="v1", model="eleven_v3", settings={"stability": 20}),
            file=tmp_path / "a.mp3",
            now=when,
        )
        assert entry.id == 1
        assert entry.timestamp == "2026-10-17T09:30:00+00:00"
        assert entry.settings == {
            "voiceId": "v1", "model": "eleven_v3",
            "stability": 20, "similarity": 75, "styleExaggeration": 0, "speed": 1.0,
        }
        assert entry.file == str(tmp_path / "a.mp3")
        assert SECRET_KEY not in json.dumps(profile.to_dict())

    def test_newest_first_capped(self):
        profile = Profile()
        for i in range(MAX_HISTORY_ENTRIES + 3):
            profile.add_generation(_request(script=f"take {i}"))
        assert len(profile.history) == MAX_HISTORY_ENTRIES
        assert profile.history[0].preview == f"take {MAX_HISTORY_ENTRIES + 2}"
        assert [e.id for e in profile.history[:2]] == [MAX_HISTORY_ENTRIES + 3, MAX_HISTORY_ENTRIES + 2]

    def test_clear(self):
        profile = Profile()
        profile.add_generation(_request())
        profile.add_generation(_request())
        assert profile.clear_history() == 2
        assert profile.history == []
        assert profile.add_generation(_request()).id == 1

    def test_preview(self):
        assert script_preview("short") == "short"
        assert script_preview("x" * 50) == "x" * 50
        assert script_preview("y" * 51) == "y" * 50 + "..."
        assert script_preview("bad \ud800 char") == "bad \ufffd char"

    def test_saved_and_loaded(self, tmp_path):
        path = tmp_path / "profile.json"
        profile = Profile()
        profile.add_generation(_request(script="remember me"))
        save_profile(profile, path)

        loaded = load_profile(path)
        assert loaded.history == profile.history
        assert json.loads(path.read_text(encoding="utf-8"))["history"][0]["preview"] == "remember me"

    def test_malformed_entries_skipped(self):
        profile = Profile.from_dict({"history": [{"id": "x"}, "junk", {"id": 4, "preview": "ok"}]})
        assert profile.history == [HistoryEntry(id=4, preview="ok", timestamp="", settings={})]


class TestProfileDefaults:
    def test_defaults(self):
        profile = Profile()
        assert profile.voice_id == ""
        assert profile.model is VoiceModel.FLASH_V2_5
        assert profile.settings == VoiceSettings(stability=50, similarity=65, style_exaggeration=0, speed=0.85)
        assert profile.auto_save is False

    def test_default_path_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VOICEGEN_PROFILE", str(tmp_path / "p.json"))
        assert default_profile_path() == tmp_path / "p.json"

    def test_export_filename(self):
        assert export_filename(date(2026, 10, 17)) == "voice_generator_export_2026-10-17.json"

    def test_voices_dir_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VOICEGEN_VOICES_DIR", str(tmp_path / "voices"))
        assert default_voices_dir() == tmp_path / "voices"


class TestFromDict:
    def test_lenient_falls_back(self):
        profile = Profile.from_dict({"model": "eleven_v9", "stability": 500, "voiceId": "v"})
        assert profile.model is VoiceModel.FLASH_V2_5
        assert profile.settings == VoiceSettings()
        assert profile.voice_id == "v"

    def test_strict_rejects(self):
        with pytest.raises(ValidationError) as exc_info:
            Profile.from_dict({"model": "eleven_v3", "speed": 3.0}, strict=True)
        assert exc_info.value.code == "OUT_OF_RANGE"

    def test_recent_order_preserved(self):
        profile = Profile.from_dict({"recentVoiceIds": ["x", "y", "z"]})
        assert profile.recent_voice_ids == ["x", "y", "z"]


class TestPersistence:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_profile(tmp_path / "none.json") == Profile()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "profile.json"
        profile = Profile(
            voice_id="v1",
            model=VoiceModel.V3,
            settings=VoiceSettings(stability=20, similarity=90, style_exaggeration=10, speed=1.25),
            recent_voice_ids=["v1", "v0"],
        )
        save_profile(profile, path)
        assert load_profile(path) == profile

    def test_saved_file_has_no_credential(self, tmp_path):
        path = save_profile(Profile(voice_id="v1"), tmp_path / "profile.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert "apiKey" not in data
        assert data["styleExaggeration"] == 0

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ProfileError):
            load_profile(path)

    def test_non_object_file(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ProfileError):
            load_profile(path)


class TestExportImport:
    def test_export_into_directory(self, tmp_path):
        written = export_profile(Profile(voice_id="v1", recent_voice_ids=["v1"]), tmp_path)
        assert written.name == export_filename()
        data = json.loads(written.read_text(encoding="utf-8"))
        assert set(data) == {"exportedAt", "history", "recentVoiceIds", "settings"}
        assert data["recentVoiceIds"] == ["v1"]
        assert data["settings"]["voiceId"] == "v1"
        assert "apiKey" not in data["settings"]

    def test_round_trip(self, tmp_path):
        original = Profile(
            voice_id="v2",
            model=VoiceModel.TURBO_V2_5,
            settings=VoiceSettings(stability=10, similarity=20, style_exaggeration=30, speed=0.5),
            auto_save=True,
            recent_voice_ids=["v2", "v1"],
        )
        original.add_generation(_request(script="first"))
        original.add_generation(_request(script="second"))
        written = export_profile(original, tmp_path / "backup.json")
        assert import_profile(written) == original

    def test_export_includes_history(self, tmp_path):
        profile = Profile()
        profile.add_generation(_request(script="exported take", voiceId="v7"))
        data = json.loads(export_profile(profile, tmp_path / "e.json").read_text(encoding="utf-8"))
        assert len(data["history"]) == 1
        item = data["history"][0]
        assert set(item) == {"id", "preview", "timestamp", "settings", "file"}
        assert item["preview"] == "exported take"
        assert item["settings"]["voiceId"] == "v7"

    @pytest.mark.parametrize("name", ["backup/", "backup"])
    def test_export_creates_missing_directory(self, tmp_path, name):
        written = export_profile(Profile(), f"{tmp_path}/{name}")
        assert written == tmp_path / "backup" / export_filename()
        assert written.is_file()

    def test_export_to_new_file(self, tmp_path):
        written = export_profile(Profile(), tmp_path / "nested" / "mine.json")
        assert written == tmp_path / "nested" / "mine.json"
        assert written.is_file()

    def test_import_bad_history_section(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"settings": {}, "history": "nope"}), encoding="utf-8")
        with pytest.raises(ProfileError):
            import_profile(path)

    def test_import_ignores_api_key(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({
            "settings": {"apiKey": "sk-leaked", "voiceId": "v3", "model": "eleven_v3"},
            "recentVoiceIds": ["v3"],
        }), encoding="utf-8")
        profile = import_profile(path)
        assert profile.voice_id == "v3"
        assert "sk-leaked" not in json.dumps(profile.to_dict())

    def test_import_invalid_dial(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"settings": {"stability": -5}}), encoding="utf-8")
        with pytest.raises(ValidationError):
            import_profile(path)

    def test_import_missing_file(self, tmp_path):
        with pytest.raises(ProfileError):
            import_profile(tmp_path / "absent.json")

    def test_import_bad_settings_section(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"settings": "nope"}), encoding="utf-8")
        with pytest.raises(ProfileError):
            import_profile(path)
