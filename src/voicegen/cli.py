"""
Command-Line Interface for voicegen.

Generates speech straight from the terminal, without running the HTTP
proxy: the same validator and provider adapter are used in-process.
Also manages the local profile (last voice, model, dials, recent voice
ids, the last ten generations) and starts the HTTP server.

Usage Examples:
    # Generate audio
    voicegen "Hello there." --voice-id 21m00Tcm4TlvDq8ikWAM --out hello.mp3

    # Script from a file, custom dials
    voicegen --file script.txt --voice-id V --stability 40 --speed 0.9

    # Dry run: validate and show the provider payload (credential masked)
    voicegen "Test" --voice-id V --dry-run --json

    # Profile management
    voicegen "Test" --voice-id V --model eleven_v3 --save-profile --dry-run
    voicegen --recent
    voicegen --history
    voicegen --clear-history
    voicegen --auto-save           # later runs without --out keep audio in ~/.voicegen/voices
    voicegen --export ./backup/
    voicegen --import ./backup/voice_generator_export_2026-10-17.json

    # Run the HTTP proxy
    voicegen serve --host 0.0.0.0 --port 8000

Exit Codes:
    0: Success
    1: Provider or I/O failure
    2: Invalid input (validation error)

Environment Variables:
    VOICEGEN_API_KEY: Provider credential (instead of --api-key)
    VOICEGEN_PROFILE: Profile file path
    VOICEGEN_VOICES_DIR: Auto-save directory (default: ~/.voicegen/voices)
    VOICEGEN_SETTINGS: Settings file path
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import httpx

from voicegen import __version__
from voicegen.core.config import load_settings
from voicegen.core.logging import REDACTED, configure_logging, get_logger, info, set_request_id
from voicegen.profile import (
    Profile,
    ProfileError,
    default_voices_dir,
    export_profile,
    import_profile,
    load_profile,
    save_profile,
)
from voicegen.provider.elevenlabs import ElevenLabsAdapter, build_payload, synthesis_path
from voicegen.services.errors import ProviderError
from voicegen.services.models import SynthesisRequest, VoiceModel
from voicegen.services.validators import ValidationError, validate_generation_request
from voicegen.services.voice_service import download_filename

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments for generation and profile commands.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        prog="voicegen",
        description="voicegen CLI (ElevenLabs text-to-speech). Use 'voicegen serve' for the HTTP proxy.",
    )
    parser.add_argument("--version", action="version", version=f"voicegen {__version__}")

    # Input options
    parser.add_argument("script", nargs="?", help="Script to speak (positional)")
    parser.add_argument("--file", help="Read the script from a text file")

    # Provider options (fall back to the profile)
    parser.add_argument("--api-key", help="Provider API key (default: $VOICEGEN_API_KEY)")
    parser.add_argument("--voice-id", help="Provider voice id")
    parser.add_argument("--model", choices=[m.value for m in VoiceModel], help="Provider model")
    parser.add_argument("--stability", type=float, help="Stability percent, 0-100")
    parser.add_argument("--similarity", type=float, help="Similarity percent, 0-100")
    parser.add_argument("--style-exaggeration", type=float, help="Style exaggeration percent, 0-100")
    parser.add_argument("--speed", type=float, help="Speed multiplier, 0.25-2.0")

    # Output options
    parser.add_argument("--out", help="Output file (default: voice_<millis>.mp3, see --auto-save)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and print the provider payload without calling it")
    parser.add_argument("--json", action="store_true", help="Print JSON output")

    # Profile management
    parser.add_argument("--profile", help="Profile file (default: ~/.voicegen/profile.json)")
    parser.add_argument("--save-profile", action="store_true",
                        help="Remember voice, model and dials for later runs")
    parser.add_argument("--recent", action="store_true", help="List recently used voice ids")
    parser.add_argument("--history", action="store_true", help="List the last ten generations")
    parser.add_argument("--clear-history", action="store_true", help="Forget past generations")
    parser.add_argument("--auto-save", action=argparse.BooleanOptionalAction, default=None,
                        help="Without --out, keep audio in the voices directory (remembered)")
    parser.add_argument("--export", metavar="PATH",
                        help="Export settings, recent voices and history to a JSON file or directory")
    parser.add_argument("--import", dest="import_path", metavar="PATH", help="Import a profile export")

    parser.add_argument("--settings", help="Settings YAML (default: $VOICEGEN_SETTINGS or config/settings.yaml)")

    return parser.parse_args(argv)


def _parse_serve_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="voicegen serve", description="Run the voicegen HTTP proxy")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    return parser.parse_args(argv)


def _serve(argv: List[str]) -> int:
    """Run the FastAPI app under uvicorn."""
    import uvicorn

    args = _parse_serve_args(argv)
    uvicorn.run("voicegen.main:app", host=args.host, port=args.port, reload=args.reload)
    return EXIT_OK


def _load_script(args: argparse.Namespace) -> str:
    """
    Script from --file or the positional argument.

    The script is passed on as-is (no trimming); an empty one is left to
    the validator to reject.

    Raises:
        SystemExit: Both inputs given, or the file is unreadable.
    """
    if args.file:
        if args.script:
            raise SystemExit("Use --file without a positional script.")
        try:
            return Path(args.file).read_text(encoding="utf-8")
        except OSError as e:
            raise SystemExit(f"Cannot read {args.file}: {e.strerror}")
    return args.script or ""


def _build_body(args: argparse.Namespace, profile: Profile, script: str) -> Dict[str, Any]:
    """Request body from flags, falling back to the profile for unset values."""
    dials = profile.settings
    return {
        "script": script,
        "apiKey": args.api_key or os.getenv("VOICEGEN_API_KEY", ""),
        "voiceId": args.voice_id or profile.voice_id,
        "model": args.model or profile.model.value,
        "settings": {
            "stability": args.stability if args.stability is not None else dials.stability,
            "similarity": args.similarity if args.similarity is not None else dials.similarity,
            "styleExaggeration": (
                args.style_exaggeration if args.style_exaggeration is not None else dials.style_exaggeration
            ),
            "speed": args.speed if args.speed is not None else dials.speed,
        },
    }


def _dry_run_summary(request: SynthesisRequest, base_url: str) -> Dict[str, Any]:
    """What would be sent to the provider, credential masked."""
    return {
        "ok": True,
        "dry_run": True,
        "url": f"{base_url}{synthesis_path(request.voice_id)}",
        "headers": {"xi-api-key": REDACTED, "Content-Type": "application/json"},
        "payload": build_payload(request),
        "chars": len(request.script),
    }


def _print(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        for key, value in payload.items():
            print(f"{key}: {value}")


def _output_path(args: argparse.Namespace, profile: Profile) -> Path:
    """--out if given, else the default name in the voices directory (auto-save) or here."""
    if args.out:
        return Path(args.out)
    name = download_filename()
    return default_voices_dir() / name if profile.auto_save else Path(name)


def _remember(profile: Profile, request: SynthesisRequest, save_all: bool) -> None:
    profile.remember_voice(request.voice_id)
    if save_all:
        profile.voice_id = request.voice_id
        profile.model = request.model
        profile.settings = request.settings


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Workflow:
        1. 'serve' subcommand: run uvicorn and return
        2. Profile commands (--import, --auto-save, --clear-history,
           --recent, --history, --export)
        3. Build and validate the request (exit 2 on failure)
        4. Dry run: print the payload and DRY_RUN_OK
        5. Call the provider once and write the audio (exit 1 on failure)

    Returns:
        Exit code (0 success, 1 provider/IO failure, 2 invalid input).
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "serve":
        return _serve(argv[1:])

    args = _parse_args(argv)

    configure_logging()
    log = get_logger("voicegen.cli")
    set_request_id(str(uuid4())[:12])

    profile_path = Path(args.profile) if args.profile else None
    try:
        profile = load_profile(profile_path)
    except ProfileError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    # ─────────────────────────────────────────────────────────────────────────
    # Profile commands
    # ─────────────────────────────────────────────────────────────────────────
    if args.import_path:
        try:
            imported = import_profile(Path(args.import_path))
        except ProfileError as e:
            print(f"error: {e}", file=sys.stderr)
            return EXIT_FAILURE
        except ValidationError as e:
            print(f"error: {e.code}: {e.message}", file=sys.stderr)
            return EXIT_INVALID
        written = save_profile(imported, profile_path)
        _print({"ok": True, "imported": args.import_path, "profile": str(written)}, args.json)
        print("IMPORT_OK")
        return EXIT_OK

    if args.auto_save is not None:
        profile.auto_save = args.auto_save
        save_profile(profile, profile_path)
        if not (args.script or args.file):
            _print({"ok": True, "autoSave": profile.auto_save}, args.json)
            return EXIT_OK

    if args.clear_history:
        removed = profile.clear_history()
        save_profile(profile, profile_path)
        _print({"ok": True, "cleared": removed}, args.json)
        print("HISTORY_CLEARED")
        return EXIT_OK

    if args.recent:
        if args.json:
            print(json.dumps(profile.recent_voice_ids))
        elif not profile.recent_voice_ids:
            print("No recent voice IDs")
        else:
            for voice_id in profile.recent_voice_ids:
                print(voice_id)
        return EXIT_OK

    if args.history:
        if args.json:
            print(json.dumps(profile.history_list()))
        elif not profile.history:
            print("No generations yet")
        else:
            for entry in profile.history:
                voice = entry.settings.get("voiceId", "")
                print(f"#{entry.id}  {entry.timestamp}  {voice}  {entry.preview}")
        return EXIT_OK

    if args.export:
        written = export_profile(profile, args.export)
        _print({"ok": True, "exported": str(written)}, args.json)
        return EXIT_OK

    # ─────────────────────────────────────────────────────────────────────────
    # Validate
    # ─────────────────────────────────────────────────────────────────────────
    settings = load_settings(args.settings, missing_ok=args.settings is None)
    config = settings.get_service_config()

    body = _build_body(args, profile, _load_script(args))
    try:
        request = validate_generation_request(body, max_script_chars=config.limits.max_script_chars)
    except ValidationError as e:
        print(f"error: {e.code}: {e.message}", file=sys.stderr)
        return EXIT_INVALID

    if args.save_profile:
        _remember(profile, request, save_all=True)
        save_profile(profile, profile_path)

    if args.dry_run:
        info(log, "dry_run", **request.describe())
        _print(_dry_run_summary(request, config.provider.base_url), args.json)
        print("DRY_RUN_OK")
        return EXIT_OK

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesize
    # ─────────────────────────────────────────────────────────────────────────
    info(log, "synth_start", **request.describe())
    try:
        with ElevenLabsAdapter.from_config(config.provider) as adapter:
            audio = adapter.synthesize(request)
    except ProviderError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    except httpx.HTTPError as e:
        print(f"error: provider unreachable ({type(e).__name__})", file=sys.stderr)
        return EXIT_FAILURE

    out_path = _output_path(args, profile)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(audio.audio_bytes)

    _remember(profile, request, save_all=args.save_profile)
    entry = profile.add_generation(request, file=out_path.resolve())
    save_profile(profile, profile_path)

    _print({
        "ok": True,
        "out": str(out_path),
        "bytes": len(audio.audio_bytes),
        "content_type": audio.content_type,
        "history_id": entry.id,
    }, args.json)
    print("CLI_OK")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
