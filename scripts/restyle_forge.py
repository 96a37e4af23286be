#!/usr/bin/env python3
"""Restyle product, portrait and interior photos with Gemini (Restyle Forge).

Usage:
  python scripts/restyle_forge.py generate shoe.jpg --mode product --ratio 16:9
  python scripts/restyle_forge.py generate shoe.jpg --reference mood.jpg --tactic "Complete Mimicry"
  python scripts/restyle_forge.py regenerate shoe.jpg --prompt "..." --ratio match
  python scripts/restyle_forge.py history list
  python scripts/restyle_forge.py preview room.jpg --ratio 4:3 --out preview.png

Notes:
- Loads .env from the working directory or its parents.
- History lives under RESTYLE_HISTORY_DIR (default outputs/restyle_forge/history).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from restyle_image_api import api
from restyle_image_api.core.config import Settings, load_settings
from restyle_image_api.core.contracts import HistoryEntry, Mode, RunState
from restyle_image_api.core.errors import RestyleError
from restyle_image_api.core.logs import setup_logging
from restyle_image_api.core.receipts import export_entry
from restyle_image_api.core.utils import now_ms, utc_timestamp

logger = logging.getLogger("restyle_forge")

MODE_CHOICES = ["product", "portrait", "interior"]
DEFAULT_OUT_DIR = "outputs/restyle_forge"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


class _Spinner:
    def __init__(self, message: str, interval: float = 0.1) -> None:
        self.message = message
        self.interval = interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self) -> None:
        if sys.stdout.isatty():
            self._thread.start()

    def stop(self) -> None:
        if not sys.stdout.isatty():
            return
        self._stop.set()
        self._thread.join(timeout=1.0)
        sys.stdout.write("\r" + " " * (len(self.message) + 4) + "\r")
        sys.stdout.flush()

    def _run(self) -> None:
        frames = ["|", "/", "-", "\\"]
        index = 0
        while not self._stop.is_set():
            frame = frames[index % len(frames)]
            sys.stdout.write(f"\r{self.message} {frame}")
            sys.stdout.flush()
            time.sleep(self.interval)
            index += 1


def _selections(args: argparse.Namespace) -> Dict[str, Any]:
    keys = ["ratio", "lighting", "perspective", "color", "tactic", "environment", "vibe", "style", "material"]
    selections = {key: getattr(args, key, None) for key in keys}
    selections = {key: value for key, value in selections.items() if value is not None}
    if getattr(args, "no_reference", False):
        selections["use_reference"] = False
    return selections


def _run_with_spinner(label: str, coro) -> Any:
    spinner = _Spinner(f"{label} in progress")
    spinner.start()
    try:
        return asyncio.run(coro)
    finally:
        spinner.stop()


def _write_result(state: RunState, out_dir: Path, grain: float, settings: Settings) -> Optional[Path]:
    """Export the run's image, via its history entry when one was saved."""
    if state.history_entry_id is not None:
        exported = asyncio.run(
            api.export_history(state.history_entry_id, out_dir, grain=grain, settings=settings)
        )
        if exported is not None:
            image_path, receipt_path = exported
            print(image_path)
            print(receipt_path)
            return image_path
    if state.image is None or state.ratio is None:
        return None
    mode = state.parameters.mode if state.parameters else Mode.PRODUCT
    unsaved = HistoryEntry(
        id=utc_timestamp(),
        mode=mode,
        timestamp=now_ms(),
        image=state.image,
        prompt=state.prompt or "",
        ratio=state.ratio,
    )
    image_path, receipt_path = export_entry(unsaved, out_dir, grain=grain)
    print(image_path)
    print(receipt_path)
    return image_path


def _report(state: RunState, args: argparse.Namespace, settings: Settings) -> int:
    if state.error is not None:
        print(f"Generation failed ({state.error.kind.value}): {state.error.message}")
        return EXIT_FAILED
    if not state.ok:
        print(f"Run ended in phase {state.phase.value}.")
        return EXIT_FAILED
    if state.prompt:
        print(f"Prompt: {state.prompt}")
    if state.ratio is not None:
        print(f"Ratio: {state.ratio.label}")
    if state.history_error is not None:
        print(f"Warning: result not saved to history: {state.history_error.message}")
    _write_result(state, Path(args.out).expanduser(), getattr(args, "grain", 0.0) or 0.0, settings)
    return EXIT_OK


def _cmd_generate(args: argparse.Namespace, settings: Settings) -> int:
    state = _run_with_spinner(
        f"Restyling ({args.mode})",
        api.generate(
            source=args.image,
            mode=args.mode,
            selections=_selections(args),
            references=args.reference or [],
            settings=settings,
        ),
    )
    return _report(state, args, settings)


def _cmd_regenerate(args: argparse.Namespace, settings: Settings) -> int:
    if args.from_history:
        state = _run_with_spinner(
            f"Regenerating from {args.from_history}",
            api.regenerate_from_history(
                args.from_history,
                source=args.image,
                prompt=args.prompt,
                ratio=args.ratio,
                mode=args.mode,
                settings=settings,
            ),
        )
        if state is None:
            print(f"No history entry {args.from_history}.")
            return EXIT_FAILED
        return _report(state, args, settings)
    if not args.prompt:
        print("Error: --prompt is required unless --from-history is given.", file=sys.stderr)
        return EXIT_USAGE
    mode = args.mode or "product"
    state = _run_with_spinner(
        f"Regenerating ({mode})",
        api.regenerate(
            source=args.image,
            prompt=args.prompt,
            ratio=args.ratio or "1:1",
            mode=mode,
            settings=settings,
        ),
    )
    return _report(state, args, settings)


def _format_entry(entry) -> str:
    created = datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    prompt = entry.prompt if len(entry.prompt) <= 60 else entry.prompt[:57] + "..."
    return f"{entry.id}  {created}  {entry.mode.value:<8}  {entry.ratio.label:<5}  {prompt}"


def _cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    if args.history_command == "list":
        entries = asyncio.run(api.list_history(settings))
        if not entries:
            print("History is empty.")
        for entry in entries:
            print(_format_entry(entry))
        return EXIT_OK
    if args.history_command == "delete":
        asyncio.run(api.delete_history(args.entry_id, settings))
        print(f"Deleted {args.entry_id}.")
        return EXIT_OK
    if args.history_command == "clear":
        asyncio.run(api.clear_history(settings))
        print("History cleared.")
        return EXIT_OK
    exported = asyncio.run(
        api.export_history(args.entry_id, Path(args.out).expanduser(), grain=args.grain, settings=settings)
    )
    if exported is None:
        print(f"No history entry {args.entry_id}.")
        return EXIT_FAILED
    for path in exported:
        print(path)
    return EXIT_OK


def _cmd_preview(args: argparse.Namespace, settings: Settings) -> int:
    asset = api.preview(args.image, args.ratio)
    out = Path(args.out).expanduser() if args.out else Path(DEFAULT_OUT_DIR) / f"preview-{utc_timestamp()}.png"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(asset.data)
    print(f"{out} ({asset.width}x{asset.height})")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Restyle Forge: AI restyling for product, portrait and interior photos.")
    parser.add_argument("--log-level", default=None, help="Override RESTYLE_LOG_LEVEL (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Synthesize a prompt for IMAGE and render it")
    gen.add_argument("image", help="Source image path")
    gen.add_argument("--mode", choices=MODE_CHOICES, default="product", help="Restyle mode (default: product)")
    gen.add_argument("--ratio", default=None, help="1:1, 3:4, 4:3, 16:9, 9:16 or 'match'")
    gen.add_argument("--lighting", default=None, help="Product lighting style")
    gen.add_argument("--perspective", default=None, help="Product camera perspective")
    gen.add_argument("--color", default=None, help="Product color theory")
    gen.add_argument("--tactic", default=None, help="Reference tactic")
    gen.add_argument("--reference", action="append", help="Style reference image (repeatable)")
    gen.add_argument("--no-reference", action="store_true", help="Ignore reference images")
    gen.add_argument("--environment", default=None, help="Portrait environment")
    gen.add_argument("--vibe", default=None, help="Portrait vibe")
    gen.add_argument("--style", default=None, help="Interior style")
    gen.add_argument("--material", default=None, help="Interior material palette")
    gen.add_argument("--out", default=DEFAULT_OUT_DIR, help=f"Output directory (default: {DEFAULT_OUT_DIR})")
    gen.add_argument("--grain", type=float, default=0.0, help="Film grain intensity for the export (e.g. 0.04)")
    gen.set_defaults(handler=_cmd_generate)

    regen = sub.add_parser("regenerate", help="Render IMAGE again from an edited prompt")
    regen.add_argument("image", help="Source image path")
    regen.add_argument("--prompt", default=None, help="Prompt text to render (required without --from-history)")
    regen.add_argument("--ratio", default=None, help="Target ratio (default: 1:1, or the saved entry's)")
    regen.add_argument("--mode", choices=MODE_CHOICES, default=None, help="Restyle mode (default: product, or the saved entry's)")
    regen.add_argument("--from-history", metavar="ID", default=None, help="Restore prompt, ratio and mode from a history entry")
    regen.add_argument("--out", default=DEFAULT_OUT_DIR, help=f"Output directory (default: {DEFAULT_OUT_DIR})")
    regen.add_argument("--grain", type=float, default=0.0, help="Film grain intensity for the export")
    regen.set_defaults(handler=_cmd_regenerate)

    hist = sub.add_parser("history", help="Inspect saved results")
    hist_sub = hist.add_subparsers(dest="history_command", required=True)
    hist_sub.add_parser("list", help="List entries, newest first")
    delete = hist_sub.add_parser("delete", help="Delete one entry")
    delete.add_argument("entry_id")
    hist_sub.add_parser("clear", help="Delete every entry")
    export = hist_sub.add_parser("export", help="Write an entry's image and receipt")
    export.add_argument("entry_id")
    export.add_argument("--out", default=DEFAULT_OUT_DIR, help=f"Output directory (default: {DEFAULT_OUT_DIR})")
    export.add_argument("--grain", type=float, default=0.0, help="Film grain intensity (e.g. 0.04)")
    hist.set_defaults(handler=_cmd_history)

    prev = sub.add_parser("preview", help="Center-crop IMAGE to a ratio")
    prev.add_argument("image", help="Source image path")
    prev.add_argument("--ratio", required=True, help="Target ratio")
    prev.add_argument("--out", default=None, help="Output file (default: outputs/restyle_forge/preview-*.png)")
    prev.set_defaults(handler=_cmd_preview)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings()
    setup_logging(settings, level=args.log_level)
    try:
        return args.handler(args, settings)
    except (RestyleError, ValueError, FileNotFoundError) as exc:
        logger.debug("Command %s rejected.", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except KeyboardInterrupt:
        print("\nCancelled.")
        return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
