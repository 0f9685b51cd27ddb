"""Download and unpack a Vosk recognition model outside the listening hot path."""

from __future__ import annotations

import argparse
import io
import sys
import zipfile
from pathlib import Path
from typing import Optional

import httpx

from voicecmd.recognition.model_backend import MODEL_DOWNLOAD_URL, install_instructions
from voicecmd.settings import get_settings


class InstallError(Exception):
    pass


def download_model(
    name: str,
    model_dir: Path,
    *,
    url: Optional[str] = None,
    client: Optional[httpx.Client] = None,
    force: bool = False,
) -> Path:
    target = model_dir / name
    if target.exists() and not force:
        return target
    model_dir.mkdir(parents=True, exist_ok=True)
    url = url or MODEL_DOWNLOAD_URL.format(name=name)
    owns_client = client is None
    client = client or httpx.Client(timeout=60.0, follow_redirects=True)
    buffer = io.BytesIO()
    try:
        with client.stream("GET", url) as resp:
            if resp.status_code != 200:
                raise InstallError(f"Download failed: HTTP {resp.status_code} for {url}")
            for block in resp.iter_bytes():
                buffer.write(block)
    except httpx.HTTPError as exc:
        raise InstallError(f"Download failed: {exc}") from exc
    finally:
        if owns_client:
            client.close()
    _extract(buffer, model_dir)
    if not target.exists():
        raise InstallError(f"Archive did not contain {name}/")
    return target


def _extract(buffer: io.BytesIO, model_dir: Path) -> None:
    root = model_dir.resolve()
    try:
        with zipfile.ZipFile(buffer) as archive:
            for member in archive.namelist():
                destination = (model_dir / member).resolve()
                if root not in destination.parents and destination != root:
                    raise InstallError(f"Refusing to extract outside {model_dir}: {member}")
            archive.extractall(model_dir)
    except zipfile.BadZipFile as exc:
        raise InstallError(f"Downloaded file is not a zip archive: {exc}") from exc


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Install a Vosk model for voice commands.")
    parser.add_argument(
        "--name",
        default=settings.model_names[0] if settings.model_names else "vosk-model-small-es-0.42",
        help="Model directory name (default: first entry of VOICE_MODEL_NAMES).",
    )
    parser.add_argument(
        "--model-dir",
        type=Path,
        default=settings.model_root,
        help="Directory holding recognition models (default: VOICE_MODEL_DIR).",
    )
    parser.add_argument("--url", default=None, help="Override the download URL.")
    parser.add_argument("--force", action="store_true", help="Re-download even if present.")
    args = parser.parse_args(argv)
    try:
        path = download_model(args.name, args.model_dir, url=args.url, force=args.force)
    except InstallError as exc:
        print(f"Install failed: {exc}", file=sys.stderr)
        print(install_instructions(args.model_dir, [args.name]), file=sys.stderr)
        return 1
    print(f"Model ready at {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
