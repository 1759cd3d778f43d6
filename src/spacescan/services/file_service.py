"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Cross-platform actions on scanned files: open, reveal, move to trash.
The scan engine never touches the filesystem; hosts call these instead and
then drop the affected records from their listings.
"""
import os
import sys
import logging
import subprocess
from pathlib import Path
from typing import List

from send2trash import send2trash

logger = logging.getLogger(__name__)

SPAWN_TIMEOUT = 5  # seconds


class FileService:
    """
    Cross-platform file operations.
    Every failure surfaces as FileNotFoundError or RuntimeError.
    """

    @staticmethod
    def open_file(file_path: str):
        """Opens a file with the system default application."""
        path = FileService._existing(file_path)

        try:
            if sys.platform == 'win32':
                os.startfile(str(path))
            elif sys.platform == 'darwin':
                subprocess.Popen(['open', str(path)])
            else:
                FileService._spawn_linux(str(path), "open file")
        except Exception as e:
            raise RuntimeError(f"Failed to open file: {e}") from e

    @staticmethod
    def reveal_in_file_manager(file_path: str):
        """Shows a file selected in the system file manager (its folder on Linux)."""
        path = FileService._existing(file_path)

        try:
            if sys.platform == 'win32':
                subprocess.Popen(['explorer', '/select,', str(path)])
            elif sys.platform == 'darwin':
                subprocess.Popen(['open', '-R', str(path)])
            else:
                FileService._spawn_linux(str(path.parent), "reveal file")
        except Exception as e:
            raise RuntimeError(f"Failed to reveal file: {e}") from e

    @staticmethod
    def _spawn_linux(target: str, action: str):
        """Tries gio, falls back to xdg-open."""
        env = FileService._get_clean_env()

        try:
            subprocess.run(['gio', 'open', target], env=env, timeout=SPAWN_TIMEOUT)
            return
        except (FileNotFoundError, subprocess.TimeoutExpired):
            logger.debug("gio unavailable, falling back to xdg-open")

        try:
            subprocess.run(['xdg-open', target], env=env, timeout=SPAWN_TIMEOUT)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise RuntimeError(f"Cannot {action}: no suitable application found") from e

    @staticmethod
    def move_to_trash(file_path: str):
        """Moves a file to the system trash."""
        path = FileService._existing(file_path)

        try:
            send2trash(str(path))
        except Exception as e:
            raise RuntimeError(f"Failed to move to trash: {e}") from e
        logger.debug(f"Moved to trash: {path}")

    @classmethod
    def move_multiple_to_trash(cls, file_paths: List[str]) -> List[str]:
        """
        Moves several files to trash, continuing past failures.
        Returns the paths that were trashed; raises RuntimeError listing the
        failures (at most five by name) if any path could not be trashed.
        """
        trashed = []
        errors = []
        for path in file_paths:
            try:
                cls.move_to_trash(path)
                trashed.append(path)
            except (FileNotFoundError, RuntimeError) as e:
                errors.append((path, str(e)))

        if errors:
            error_summary = "\n".join(
                f"  • {Path(p).name}: {msg.split(':')[-1].strip()}"
                for p, msg in errors[:5]
            )
            if len(errors) > 5:
                error_summary += f"\n  • ...and {len(errors) - 5} more files"
            raise RuntimeError(
                f"Failed to move {len(errors)} file(s) to trash:\n{error_summary}"
            )
        return trashed

    @staticmethod
    def _existing(file_path: str) -> Path:
        path = Path(file_path).resolve()
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return path

    @staticmethod
    def _get_clean_env():
        """
        Environment for spawning desktop applications from a frozen build:
        PyInstaller's temporary library paths are removed from LD_LIBRARY_PATH.
        """
        env = os.environ.copy()

        if getattr(sys, 'frozen', False) and sys.platform.startswith('linux'):
            ld_path = env.get('LD_LIBRARY_PATH', '')
            if ld_path:
                clean_paths = [
                    p for p in ld_path.split(':')
                    if not p.startswith('/tmp/_MEI')
                       and not p.startswith(os.path.dirname(sys.executable))
                ]
                env['LD_LIBRARY_PATH'] = ':'.join(clean_paths)

        env.setdefault('DISPLAY', ':0')
        return env
