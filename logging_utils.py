#!/usr/bin/env python3
"""Logging utilities for github-to-gitea."""

import os
import sys
import threading
import time
from typing import IO, Optional

import colorama

from security import SecurityValidator

# Initialize colorama for cross-platform colored output
colorama.init(autoreset=True)


class Logger:
    """Timestamped, credential-safe output to the console and a log file."""

    PROCESS_NAME = "github-to-gitea"

    _log_file: Optional[IO[str]] = None
    _lock = threading.Lock()

    @classmethod
    def configure(cls, log_file: str) -> None:
        """Open (append-only) the log file every subsequent line is copied to."""
        cls.close()
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        cls._log_file = open(log_file, "a", encoding="utf-8")

    @classmethod
    def close(cls) -> None:
        with cls._lock:
            if cls._log_file is not None:
                cls._log_file.close()
                cls._log_file = None

    @classmethod
    def debug(cls, *messages: str) -> None:
        cls._emit(sys.stdout, colorama.Fore.LIGHTBLACK_EX, "DEBUG", *messages)

    @classmethod
    def info(cls, *messages: str) -> None:
        cls._emit(sys.stdout, colorama.Fore.CYAN, "INFO", *messages)

    @classmethod
    def success(cls, *messages: str) -> None:
        cls._emit(sys.stdout, colorama.Fore.GREEN, "SUCCESS", *messages)

    @classmethod
    def warn(cls, *messages: str) -> None:
        cls._emit(sys.stdout, colorama.Fore.YELLOW, "WARN", *messages)

    @classmethod
    def error(cls, *messages: str) -> None:
        cls._emit(sys.stderr, colorama.Fore.RED, "ERROR", *messages)

    @classmethod
    def security_event(cls, event_type: str, details: str) -> None:
        """Log security events with appropriate sanitization."""
        cls._emit(
            sys.stderr, colorama.Fore.MAGENTA, "SECURITY",
            f"[SECURITY:{event_type}] {details}",
        )

    @classmethod
    def _emit(cls, stream: IO[str], color: str, level: str, *messages: str) -> None:
        message = " ".join(
            SecurityValidator.sanitize_for_logging(str(m)) for m in messages
        )
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        with cls._lock:
            stream.write(cls._format_line(color, timestamp, message) + "\n")
            if cls._log_file is not None:
                cls._log_file.write(f"[{timestamp}] [{level}] {message}\n")
                cls._log_file.flush()

    @classmethod
    def _get_header(cls) -> str:
        return f"[{cls.PROCESS_NAME}:{os.getpid()}]"

    @classmethod
    def _format_line(cls, color: str, timestamp: str, message: str) -> str:
        header = cls._get_header()
        return f"{color}{header}{colorama.Style.RESET_ALL} [{timestamp}] {message}"
