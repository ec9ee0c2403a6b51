"""Read `.env` files for local runs, including multi-line service account JSON."""

from __future__ import annotations

import os
import re
from pathlib import Path


def default_env_path() -> Path:
  return Path(__file__).resolve().parents[2] / ".env"


def _unquote(value: str, quote: str) -> str:
  """Strip the surrounding quotes; double-quoted values honour \\" and \\\\ escapes."""
  inner = value[1:-1]
  if quote == "'":
    return inner
  # Leave JSON escapes such as \n inside private keys untouched.
  return re.sub(r'\\(["\\])', r"\1", inner)


def _closes(value: str, quote: str) -> bool:
  """Return True when the value ends with an unescaped closing quote."""
  if len(value) < 2 or not value.endswith(quote):
    return False
  # Count trailing backslashes before the quote; an odd count escapes it.
  backslashes = len(value[:-1]) - len(value[:-1].rstrip("\\"))
  return quote == "'" or backslashes % 2 == 0


def parse_env_lines(lines: list[str]) -> dict[str, str]:
  """Parse KEY=VALUE lines, joining quoted values that span several lines."""
  parsed: dict[str, str] = {}
  index = 0
  while index < len(lines):
    line = lines[index].strip()
    index += 1
    if not line or line.startswith("#"):
      continue
    if line.startswith("export "):
      line = line[len("export ") :].lstrip()
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
      continue

    value = value.strip()
    quote = value[:1]
    if quote in {'"', "'"}:
      # A pasted service account blob keeps its line breaks until the closing quote.
      while not _closes(value, quote) and index < len(lines):
        value = f"{value}\n{lines[index].rstrip()}"
        index += 1
      if not _closes(value, quote):
        raise ValueError(f"Unterminated quoted value for {key} in .env file")
      value = _unquote(value, quote)

    parsed[key] = value
  return parsed


def load_env_file(path: Path, *, override: bool = False) -> None:
  """Export values from a .env file; real environment variables win unless override is set."""
  if not path.is_file():
    return

  for key, value in parse_env_lines(path.read_text(encoding="utf-8").splitlines()).items():
    if not override and key in os.environ:
      continue
    os.environ[key] = value
