"""Shader source files on disk or in memory, with ``#include`` tracking.

A :class:`SourceTree` keeps one :class:`SourceFile` per path. Main shader
files are marked stale whenever they, or anything they include, change.
Their final text pastes every include in place, each file at most once.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterator, Optional

VERSION_HEADER = "#version 430 core\n"

_ASCII_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")


class ShaderType(enum.Enum):
    """Shader stage, keyed by the last four characters of the file name."""

    VERTEX = "vert"
    FRAGMENT = "frag"
    COMPUTE = "comp"
    GEOMETRY = "geom"
    TESS_CONTROL = "ctrl"
    TESS_EVALUATION = "eval"


def shader_type_for(pathfile: str) -> Optional[ShaderType]:
    """Stage named by the path's last four characters, or None."""
    try:
        return ShaderType(pathfile[-4:])
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class Include:
    """An ``#include "path"`` directive found in a text.

    ``start`` and ``end`` are offsets of the text the directive replaces; the
    end takes in trailing spaces and the line break. ``line`` is the 1-based
    line of the directive. ``pathfile`` is the resolved path once known.
    """

    start: int
    end: int
    line: int
    path: str
    pathfile: Optional[str] = None


def _skip(text: str, pos: int, end: int, chars) -> int:
    while pos < end and text[pos] in chars:
        pos += 1
    return pos


def parse_includes(text: str) -> list[Include]:
    """Find the include directives in ``text``, in order of appearance.

    Line breaks are ``\\n`` only; parsing stops at a NUL character.
    """
    includes: list[Include] = []
    end = text.find("\0")
    if end < 0:
        end = len(text)
    pos = 0
    line = 1
    while pos < end:
        c = text[pos]
        if c == "#":
            start = pos
            directive_line = line
            pos += 1
            word_end = _skip(text, pos, end, _ASCII_LETTERS)
            directive = text[pos:word_end]
            pos = word_end
            if directive != "include":
                continue
            pos = _skip(text, pos, end, " ")
            if pos >= end or text[pos] != '"':
                continue
            pos += 1
            close = text.find('"', pos, end)
            if close < 0:
                pos = end
                continue
            path = text[pos:close]
            pos = _skip(text, close + 1, end, " ")
            if pos < end and text[pos] == "\n":
                line += 1
                pos += 1
            includes.append(Include(start, pos, directive_line, path))
        elif c == "\n":
            line += 1
            pos += 1
        else:
            pos += 1
    return includes


@dataclass
class SourceFile:
    """State of one tracked file."""

    pathfile: str
    is_main: bool = False
    path: str = field(init=False)
    name: str = field(init=False)
    file: str = field(init=False)
    shader_type: Optional[ShaderType] = field(init=False)
    last_modified: Optional[int] = None
    not_found: bool = False
    text: Optional[str] = None
    is_procedural: bool = False
    procedural_text: str = ""
    procedurally_modified: bool = False
    users: list = field(default_factory=list)
    includes: list = field(default_factory=list)

    def __post_init__(self):
        slash = self.pathfile.rfind("/")
        self.path = self.pathfile[: slash + 1]
        self.file = self.pathfile[slash + 1:]
        self.name = "/".join(self.pathfile.rsplit("/", 2)[-2:])
        self.shader_type = shader_type_for(self.pathfile) if self.is_main else None


class SourceTree:
    """Every file read so far, who includes whom, and which shaders are stale."""

    def __init__(self):
        self._files: dict[str, SourceFile] = {}
        self._stale: set[str] = set()

    def __contains__(self, pathfile) -> bool:
        return pathfile in self._files

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)

    def entry(self, pathfile: str, is_main: bool = False) -> SourceFile:
        """The file for ``pathfile``, created and read on first request.

        A main file starts out stale. An existing entry is returned as it is.
        """
        if not pathfile:
            raise ValueError("empty path")
        existing = self._files.get(pathfile)
        if existing is not None:
            return existing
        f = SourceFile(pathfile, is_main)
        self._files[pathfile] = f
        if is_main:
            self._stale.add(pathfile)
        self._check(f)
        return f

    def inject_procedural_file(self, pathfile: str, text: str) -> SourceFile:
        """Supply a file's text from memory; it takes effect on the next refresh."""
        f = self.entry(pathfile, False)
        f.is_procedural = True
        f.procedurally_modified = True
        f.procedural_text = text
        return f

    def refresh(self, pathfile: str) -> None:
        """Re-read one file if it changed."""
        self._check(self._get(pathfile))

    def refresh_all(self) -> None:
        """Re-read every file that changed."""
        for f in list(self._files.values()):
            self._check(f)

    def take_stale(self) -> list[str]:
        """Main files marked stale since the last call, in entry order."""
        stale = [p for p in self._files if p in self._stale]
        self._stale.clear()
        return stale

    def text(self, pathfile: str) -> Optional[str]:
        """Current text of a file, or None if it could not be read."""
        return self._get(pathfile).text

    def final_text(self, pathfile: str) -> Optional[str]:
        """Version header plus the file with its includes pasted in.

        Each pasted piece is preceded by a ``#line`` directive. Returns None
        when the file itself has no text.
        """
        f = self._get(pathfile)
        if f.text is None:
            return None
        parts = [VERSION_HEADER]
        self._concat(f, parts, [], set())
        return "".join(parts)

    def users_of(self, pathfile: str) -> list[str]:
        """Paths of the files that directly include ``pathfile``."""
        return list(self._get(pathfile).users)

    def _get(self, pathfile: str) -> SourceFile:
        try:
            return self._files[pathfile]
        except KeyError:
            raise KeyError(f"unknown source file {pathfile!r}") from None

    def _clear(self, f: SourceFile) -> None:
        f.text = None
        for inc in f.includes:
            target = self._files[inc.pathfile]
            if f.pathfile in target.users:
                target.users.remove(f.pathfile)
        f.includes = []

    def _alert(self, f: SourceFile, seen: Optional[set] = None) -> None:
        if f.is_main:
            self._stale.add(f.pathfile)
            return
        seen = set() if seen is None else seen
        if f.pathfile in seen:
            return
        seen.add(f.pathfile)
        for user in list(f.users):
            self._alert(self._files[user], seen)

    def _check(self, f: SourceFile) -> None:
        if f.is_procedural:
            if not f.procedurally_modified:
                return
            f.procedurally_modified = False
            self._clear(f)
            raw = f.procedural_text
        else:
            try:
                st = os.stat(f.pathfile)
            except OSError:
                self._clear(f)
                if not f.not_found:
                    self._alert(f)
                f.not_found = True
                return
            if f.last_modified == st.st_mtime_ns and not f.not_found:
                return
            self._clear(f)
            try:
                raw = Path(f.pathfile).read_bytes().decode("utf-8", errors="replace")
            except OSError:
                return
            f.last_modified = st.st_mtime_ns

        f.not_found = False
        f.text = raw.replace("\r", "")
        for inc in parse_includes(f.text):
            resolved = f.path + inc.path if f.path else inc.path
            target = self.entry(resolved, False)
            f.includes.append(replace(inc, pathfile=resolved))
            if f.pathfile not in target.users:
                target.users.append(f.pathfile)
        self._alert(f)

    def _concat(self, f: SourceFile, parts: list, done: list, active: set) -> None:
        if f.pathfile in active:
            raise ValueError(f"include cycle through {f.pathfile!r}")
        active.add(f.pathfile)
        text = f.text or ""
        pos = 0
        line = 1
        for inc in f.includes:
            parts.append(f'#line {line} "{f.name}"\n')
            parts.append(text[pos:inc.start])
            if inc.pathfile not in done:
                self._concat(self._files[inc.pathfile], parts, done, active)
                parts.append("\n")
            pos = inc.end
            line = inc.line + 1
        parts.append(f'#line {line} "{f.name}"\n')
        parts.append(text[pos:])
        done.append(f.pathfile)
        active.discard(f.pathfile)