"""Build shader programs from source files and rebuild them when the files change.

Compiling and linking go through a :class:`ShaderBackend`, so any graphics API
can be plugged in. The default backend keeps everything in memory and accepts
every source, handing out increasing handles.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from gfxcore.shader_sources import ShaderType, SourceTree

_NS_PER_SEC = 1_000_000_000


@dataclass
class ProgramStats:
    """Build statistics of one program."""

    time_to_compile: float = 0.0
    time_to_link: float = 0.0
    comp_log: Optional[str] = None
    rebuild_occurred: bool = False
    program_handle: int = 0


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of a compile or link: handle 0 means it failed."""

    handle: int
    log: str = ""
    valid: bool = True


class ShaderBackend:
    """In-memory backend that accepts every shader and program."""

    def __init__(self):
        self._next_handle = 1
        self.shaders: dict[int, tuple[Optional[ShaderType], str]] = {}
        self.programs: dict[int, tuple[int, ...]] = {}

    def _new_handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def compile(self, shader_type, source):
        """Compile ``source`` as a shader of ``shader_type``."""
        handle = self._new_handle()
        self.shaders[handle] = (shader_type, source)
        return CompileResult(handle)

    def link(self, shader_handles):
        """Link compiled shaders into a program."""
        handles = tuple(shader_handles)
        missing = [h for h in handles if h not in self.shaders]
        if missing:
            return CompileResult(0, f"unknown shader handles {missing}", False)
        handle = self._new_handle()
        self.programs[handle] = handles
        return CompileResult(handle)

    def delete_program(self, handle):
        self.programs.pop(handle, None)


@dataclass
class _ShaderEntry:
    pathfile: str
    shader_type: Optional[ShaderType]
    handle: int = 0
    log: str = ""
    final_text: str = ""
    time_to_compile: int = 0
    programs: list = field(default_factory=list)


@dataclass
class _ProgramEntry:
    vert: Optional[str]
    frag: Optional[str]
    comp: Optional[str]
    name: str
    handle: int = 0
    try_relink: bool = True
    stale: bool = True
    valid: bool = False
    rebuild_occurred: bool = False
    log: str = ""
    time_to_link: int = 0

    def stages(self) -> list[str]:
        return [p for p in (self.vert, self.frag, self.comp) if p is not None]


class ShaderLoader:
    """Tracks shader files, recompiling and relinking whatever they affect."""

    def __init__(self, backend=None, clock: Callable[[], int] = time.perf_counter_ns):
        self.backend = backend if backend is not None else ShaderBackend()
        self.clock = clock
        self.sources = SourceTree()
        self.shaders: dict[str, _ShaderEntry] = {}
        self.programs: list[_ProgramEntry] = []
        self.errored_shader: Optional[str] = None
        self.errored_program: Optional[int] = None
        self._errors_since_last_check = False

    def inject_procedural_file(self, pathfile, text):
        """Provide a file's text from memory instead of disk."""
        return self.sources.inject_procedural_file(pathfile, text)

    def shader(self, pathfile):
        """The shader whose main file is ``pathfile``; None for no path."""
        if not pathfile:
            return None
        existing = self.shaders.get(pathfile)
        if existing is not None:
            return existing
        if pathfile in self.sources:
            raise ValueError(f"{pathfile!r} is already tracked as an included file")
        f = self.sources.entry(pathfile, True)
        entry = _ShaderEntry(pathfile, f.shader_type)
        self.shaders[pathfile] = entry
        return entry

    def program(self, vert=None, frag=None, comp=None):
        """The program built from the given stages, created on first request."""
        stages = {"vert": vert, "frag": frag, "comp": comp}
        for name, path in stages.items():
            self.shader(path)
        for prog in self.programs:
            if all(path is None or getattr(prog, name) == path
                   for name, path in stages.items()):
                return prog
        present = [p for p in (vert, frag, comp) if p]
        prog = _ProgramEntry(
            vert or None, frag or None, comp or None,
            " + ".join(self.sources.entry(p).name for p in present),
        )
        index = len(self.programs)
        for path in present:
            self.shaders[path].programs.append(index)
        self.programs.append(prog)
        return prog

    def check_for_updates(self):
        """Re-read changed files, recompile stale shaders and relink programs."""
        self.sources.refresh_all()
        for pathfile in self.sources.take_stale():
            shader = self.shaders.get(pathfile)
            if shader is not None:
                self._recompile(shader)
        for index, prog in enumerate(self.programs):
            if prog.try_relink:
                self._relink(index, prog)

    def _fail(self) -> None:
        self._errors_since_last_check = True

    def _recompile(self, shader: _ShaderEntry) -> None:
        for index in shader.programs:
            self.programs[index].try_relink = True
            self.programs[index].stale = True
        shader.log = ""
        if self.sources.text(shader.pathfile) is None:
            return
        t_start = self.clock()
        try:
            shader.final_text = self.sources.final_text(shader.pathfile) or ""
        except ValueError as exc:
            shader.time_to_compile = self.clock() - t_start
            shader.log = str(exc)
            shader.handle = 0
            self.errored_shader = shader.pathfile
            self._fail()
            return
        result = self.backend.compile(shader.shader_type, shader.final_text)
        shader.time_to_compile = self.clock() - t_start
        shader.handle = result.handle
        if not result.handle:
            shader.log = result.log
            self.errored_shader = shader.pathfile
            self._fail()

    def _relink(self, index: int, prog: _ProgramEntry) -> None:
        prog.try_relink = False
        prog.valid = False
        handles = [self.shaders[p].handle for p in prog.stages()]
        if any(h == 0 for h in handles):
            return
        t_start = self.clock()
        result = self.backend.link(handles)
        prog.time_to_link = self.clock() - t_start
        prog.log = ""
        if result.handle:
            if prog.handle:
                self.backend.delete_program(prog.handle)
            prog.handle = result.handle
            prog.valid = result.valid
            prog.stale = False
            prog.rebuild_occurred = True
        else:
            prog.log = result.log
            self.errored_program = index
            self._fail()

    def _stats(self, prog: _ProgramEntry) -> ProgramStats:
        stats = ProgramStats(
            time_to_compile=sum(self.shaders[p].time_to_compile for p in prog.stages())
            / _NS_PER_SEC,
            time_to_link=prog.time_to_link / _NS_PER_SEC,
            rebuild_occurred=prog.rebuild_occurred,
            program_handle=prog.handle,
        )
        prog.rebuild_occurred = False
        if prog.comp is not None and self.shaders[prog.comp].log:
            stats.comp_log = self.shaders[prog.comp].log
        return stats

    def final_text(self, pathfile):
        """The text most recently handed to the compiler for a shader."""
        return self._shader(pathfile).final_text

    def shader_log(self, pathfile):
        """Compile log of a shader; empty when it compiled."""
        return self._shader(pathfile).log

    def users_of(self, pathfile):
        """Files that directly include ``pathfile``."""
        return self.sources.users_of(pathfile)

    def get_program(self, vert, frag):
        """Bring a vertex/fragment program up to date and return its stats.

        When no program could be built, the stats have handle 0 and the
        rebuild flag is left for a later call.
        """
        prog = self.program(vert, frag, None)
        self.check_for_updates()
        if not prog.handle:
            return ProgramStats()
        return self._stats(prog)

    def get_compute_program(self, comp):
        """Bring a compute program up to date and return its stats."""
        prog = self.program(None, None, comp)
        self.check_for_updates()
        return self._stats(prog)

    def check_for_errors(self):
        """True if any compile or link failed since the previous call."""
        errors = self._errors_since_last_check
        self._errors_since_last_check = False
        return errors

    def _shader(self, pathfile) -> _ShaderEntry:
        try:
            return self.shaders[pathfile]
        except KeyError:
            raise KeyError(f"unknown shader {pathfile!r}") from None