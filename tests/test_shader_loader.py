import itertools

import pytest

from gfxcore.shader_loader import CompileResult, ShaderBackend, ShaderLoader
from gfxcore.shader_sources import VERSION_HEADER, ShaderType


class FakeBackend:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.next_handle = 100
        self.compiled = []
        self.linked = []
        self.deleted = []

    def _handle(self):
        self.next_handle += 1
        return self.next_handle

    def compile(self, shader_type, source):
        self.compiled.append((shader_type, source))
        if self.fail_on is not None and self.fail_on in source:
            return CompileResult(0, "compile failed")
        return CompileResult(self._handle())

    def link(self, shader_handles):
        self.linked.append(tuple(shader_handles))
        return CompileResult(self._handle())

    def delete_program(self, handle):
        self.deleted.append(handle)


def write(path, text):
    path.write_text(text)
    return path.as_posix()


@pytest.fixture
def pair(tmp_path):
    vert = write(tmp_path / "a.vert", "void main(){}\n")
    frag = write(tmp_path / "a.frag", "void main(){}\n")
    return vert, frag


def test_program_builds_once_then_reports_no_rebuild(pair):
    backend = FakeBackend()
    loader = ShaderLoader(backend)
    first = loader.get_program(*pair)
    assert first.rebuild_occurred is True
    assert first.program_handle == backend.linked and False or first.program_handle > 0
    second = loader.get_program(*pair)
    assert second.rebuild_occurred is False
    assert second.program_handle == first.program_handle
    assert len(backend.compiled) == 2
    assert len(backend.linked) == 1


def test_shader_types_passed_to_backend(pair):
    backend = FakeBackend()
    ShaderLoader(backend).get_program(*pair)
    assert [t for t, _ in backend.compiled] == [ShaderType.VERTEX, ShaderType.FRAGMENT]


def test_final_text_has_header_and_line_directive(tmp_path, pair):
    loader = ShaderLoader(FakeBackend())
    loader.get_program(*pair)
    name = f"{tmp_path.name}/a.vert"
    assert loader.final_text(pair[0]) == VERSION_HEADER + f'#line 1 "{name}"\n' + "void main(){}\n"


def test_include_is_pasted_and_change_triggers_rebuild(tmp_path):
    common = (tmp_path / "common.glsl").as_posix()
    backend = FakeBackend()
    loader = ShaderLoader(backend)
    loader.inject_procedural_file(common, "float f;")
    vert = write(tmp_path / "b.vert", '#include "common.glsl"\nvoid main(){}\n')
    frag = write(tmp_path / "b.frag", "void main(){}\n")
    first = loader.get_program(vert, frag)

    d = tmp_path.name
    expected = (
        VERSION_HEADER
        + f'#line 1 "{d}/b.vert"\n'
        + f'#line 1 "{d}/common.glsl"\n'
        + "float f;"
        + "\n"
        + f'#line 2 "{d}/b.vert"\n'
        + "void main(){}\n"
    )
    assert loader.final_text(vert) == expected
    assert loader.users_of(common) == [vert]

    loader.inject_procedural_file(common, "float g;")
    second = loader.get_program(vert, frag)
    assert second.rebuild_occurred is True
    assert second.program_handle != first.program_handle
    assert backend.deleted == [first.program_handle]
    assert "float g;" in loader.final_text(vert)
    assert len(backend.compiled) == 3


def test_compile_failure_reports_error_once(tmp_path):
    backend = FakeBackend(fail_on="broken")
    loader = ShaderLoader(backend)
    vert = write(tmp_path / "c.vert", "broken\n")
    frag = write(tmp_path / "c.frag", "void main(){}\n")
    stats = loader.get_program(vert, frag)
    assert stats.program_handle == 0
    assert backend.linked == []
    assert loader.shader_log(vert) == "compile failed"
    assert loader.errored_shader == vert
    assert loader.check_for_errors() is True
    assert loader.check_for_errors() is False


def test_missing_file_is_not_compiled(tmp_path):
    backend = FakeBackend()
    loader = ShaderLoader(backend)
    stats = loader.get_program((tmp_path / "none.vert").as_posix(),
                               (tmp_path / "none.frag").as_posix())
    assert stats.program_handle == 0
    assert backend.compiled == []
    assert loader.check_for_errors() is False


def test_program_is_deduplicated_and_named(tmp_path, pair):
    loader = ShaderLoader(FakeBackend())
    p1 = loader.program(*pair)
    p2 = loader.program(*pair)
    assert p1 is p2
    assert len(loader.programs) == 1
    d = tmp_path.name
    assert p1.name == f"{d}/a.vert + {d}/a.frag"


def test_compute_program_carries_compile_log(tmp_path):
    loader = ShaderLoader(FakeBackend(fail_on="oops"))
    comp = write(tmp_path / "k.comp", "oops\n")
    stats = loader.get_compute_program(comp)
    assert stats.program_handle == 0
    assert stats.comp_log == "compile failed"


def test_compute_program_success_has_no_log(tmp_path):
    loader = ShaderLoader(FakeBackend())
    comp = write(tmp_path / "k.comp", "void main(){}\n")
    stats = loader.get_compute_program(comp)
    assert stats.comp_log is None
    assert stats.rebuild_occurred is True
    assert stats.program_handle > 0


def test_times_come_from_clock(pair):
    ticks = itertools.count(0, 1_000_000)
    loader = ShaderLoader(FakeBackend(), clock=lambda: next(ticks))
    stats = loader.get_program(*pair)
    assert stats.time_to_link == pytest.approx(0.001)
    assert stats.time_to_compile == pytest.approx(0.002)


def test_include_file_cannot_become_main(tmp_path):
    loader = ShaderLoader(FakeBackend())
    path = (tmp_path / "x.vert").as_posix()
    loader.inject_procedural_file(path, "void main(){}")
    with pytest.raises(ValueError):
        loader.shader(path)


def test_unknown_shader_lookups_raise():
    loader = ShaderLoader()
    with pytest.raises(KeyError):
        loader.final_text("nowhere.vert")
    with pytest.raises(KeyError):
        loader.shader_log("nowhere.vert")


def test_default_backend_records_programs(pair):
    backend = ShaderBackend()
    loader = ShaderLoader(backend)
    stats = loader.get_program(*pair)
    assert stats.program_handle in backend.programs
    assert len(backend.programs[stats.program_handle]) == 2
    backend.delete_program(stats.program_handle)
    assert stats.program_handle not in backend.programs


def test_default_backend_rejects_unknown_handles():
    backend = ShaderBackend()
    result = backend.link([42])
    assert result.handle == 0
    assert result.valid is False