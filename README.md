# gfxcore

Dependency-free support code for real-time rendering programs: small containers,
a per-frame hierarchical timer, and shader source management with `#include`
tracking and automatic rebuilds.

## Modules

- `gfxcore.containers`
  - `RingBuffer(maxcount)`: fixed-capacity FIFO queue. `push` raises `OverflowError` when full; `pop`, `front` and `back` raise `IndexError` when empty. Also `push_unique`, `full`, `has_room_for`, `fill`, `clear`, indexing, `len` and iteration.
  - `Bin(maxcount, items=())`: fixed-capacity stack-like list with `push`, `push_unique`, `push_many`, `pop`, `top`, `remove` (swap with the last item), `remove_ordered`, `clear` and `full`.
  - `Grid2D(width, height, fill=None)`: row-major grid indexed by `grid[x, y]` or by flat index; `index`, `fill`, `copy`.
  - `Grid3D(width, height, depth, fill=None)`: 3D grid indexed by `grid[x, y, z]` (z fastest, then x, then y) or by flat index; `index`, `fill`.
  - `DoubleBuffer(front, back)` with `swap()`.
  - `RollingAvg(avg_period, roll_window)`: averages every `avg_period` samples into a ring of `roll_window` slots (`roll`); `add`, `reset`.
  - `swap_remove(items, i)` and `push_unique(items, item)` for plain lists.
- `gfxcore.timestamp_log`
  - `TimestampLog`: records `start(label)`, `stop()` and `marker(label)` events; `report(t_frame_start, t_frame_start_next, timestamps)` turns them, with one timestamp per event, into a `TimestampReport`.
  - `TimestampReport` holds `ranges` (`Range`: label, depth, t_start, t_stop, which) and `range_sums` (`RangeSum`: label, depth, t_sum, t_sum_count). Spans with the same label under the same parents are summed; the first entry is always the whole `"Frame"`. Markers are recorded but not reported. A `stop()` with no matching start, or a timestamp count that does not match the events, raises `ValueError`.
  - `CpuTimestampLog(clock=time.perf_counter_ns)`: stamps events with the clock; `timed(label)` is a context manager, and `new_frame()` closes the frame, stores and returns its report.
- `gfxcore.shader_sources`
  - `SourceTree`: tracks files by path, read from disk or supplied with `inject_procedural_file(pathfile, text)`. It parses `#include "path"` directives (resolved relative to the including file's directory), keeps who-includes-whom (`users_of`), re-reads changed files (`refresh`, `refresh_all`), and reports main files that changed directly or through an include (`take_stale`). `final_text(pathfile)` gives `#version 430 core`, then the file with each include pasted in once, every piece preceded by a `#line` directive; an include cycle raises `ValueError`. Carriage returns are stripped.
  - `parse_includes(text)` returns the `Include` directives of a text; `shader_type_for(pathfile)` maps the last four characters (`vert`, `frag`, `comp`, `geom`, `ctrl`, `eval`) to a `ShaderType`.
- `gfxcore.shader_loader`
  - `ShaderLoader(backend=None, clock=time.perf_counter_ns)`: `get_program(vert, frag)` and `get_compute_program(comp)` register a program, bring every tracked file up to date, recompile stale shaders, relink affected programs and return `ProgramStats` (times in seconds, `rebuild_occurred`, `program_handle`, `comp_log`). Also `check_for_updates`, `final_text`, `shader_log`, `users_of`, `inject_procedural_file` and `check_for_errors`, which reports whether any compile or link failed since the previous call.
  - `ShaderBackend`: the compile/link interface. Its own implementation keeps shaders and programs in memory, accepts every source and hands out increasing handles. Subclass it and return `CompileResult(handle, log, valid)` from `compile` and `link`; a handle of 0 means failure.

## Examples

Containers:

```python
from gfxcore.containers import RingBuffer, Grid2D, RollingAvg

queue = RingBuffer(2)
queue.push("a")
queue.push("b")
queue.full()          # True
queue.pop()           # "a"

grid = Grid2D(3, 2, fill=0)
grid[1, 1] = 7
grid[4]               # 7

avg = RollingAvg(2, 3)
avg.add(1.0)
avg.add(3.0)
avg.roll              # [2.0, 0.0, 0.0]
```

Frame timing with fixed timestamps:

```python
from gfxcore.timestamp_log import TimestampLog

log = TimestampLog()
log.start("update")
log.start("physics")
log.stop()
log.stop()
report = log.report(0, 100, [10, 20, 50, 60])
[(s.label, s.depth, s.t_sum) for s in report.range_sums]
# [('Frame', 0, 100), ('update', 1, 50), ('physics', 2, 30)]
```

Or with the clock:

```python
from gfxcore.timestamp_log import CpuTimestampLog

timer = CpuTimestampLog()
with timer.timed("update"):
    pass
report = timer.new_frame()
```

Shader programs:

```python
from pathlib import Path
from gfxcore.shader_loader import ShaderLoader

Path("shaders").mkdir(exist_ok=True)
Path("shaders/common.glsl").write_text("float twice(float x) { return 2.0 * x; }\n")
Path("shaders/basic.vert").write_text('#include "common.glsl"\nvoid main() {}\n')
Path("shaders/basic.frag").write_text("void main() {}\n")

loader = ShaderLoader()
stats = loader.get_program("shaders/basic.vert", "shaders/basic.frag")
stats.rebuild_occurred                     # True on the first build
loader.users_of("shaders/common.glsl")     # ['shaders/basic.vert']
print(loader.final_text("shaders/basic.vert"))
```

Calling `get_program` again after editing `common.glsl` recompiles `basic.vert` and relinks the program. A path that is tracked as an included file (including one given to `inject_procedural_file`) cannot also be used as a main shader file; `shader` raises `ValueError`.

## What it does not do

- It does not talk to a graphics driver. Programs are built through a `ShaderBackend`; the one provided only records sources in memory. To compile real shaders, supply a backend that calls your graphics API.
- It does not draw anything: there is no on-screen view of timings or shader errors, only the `TimestampReport` data and the logs and flags on `ShaderLoader`.
- It does not watch files in the background; changes are picked up when `check_for_updates`, `get_program` or `get_compute_program` is called.
- It has no vector, matrix, colour, mesh or texture types.

## Tests

```
pip install .[test]
pytest
```