[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gfxcore"
version = "0.1.0"
description = "Rendering support code: fixed-capacity containers, hierarchical frame timers, shader include tracking and hot-reloading shader programs."
requires-python = ">=3.10"
dependencies = []
keywords = ["graphics", "rendering", "shader", "glsl", "include", "hot-reload", "profiling", "timer", "containers"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gfxcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
