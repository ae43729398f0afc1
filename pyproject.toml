[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "swtpmkit"
version = "0.1.0"
description = "Building blocks for a software TPM emulator: control-channel messages, option strings, state encryption, pid files and command I/O"
requires-python = ">=3.10"
keywords = ["tpm", "emulator", "control-channel", "aes-cbc", "pidfile"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["swtpmkit"]

[tool.pytest.ini_options]
addopts = "-ra"
