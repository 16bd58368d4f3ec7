[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "imapwire"
version = "0.1.0"
description = "IMAP4rev1 wire-format parsing: fields, literals, dates, mailboxes, envelopes, body structures and response handlers"
requires-python = ">=3.10"
dependencies = []
keywords = ["imap", "imap4rev1", "rfc3501", "email", "parser", "protocol"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Email :: Post-Office :: IMAP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["imapwire"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
