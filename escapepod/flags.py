"""Command-line flags, each also settable from an environment variable."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class FlagKind(Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"


_KIND_DEFAULTS: dict[FlagKind, Any] = {
    FlagKind.STRING: "",
    FlagKind.BOOL: False,
    FlagKind.INT: 0,
}


@dataclass(frozen=True)
class Flag:
    """A named flag with its environment variables and aliases."""

    name: str
    kind: FlagKind = FlagKind.STRING
    env_vars: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    usage: str = ""
    default: Any = None

    def __post_init__(self) -> None:
        if self.default is None:
            object.__setattr__(self, "default", _KIND_DEFAULTS[self.kind])

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)


def flag_name_to_env(name: str) -> str:
    """Convert a flag name to its environment variable name."""
    return name.upper().replace("-", "_")


def flag_names_to_env(*args: str) -> list[str]:
    """Convert several flag names to environment variable names."""
    return [flag_name_to_env(name) for name in args]


def join(*args: Iterable[Flag]) -> list[Flag]:
    """Join several flag lists into one."""
    return [flag for flags in args for flag in flags]


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(raw: str) -> bool:
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"invalid boolean value {raw!r}")


def _convert(flag: Flag, raw: str) -> Any:
    if flag.kind is FlagKind.STRING:
        return raw
    if flag.kind is FlagKind.BOOL:
        return _parse_bool(raw)
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ValueError(f"invalid value {raw!r} for flag -{flag.name}") from exc


def parse_flags(
    flags: Iterable[Flag],
    argv: Iterable[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Return flag values by name.

    Command-line values win over environment variables, which win over
    defaults. Parsing stops at "--" or the first argument that is not a flag.
    """
    flags = list(flags)
    environ = os.environ if environ is None else environ
    lookup = {alias: flag for flag in flags for alias in flag.names}
    values = {flag.name: flag.default for flag in flags}

    for flag in flags:
        for env in flag.env_vars:
            raw = environ.get(env)
            if raw is None:
                continue
            if flag.kind is FlagKind.STRING:
                values[flag.name] = raw
            elif raw != "":
                try:
                    values[flag.name] = _convert(flag, raw)
                except ValueError as exc:
                    raise ValueError(
                        f"could not parse {raw!r} as {flag.kind.value} value "
                        f"from env var {env!r}"
                    ) from exc
            break

    args = iter([] if argv is None else argv)
    for arg in args:
        if arg == "--" or arg == "-" or not arg.startswith("-"):
            break
        body = arg[2:] if arg.startswith("--") else arg[1:]
        if not body or body[0] in "-=":
            raise ValueError(f"bad flag syntax: {arg}")
        name, has_value, inline = body.partition("=")
        flag = lookup.get(name)
        if flag is None:
            raise ValueError(f"flag provided but not defined: -{name}")
        if flag.kind is FlagKind.BOOL:
            values[flag.name] = _parse_bool(inline) if has_value else True
            continue
        if has_value:
            raw = inline
        else:
            raw = next(args, None)
            if raw is None:
                raise ValueError(f"flag needs an argument: -{name}")
        values[flag.name] = _convert(flag, raw)

    return values


APP_ENV = "app-env"
UI_PORT = "ui-port"

ROOT_DIRECTORY = "root-directory"
BLE_LOG_DIRECTORY = "ble-log-directory"
OTA_DIRECTORY = "ota-directory"
UI_DIRECTORY = "ui-directory"

JDOCS_FILEPATH = "jdocs-filepath"
LICENSES_FILEPATH = "licenses-filepath"
INTENTS_FILEPATH = "intents-filepath"

STT_MODEL = "stt-model"
STT_SCORER = "stt-scorer"
NUM_OF_AUDIO_STREAM_DISPATCHERS = "num-of-audio-stream-dispatchers"

ESCAPEPOD_EXTENDER = "escapepod-extender"
ESCAPEPOD_EXTENDER_TARGET = "escapepod-extender-target"
ESCAPEPOD_EXTENDER_DISABLE_TLS = "escapepod-extender-disable-tls"

DEFAULT_INTENTS_FILEPATH = "default-intents-filepath"

ENABLE_PROFILER = "enable-profiler"

JDOCS_DB_NAME = "jdocs-db-name"

VERSION_KEY = "version"
BUILD_KEY = "build"
COMMIT_KEY = "commit"
INFO_KEY = "info"


def _env_flag(name: str, kind: FlagKind = FlagKind.STRING, **extra: Any) -> Flag:
    return Flag(name, kind, tuple(flag_names_to_env(name)), **extra)


APP_FLAGS: list[Flag] = [
    _env_flag(APP_ENV),
    _env_flag(UI_PORT),
    _env_flag(ROOT_DIRECTORY),
    _env_flag(BLE_LOG_DIRECTORY),
    _env_flag(OTA_DIRECTORY),
    _env_flag(UI_DIRECTORY),
    _env_flag(JDOCS_FILEPATH),
    _env_flag(LICENSES_FILEPATH),
    _env_flag(STT_MODEL),
    _env_flag(STT_SCORER),
    _env_flag(ESCAPEPOD_EXTENDER),
    _env_flag(ESCAPEPOD_EXTENDER_TARGET),
    _env_flag(ESCAPEPOD_EXTENDER_DISABLE_TLS),
    _env_flag(INTENTS_FILEPATH),
    _env_flag(DEFAULT_INTENTS_FILEPATH),
    _env_flag(ENABLE_PROFILER, FlagKind.BOOL, aliases=("p",)),
    _env_flag(NUM_OF_AUDIO_STREAM_DISPATCHERS, FlagKind.INT, default=1),
]

JDOCS_FLAGS: list[Flag] = [_env_flag(JDOCS_DB_NAME)]

VERSION_FLAGS: list[Flag] = [
    Flag(
        VERSION_KEY,
        FlagKind.BOOL,
        aliases=("v",),
        usage="print a version tag or a short commit hash",
    ),
    Flag(BUILD_KEY, FlagKind.BOOL, aliases=(COMMIT_KEY,), usage="prints short commit hash"),
    Flag(INFO_KEY, FlagKind.BOOL, usage="prints app info"),
]