"""${ENV_VAR} and ${ENV_VAR:-fallback} substitution for raw settings data."""

import os
import re
from collections.abc import Mapping

from deep_research.config.infrastructure.errors import MissingEnvVarsError

# ${NAME} or ${NAME:-fallback}; the fallback may be empty.
_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def resolve_env_vars(data: RawValue, environ: Mapping[str, str] | None = None) -> RawValue:
    """Return *data* with every reference replaced by its environment value.

    A reference with a fallback never counts as missing. Non-string leaves
    are returned untouched.

    Raises:
        MissingEnvVarsError: naming every unset variable without a fallback,
            in first-seen order.
    """
    env = os.environ if environ is None else environ
    missing: list[str] = []
    resolved = _resolve(data, env, missing)
    if missing:
        raise MissingEnvVarsError(missing)
    return resolved


def _resolve(data: RawValue, env: Mapping[str, str], missing: list[str]) -> RawValue:
    if isinstance(data, str):
        return _REFERENCE.sub(lambda m: _lookup(m, env, missing), data)
    if isinstance(data, list):
        return [_resolve(item, env, missing) for item in data]
    if isinstance(data, dict):
        return {key: _resolve(value, env, missing) for key, value in data.items()}
    return data


def _lookup(match: re.Match[str], env: Mapping[str, str], missing: list[str]) -> str:
    name = match.group("name")
    if name in env:
        return env[name]
    fallback = match.group("fallback")
    if fallback is not None:
        return fallback
    if name not in missing:
        missing.append(name)
    return ""
