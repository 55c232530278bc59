"""Handlers for 'boardsync config' commands."""

from boardsync.cli._common import ensure_store, error, output_json, output_result
from boardsync.config import DEFAULTS, _coerce, _git_key, _python_key, read_config, write_config_key


def config_show(args) -> int:
    """Print the effective sync settings."""
    settings = read_config(args.remote)

    if args.json:
        output_json(settings)
        return 0

    for key, value in settings.items():
        print(f"{_git_key(key)} = {value}")
    return 0


def config_set(args) -> int:
    """Write one boardsync.* key to the store repository's git config."""
    git_key = _git_key(args.key)
    if git_key not in DEFAULTS:
        error(f"Unknown setting '{args.key}'. Known: {', '.join(DEFAULTS)}", args.json)
    try:
        value = _coerce(git_key, args.value)
    except ValueError:
        error(f"Invalid value for {git_key}: {args.value!r}", args.json)

    write_config_key(ensure_store(args.remote), _python_key(git_key), value)
    output_result({"key": git_key, "value": value}, f"{git_key} = {value}", args.json)
    return 0
