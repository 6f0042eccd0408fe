"""Shell glue: the directive printed on stdout and the wrapper function that evals it."""

from __future__ import annotations

import shlex

from .errors import ConfigError

_POSIX_SNIPPET = """\
# trydir shell integration
# Add this to your ~/.bashrc or ~/.zshrc:
#   eval "$(command try init)"

try() {
    local output
    # Only capture stdout for the cd directive; prompts go to the terminal
    output=$(command try "$@" 2>/dev/tty)
    if [ $? -eq 0 ]; then
        eval "$output"
    else
        return 1
    fi
}
"""

_FISH_SNIPPET = """\
# trydir shell integration
# Add this to ~/.config/fish/config.fish:
#   command try init --shell fish | source

function try
    set -l output (command try $argv 2>/dev/tty)
    or return 1
    eval $output
end
"""

SNIPPETS = {
    "bash": _POSIX_SNIPPET,
    "zsh": _POSIX_SNIPPET,
    "fish": _FISH_SNIPPET,
}


def cd_directive(path: str) -> str:
    """The single machine-consumable stdout line."""
    return f"cd {shlex.quote(path)}"


def shell_integration(shell: str = "bash") -> str:
    try:
        return SNIPPETS[shell]
    except KeyError:
        raise ConfigError(
            f"Unsupported shell {shell!r} (choose from {', '.join(sorted(SNIPPETS))})"
        ) from None
