# src/shoes_ecs_task/script.py
"""
Conversion of a runner setup script into a single shell command line.

ECS container overrides take a command vector, not a script file, so the
setup script is passed as ``bash -c "<one line>"``. Lines are joined with
``;`` and run as sequential statements.
"""

COMMENT_PREFIX = "#"
SEPARATOR = ";"


def to_one_line(script: str) -> str:
    """
    Convert a multi-line bash script into one ``;``-separated line.

    Lines starting with ``#`` (shebangs and comments, wherever they appear)
    and lines that are exactly empty are dropped. Whitespace-only lines and
    everything else are kept verbatim, in order.

    Args:
        script: Script text, newline-delimited

    Returns:
        The flattened command, or ``""`` if no line survives

    Example:
        >>> to_one_line("#!/bin/bash\\n\\n# comment\\necho hi\\nls -la")
        'echo hi;ls -la'
    """
    commands = []
    for line in script.split("\n"):
        if line.startswith(COMMENT_PREFIX):
            continue
        if line == "":
            continue
        commands.append(line)

    return SEPARATOR.join(commands)


flatten = to_one_line
