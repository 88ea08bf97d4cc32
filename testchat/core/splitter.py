from __future__ import annotations

from typing import List

# Longer indicators must come before the shorter ones they contain
# ("and then" before "then" and "and").
SEQUENCE_SEPARATORS = (
    "and then",
    "then",
    "after that",
    "next",
    "followed by",
    "and",
    ",",
    "also",
    "subsequently",
    "afterwards",
)


def split_steps(command: str) -> List[str]:
    """Break a command into ordered, lower-cased step phrases.

    Separators are matched as plain substrings of the lower-cased command, one
    separator at a time in priority order; empty fragments are dropped.
    """
    steps = [(command or "").lower()]
    for separator in SEQUENCE_SEPARATORS:
        fragments: List[str] = []
        for step in steps:
            fragments.extend(part.strip() for part in step.split(separator))
        steps = [fragment for fragment in fragments if fragment]
    return steps
