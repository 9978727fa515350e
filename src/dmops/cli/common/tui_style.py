"""Prompt style for destructive confirmations (clean and drop)."""

from __future__ import annotations

from prompt_toolkit.styles import Style

# Red question and answer so a DROP confirmation never reads as routine.
QUESTIONARY_STYLE_CONFIRM = Style.from_dict(
    {
        "qmark": "bold ansired",
        "question": "bold ansibrightred",
        "answer": "bold ansiyellow",
        "instruction": "ansibrightblack",
    }
)
