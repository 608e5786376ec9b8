"""
面板快捷动作的预置 prompt。

`{{patch}}` 会被替换成收集到的代码上下文（见 `review/prompt.py`）。
"""

from __future__ import annotations

HELP_ME_REVIEW_PROMPT = (
    "You are an experienced code reviewer. Review the following change and help the reviewer.\n"
    "\n"
    "Focus on:\n"
    "- correctness bugs and unhandled edge cases\n"
    "- security problems\n"
    "- error handling and resource cleanup\n"
    "- readability and maintainability\n"
    "\n"
    "For every finding name the file, quote the relevant code and suggest a concrete fix. "
    "Do not repeat code that is fine. If you find nothing worth reporting, say so.\n"
    "\n"
    "Files in this change:\n"
    "{{patch}}"
)

IMPROVE_COMMIT_MESSAGE = (
    "Suggest an improved commit message for this change.\n"
    "\n"
    "Follow the usual git conventions: a subject line of at most 72 characters in the imperative mood, "
    "a blank line, then a body explaining what changed and why. "
    "Base the message only on the code below and reply with the commit message alone.\n"
    "\n"
    "{{patch}}"
)

EXPLAIN_CHANGE_PROMPT = "Explain this code change."
