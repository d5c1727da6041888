"""System prompt construction, with keyword-matched skill snippets."""

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from cellobot.llm_core.logger import get_logger

logger = get_logger(__name__)

MAX_SKILLS = 2

PERSONA = """You are CelloBot, an expert AI assistant for Microsoft Excel. You help users with formulas, \
data analysis, formatting, charting, and all spreadsheet tasks.

You have access to tools that can read from and write to the user's Excel workbook. Use them when the user \
asks you to make changes, create formulas, format cells, build charts, sort/filter data, or perform any \
workbook operation.

When the user asks you to explain a formula, provide a clear explanation without using tools.
When the user asks you to create, modify, or analyze data, use the appropriate tools.

Important guidelines:
- Always specify the correct sheet name when using tools.
- When writing formulas, make sure they start with "=".
- When referencing cell addresses, use standard Excel notation (e.g. A1, B2:D10).
- If you need more context about the workbook, use the read_range or get_workbook_info tools.
- Explain what you're doing before and after making changes.
- If the user's request is ambiguous, ask for clarification.
- When referencing specific cells in your explanations, use double-bracket notation like [[Sheet1!A1]] \
or [[B2:D10]] so they become clickable citations."""


class SkillRetriever:
    """
    Keyword lookup over a JSON file of skill snippets.

    The file holds a list of ``{name, tags, content}`` objects. It is read once, by ``load``
    or the first lookup, and cached until ``reset``. ``create_app`` loads it at startup.
    A missing or unreadable file yields no skills.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, max_skills: int = MAX_SKILLS):
        self.path = Path(path) if path else None
        self.max_skills = max_skills
        self._skills: Optional[List[Dict[str, Any]]] = None
        self._lock = threading.Lock()

    def load(self) -> List[Dict[str, Any]]:
        """Read the skills file if it has not been read yet, and return the cached skills."""
        with self._lock:
            if self._skills is not None:
                return self._skills
            if self.path is None:
                self._skills = []
                return self._skills
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                self._skills = [s for s in data if isinstance(s, dict)] if isinstance(data, list) else []
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not load skills from {self.path}: {e}")
                self._skills = []
            return self._skills

    def reset(self) -> None:
        with self._lock:
            self._skills = None

    def find_relevant(self, user_message: Optional[str]) -> List[Dict[str, Any]]:
        """Skills whose tags occur in the message, most tag hits first."""
        if not user_message:
            return []
        msg = user_message.lower()

        scored = []
        for skill in self.load():
            hits = sum(1 for tag in skill.get("tags") or [] if str(tag).lower() in msg)
            if hits:
                scored.append((hits, skill))
        # sorted() is stable, so equal scores keep file order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
        return [skill for _, skill in scored[: self.max_skills]]

    @staticmethod
    def format_context(skills: List[Dict[str, Any]]) -> str:
        if not skills:
            return ""
        blocks = [f"--- [{s.get('name', '')}] ---\n{s.get('content') or ''}" for s in skills]
        return "\n\nRelevant Excel skill knowledge (use this to guide your response):\n" + "\n\n".join(blocks)


def build_system_prompt(
    context: Optional[Mapping[str, Any]],
    user_message: Optional[str] = None,
    skills: Optional[SkillRetriever] = None,
) -> str:
    """Build the system prompt from the workbook context and the latest user message.

    Args:
        context: Auto-detected workbook context. ``pinnedRanges`` is split out and shown separately.
        user_message: Latest user text, used to pick skill snippets.
        skills: Skill source. No skills are added when omitted.
    """
    auto_context = dict(context or {})
    pinned = auto_context.pop("pinnedRanges", None)

    auto_str = json.dumps(auto_context, indent=2) if auto_context else "No auto-detected context."

    pinned_str = ""
    if pinned:
        pinned_str = (
            "\n\nUser-pinned context (the user explicitly selected these ranges for you to reference):\n"
            + json.dumps(pinned, indent=2)
        )

    skill_str = ""
    if skills is not None:
        skill_str = skills.format_context(skills.find_relevant(user_message))

    return f"{PERSONA}\n\nAuto-detected context from the spreadsheet:\n{auto_str}\n{pinned_str}{skill_str}"
