"""
TutorAI core.

Generates lessons, quizzes and remedial walkthroughs with an OpenAI chat model
behind a retrying client, and records quiz progress in a Supabase table.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]
