"""LLM-backed chunk labeling.

The model is asked for a JSON object with topic, project, summary and
open_questions. Replies that are not valid JSON, or miss fields, degrade
to defaults so a label is always produced; only a failed completion call
is an error.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from repoingest.core.errors import LabelError
from repoingest.labeling.heuristic import fallback_summary, label_heuristic
from repoingest.models.chunk import Labels
from repoingest.pipeline.protocols import CompletionClient

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "code"

LABEL_PROMPT_TEMPLATE = (
    "You are labeling a repository chunk for retrieval into a memory store. "
    "Use the schema fields: topic, project, summary, open_questions (array of strings).\n"
    "- topic: short topical slug based on content and path.\n"
    "- project: repository/project slug (prefer repo-level context from path).\n"
    "- summary: 1-2 sentences, concrete and specific.\n"
    "- open_questions: list of unanswered questions implied by the chunk (empty if none).\n"
    "Return a JSON object with exactly these keys.\n"
    "Path: {path}\n---\n{content}\n---\nJSON:"
)


def build_label_prompt(path: str, content: str) -> str:
    return LABEL_PROMPT_TEMPLATE.format(path=path, content=content)


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_label_response(raw: str, content: str, project: str) -> Labels:
    """Turn a model reply into Labels, filling gaps with defaults.

    Args:
        raw: Model reply, ideally a JSON object
        content: The chunk text (for the fallback summary)
        project: Project slug used when the reply has none

    Returns:
        Labels; never raises on malformed replies
    """
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}

    questions = parsed.get("open_questions")
    return Labels(
        topic=parsed["topic"] if isinstance(parsed.get("topic"), str) else DEFAULT_TOPIC,
        project=parsed["project"] if isinstance(parsed.get("project"), str) else project,
        summary=_non_empty_str(parsed.get("summary")) or fallback_summary(content),
        open_questions=(
            [q for q in questions if isinstance(q, str)] if isinstance(questions, list) else []
        ),
    )


class ChunkLabeler:
    """Satisfies the Labeler protocol.

    Heuristic labels when use_llm is False; otherwise one completion call
    per chunk through the configured client.
    """

    def __init__(self, project: str, client: CompletionClient | None = None) -> None:
        self.project = project
        self.client = client

    def label(self, path: str, text: str, use_llm: bool) -> Labels:
        if not use_llm:
            return label_heuristic(path, text, self.project)

        if self.client is None:
            raise LabelError(path, "no completion client configured", retryable=False)

        try:
            raw = self.client.complete(build_label_prompt(path, text))
        except LabelError:
            raise
        except Exception as exc:
            raise LabelError(path, str(exc)) from exc

        logger.debug("chunk_labeled path=%s reply_chars=%d", path, len(raw))
        return parse_label_response(raw, text, self.project)
