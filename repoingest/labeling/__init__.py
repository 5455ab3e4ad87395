"""Chunk labeling: heuristics and LLM completion."""

from repoingest.labeling.heuristic import label_heuristic
from repoingest.labeling.llm import ChunkLabeler, parse_label_response

__all__ = ["ChunkLabeler", "label_heuristic", "parse_label_response"]
