"""
Orchestrator: the retrieval façade callers talk to.
"""

from knowledge_engine.generation.prompts import build_augmented_prompt

from .engine import AugmentedPrompt, KnowledgeEngine

__all__ = [
    "AugmentedPrompt",
    "KnowledgeEngine",
    "build_augmented_prompt",
]
