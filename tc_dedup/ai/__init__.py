"""
Optional LLM augmentation for duplicate analysis.
"""

from tc_dedup.ai.semantic_augmenter import LLMHook, SemanticAugmenter

__all__ = ['LLMHook', 'SemanticAugmenter']
