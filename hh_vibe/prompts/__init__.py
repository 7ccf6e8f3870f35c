"""Prompt templates for LLM interactions.

Each module contains template strings and ``build_*_prompt`` builders for
one area of the product. Builders sanitize user-controlled values.

Modules:
    chat: Intent, persona, soft questions, suggestions, general chat
    clarification: Clarification steps and profession description
    explainers: Game day, comparison, similar, tasks, career, levels, impact, search
    card: Profession card generation
"""
