"""
Services layer for the writing assistant.
Profiles, brand context, generation, translation and brand validation.
"""

from voicecraft.services.account_context import AccountContextCache
from voicecraft.services.assistant import WritingAssistant
from voicecraft.services.brand_validator import BrandCoherenceValidator
from voicecraft.services.generation import GenerationEngine
from voicecraft.services.profile_store import ProfileStore
from voicecraft.services.translation import TranslationEngine

__all__ = [
    "AccountContextCache",
    "WritingAssistant",
    "BrandCoherenceValidator",
    "GenerationEngine",
    "ProfileStore",
    "TranslationEngine",
]
