"""
Prompt construction tests.
"""

import pytest
from pydantic import TypeAdapter

from voicecraft.core.exceptions import MissingDraftError, UnsupportedLanguageError
from voicecraft.schemas import (
    AccountContext,
    EngagementInsight,
    GenerationMode,
    HumanizeRequest,
    ImproveRequest,
    LanguagePreference,
    ModeRequest,
    PostReference,
    SuggestionContext,
    TranslateRequest,
    WriteRequest,
)
from voicecraft.utils.prompts import (
    JSON_CONTRACT,
    PromptBuilder,
    build_mode_request,
    compute_improve_min_chars,
    platform_guidance,
)


@pytest.mark.parametrize(
    "draft_length,max_chars,expected",
    [
        (50, 320, 90),     # floor branch
        (100, 320, 140),   # growth beats floor
        (200, 320, 270),
        (300, 320, 300),   # capped at max_chars - 20
        (50, 50, 40),      # cap never below 40
        (300, 1024, 350),  # growth beats the 15% floor
    ],
)
def test_compute_improve_min_chars(draft_length, max_chars, expected):
    assert compute_improve_min_chars(draft_length, max_chars) == expected


class TestSystemContext:
    def test_profile_and_rules(self, sample_profile):
        context = PromptBuilder.build_system_context(sample_profile, 280)

        assert "USER PROFILE:" in context
        assert "- Natural tone: technical" in context
        assert "- Average length: 150 characters" in context
        assert "gm, wagmi" in context
        assert "zk proofs, rollups" in context
        assert "- Emoji usage: light" in context
        assert "- Preferred language: en" in context
        assert "- Maximum 280 characters per suggestion" in context

    def test_only_two_samples(self, sample_profile):
        context = PromptBuilder.build_system_context(sample_profile, 320)

        assert "first sample post" in context
        assert "second sample post" in context
        assert "third sample post" not in context

    def test_top_three_engagement_topics_by_mean(self, sample_profile):
        profile = sample_profile.model_copy(update={
            "engagement_insights": [
                EngagementInsight(topic="memes", scores=[10, 20]),
                EngagementInsight(topic="governance", scores=[50]),
                EngagementInsight(topic="defi", scores=[30, 40]),
                EngagementInsight(topic="weather", scores=[1]),
                EngagementInsight(topic="empty", scores=[]),
            ]
        })

        context = PromptBuilder.build_system_context(profile, 320)

        assert "HIGH ENGAGEMENT" in context
        assert context.index("governance") < context.index("defi") < context.index("memes")
        assert "weather" not in context
        assert "empty (" not in context

    def test_repeated_topic_scores_are_averaged_together(self, sample_profile):
        profile = sample_profile.model_copy(update={
            "engagement_insights": [
                EngagementInsight(topic="rollups", scores=[100]),
                EngagementInsight(topic="rollups", scores=[0, 0, 0]),
                EngagementInsight(topic="memes", scores=[30]),
            ]
        })

        assert PromptBuilder.top_engagement_topics(profile) == [("memes", 30.0), ("rollups", 25.0)]

        context = PromptBuilder.build_system_context(profile, 320)
        assert context.count("- rollups (avg score") == 1

    def test_no_engagement_section_without_insights(self, sample_profile):
        context = PromptBuilder.build_system_context(sample_profile, 320)
        assert "HIGH ENGAGEMENT" not in context

    def test_brand_block_order_and_never_do_reinforcement(self, sample_profile, brand_context):
        context = PromptBuilder.build_system_context(sample_profile, 320, brand_context)

        headings = ["BRAND VOICE:", "BIO:", "EXPERTISE:", "ALWAYS DO:", "NEVER DO:", "PREFERRED HASHTAGS:", "RULES:"]
        positions = [context.index(h) for h in headings]
        assert positions == sorted(positions)

        assert "- IMPORTANT: never do this: use price speculation" in context
        assert "- IMPORTANT: never do this: use slang" in context
        assert context.count("use slang") == 2
        assert "#build #base" in context

    def test_partial_brand_context(self, sample_profile):
        context = PromptBuilder.build_system_context(
            sample_profile, 320, AccountContext(brand_voice="Warm and direct")
        )

        assert "BRAND VOICE:\nWarm and direct" in context
        assert "BIO:" not in context
        assert "IMPORTANT" not in context


class TestUserPrompt:
    def test_write_prompt(self):
        context = SuggestionContext(
            replying_to=PostReference(text="What are you building?", author="dwr"),
            topic="launch week",
            target_tone="playful",
        )

        prompt = PromptBuilder.build_user_prompt(GenerationMode.WRITE, context, 320, "en", 3)

        assert prompt.startswith("Write in English.")
        assert "Replying to @dwr:" in prompt
        assert '"What are you building?"' in prompt
        assert "Topic: launch week" in prompt
        assert "Desired tone: playful" in prompt
        assert "Generate exactly 3 different options (max 320 characters each)." in prompt
        assert prompt.endswith(JSON_CONTRACT)

    def test_language_from_profile_preference(self):
        prompt = PromptBuilder.build_user_prompt(
            GenerationMode.WRITE, SuggestionContext(), 320, LanguagePreference.ES, 3
        )
        assert prompt.startswith("Write in Spanish.")

        prompt = PromptBuilder.build_user_prompt(
            GenerationMode.WRITE, SuggestionContext(), 320, LanguagePreference.MIXED, 3
        )
        assert prompt.startswith("Write in English.")

    def test_explicit_target_language(self):
        context = SuggestionContext(target_language="de")
        prompt = PromptBuilder.build_user_prompt(GenerationMode.WRITE, context, 320, "es", 3)
        assert prompt.startswith("Write in German.")

    def test_unsupported_target_language_raises(self):
        context = SuggestionContext(target_language="xx")
        with pytest.raises(UnsupportedLanguageError):
            PromptBuilder.build_user_prompt(GenerationMode.WRITE, context, 320, "en", 3)

    def test_improve_prompt_targets_length_band(self):
        draft = "a" * 50
        context = SuggestionContext(current_draft=draft, target_platform="X")

        prompt = PromptBuilder.build_user_prompt(GenerationMode.IMPROVE, context, 320, "en", 2)

        assert "Write improvements in English." in prompt
        assert f'"{draft}"' in prompt
        assert "LONGER than the draft (50 characters)" in prompt
        assert "Aim for at least 90 characters per version (target band 90-320)" in prompt
        assert "Never exceed 320 characters." in prompt
        assert "concise and punchy" in prompt
        assert "Provide exactly 2 improved versions." in prompt

    def test_humanize_prompt(self):
        context = SuggestionContext(current_draft="In today's fast-paced world, synergy matters.")

        prompt = PromptBuilder.build_user_prompt(GenerationMode.HUMANIZE, context, 320, "en", 2)

        assert "Write the humanized versions in English." in prompt
        assert "do not invent facts" in prompt
        assert "Provide exactly 2 humanized versions." in prompt

    def test_translate_preview_prompt(self):
        context = SuggestionContext(current_draft="gm frens", target_language="es")

        prompt = PromptBuilder.build_user_prompt(GenerationMode.TRANSLATE, context, 320, "en", 2)

        assert prompt.startswith("Translate this text to Spanish, keeping the tone and style:")
        assert "1. A literal translation" in prompt
        assert "2. A natural translation" in prompt

    @pytest.mark.parametrize(
        "mode", [GenerationMode.IMPROVE, GenerationMode.HUMANIZE, GenerationMode.TRANSLATE]
    )
    @pytest.mark.parametrize("draft", [None, "", "   \n  "])
    def test_missing_draft_rejected(self, mode, draft):
        context = SuggestionContext(current_draft=draft)
        with pytest.raises(MissingDraftError, match=f"Draft is required for {mode.value} mode"):
            PromptBuilder.build_user_prompt(mode, context, 320, "en", 2)

    def test_inputs_are_sanitized(self):
        context = SuggestionContext(topic="<script>alert(1)</script>   launch")
        prompt = PromptBuilder.build_user_prompt(GenerationMode.WRITE, context, 320, "en", 3)

        assert "<" not in prompt.split(JSON_CONTRACT)[0]
        assert "Topic: scriptalert(1)/script launch" in prompt


class TestModeRequests:
    def test_variants_per_mode(self):
        assert isinstance(build_mode_request(GenerationMode.WRITE, SuggestionContext()), WriteRequest)

        with_draft = SuggestionContext(current_draft="draft text", target_tone="formal")
        improve = build_mode_request(GenerationMode.IMPROVE, with_draft)
        assert isinstance(improve, ImproveRequest)
        assert improve.target_tone == "formal"
        assert isinstance(build_mode_request(GenerationMode.HUMANIZE, with_draft), HumanizeRequest)
        assert isinstance(build_mode_request(GenerationMode.TRANSLATE, with_draft), TranslateRequest)

    def test_draft_capped_by_max_chars(self):
        context = SuggestionContext(current_draft="a" * 6000)

        assert len(build_mode_request(GenerationMode.IMPROVE, context, 320).draft) == 2000
        assert len(build_mode_request(GenerationMode.IMPROVE, context, 5000).draft) == 5000

    def test_discriminated_union_parsing(self):
        adapter = TypeAdapter(ModeRequest)

        request = adapter.validate_python({"mode": "humanize", "draft": "hi"})

        assert isinstance(request, HumanizeRequest)
        assert request.draft == "hi"


@pytest.mark.parametrize(
    "platform,expected",
    [
        ("X", "concise and punchy"),
        ("twitter", "concise and punchy"),
        ("LinkedIn", "structured and professional"),
        ("farcaster", "native cadence of farcaster"),
    ],
)
def test_platform_guidance(platform, expected):
    assert expected in platform_guidance(platform)
    assert platform_guidance(None) == ""
