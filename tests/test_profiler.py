"""Tests for model profiling and category ranking.

Tests:
1. Descriptor parsing from catalog entries
2. Known-profile precedence and inference heuristics
3. Score bounds across a spread of descriptors
4. Category ranking with requirements
"""

from decimal import Decimal

import pytest

from conftest import catalog_entry


@pytest.fixture
def profiler():
    from promptroute.profiling import ModelProfiler
    return ModelProfiler()


def descriptor(model_id, **kwargs):
    from promptroute.types import ModelDescriptor
    return ModelDescriptor.from_api(catalog_entry(model_id, **kwargs))


# ═══════════════════════════════════════════════════════════════
# 1. DESCRIPTORS
# ═══════════════════════════════════════════════════════════════

class TestModelDescriptor:
    """Parsing catalog entries."""

    def test_from_api_reads_pricing_as_decimal(self):
        d = descriptor("openai/gpt-4o", prompt="0.000005", completion="0.000015")
        assert d.prompt_price == Decimal("0.000005")
        assert d.completion_price == Decimal("0.000015")
        assert d.average_price == Decimal("0.00001")
        assert d.max_completion_tokens == 4096

    def test_provider_is_id_prefix(self):
        assert descriptor("anthropic/claude-3-haiku").provider == "anthropic"

    def test_missing_context_length_rejected(self):
        from promptroute.types import ModelDescriptor

        entry = catalog_entry("acme/model")
        del entry["context_length"]
        with pytest.raises(KeyError):
            ModelDescriptor.from_api(entry)

    def test_negative_price_rejected(self):
        with pytest.raises(ValueError):
            descriptor("acme/model", prompt="-1")

    def test_zero_context_rejected(self):
        with pytest.raises(ValueError):
            descriptor("acme/model", context_length=0)

    def test_missing_pricing_means_free(self):
        from promptroute.types import ModelDescriptor

        entry = catalog_entry("acme/model")
        entry["pricing"] = None
        d = ModelDescriptor.from_api(entry)
        assert d.average_price == 0


# ═══════════════════════════════════════════════════════════════
# 2. PROFILING
# ═══════════════════════════════════════════════════════════════

class TestKnownProfiles:
    """Curated table entries win over inference."""

    def test_table_is_versioned_and_loaded(self):
        from promptroute.profiling import load_known_profiles

        table = load_known_profiles()
        assert table.version >= 1
        assert "openai/gpt-4o" in table
        assert "gryphe/mythomist-7b:free" in table

    def test_known_profile_confidence_and_scores(self, profiler):
        from promptroute.profiling import load_known_profiles

        table = load_known_profiles()
        for model_id in ("openai/gpt-4o", "anthropic/claude-3-haiku", "meta-llama/llama-3.1-8b"):
            profile = profiler.profile(descriptor(model_id))
            assert profile.profile_confidence == 0.95
            assert profile.capabilities == table.get(model_id).capabilities

    def test_known_characteristics_override_inference(self, profiler):
        from promptroute.types import AccuracyTier, SpeedTier

        profile = profiler.profile(descriptor("anthropic/claude-3-haiku"))
        assert profile.characteristics.speed == SpeedTier.ULTRA_FAST
        assert profile.characteristics.accuracy == AccuracyTier.GOOD
        assert profile.characteristics.is_reasoning is True

    def test_known_model_cost_still_inferred_from_price(self, profiler):
        from promptroute.types import CostTier

        profile = profiler.profile(descriptor("gryphe/mythomist-7b:free", prompt="0", completion="0"))
        assert profile.characteristics.cost == CostTier.FREE


class TestInferredProfiles:
    """Heuristics for models missing from the table."""

    def test_profiling_is_pure(self, profiler):
        d = descriptor("openai/gpt-4-vision-next", description="x" * 80)
        assert profiler.profile(d) == profiler.profile(d)

    def test_provider_and_family_adjustments(self, profiler):
        profile = profiler.profile(descriptor("openai/gpt-4-new", prompt="0", completion="0"))
        # 0.5 baseline + 0.2 provider + 0.15 family
        assert profile.capabilities.coding == pytest.approx(0.85)
        assert profile.capabilities.reasoning == pytest.approx(0.85)
        assert profile.capabilities.creative == pytest.approx(0.5)
        assert profile.characteristics.model_family == "gpt-4"
        assert profile.characteristics.is_reasoning is True

    def test_price_bonus_is_capped(self, profiler):
        profile = profiler.profile(descriptor("acme/pricey", prompt="0.01", completion="0.01"))
        assert profile.capabilities.general == pytest.approx(0.65)

    def test_confidence_rules(self, profiler):
        assert profiler.profile(descriptor("acme/x")).profile_confidence == 0.4
        assert profiler.profile(descriptor("google/x")).profile_confidence == 0.6
        rich = descriptor("google/x", description="A" * 51)
        assert profiler.profile(rich).profile_confidence == 0.7

    def test_unknown_family_is_not_reasoning(self, profiler):
        profile = profiler.profile(descriptor("acme/tiny-chat"))
        assert profile.characteristics.model_family == "unknown"
        assert profile.characteristics.is_reasoning is False

    @pytest.mark.parametrize("model_id,expected", [
        ("acme/flash-lite", "ultra-fast"),
        ("acme/model-8b", "fast"),
        ("acme/big-405b", "slow"),
        ("acme/model", "medium"),
    ])
    def test_speed_tier_from_id(self, profiler, model_id, expected):
        assert profiler.infer_speed_tier(model_id).value == expected

    @pytest.mark.parametrize("prompt,completion,expected", [
        ("0", "0", "free"),
        ("0.00001", "0.00001", "cheap"),
        ("0.0005", "0.0005", "moderate"),
        ("0.005", "0.005", "expensive"),
        ("0.05", "0.05", "premium"),
    ])
    def test_cost_tier_from_average_price(self, profiler, prompt, completion, expected):
        d = descriptor("acme/model", prompt=prompt, completion=completion)
        assert profiler.infer_cost_tier(d).value == expected

    @pytest.mark.parametrize("context,expected", [
        (8_000, "small"),
        (32_000, "medium"),
        (200_000, "large"),
        (2_000_000, "huge"),
    ])
    def test_context_tier(self, profiler, context, expected):
        assert profiler.infer_context_tier(context).value == expected


class TestScoreBounds:
    """Every derived number stays inside [0, 1]."""

    @pytest.mark.parametrize("model_id,prompt", [
        ("openai/gpt-4-turbo-preview", "0.1"),
        ("anthropic/claude-3-opus-beta", "0.5"),
        ("google/gemini-ultra", "0"),
        ("meta-llama/llama-3-400b", "0.00001"),
        ("unknown/zzz", "0.002"),
    ])
    def test_bounds(self, profiler, model_id, prompt):
        profile = profiler.profile(descriptor(model_id, prompt=prompt, completion=prompt))
        for value in profile.capabilities.to_dict().values():
            assert 0.0 <= value <= 1.0
        c = profile.characteristics
        for tier in (c.speed, c.cost, c.accuracy, c.context):
            assert 0.0 <= tier.weight <= 1.0
        assert 0.0 <= profile.profile_confidence <= 1.0


# ═══════════════════════════════════════════════════════════════
# 3. RANKING
# ═══════════════════════════════════════════════════════════════

class TestRanking:
    """Category ranking over a profile set."""

    @pytest.fixture
    def profiles(self, profiler):
        from conftest import STANDARD_CATALOG
        from promptroute.types import ModelDescriptor
        return [profiler.profile(ModelDescriptor.from_api(e)) for e in STANDARD_CATALOG]

    def test_best_coding_model(self, profiles):
        from promptroute.profiling import rank_models_for_category
        from promptroute.types import PromptType

        ranking = rank_models_for_category(profiles, PromptType.CODING)
        assert ranking.best.id == "openai/gpt-4o"
        scores = [r.score for r in ranking.ranked]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)

    def test_reasoning_string(self, profiles):
        from promptroute.profiling import rank_models_for_category
        from promptroute.types import PromptType

        top = rank_models_for_category(profiles, PromptType.CODING).ranked[0]
        assert top.reasoning.startswith("95% coding capability")
        assert "excellent accuracy" in top.reasoning
        assert top.reasoning.endswith("overall)")

    def test_requirements_filter(self, profiles):
        from promptroute.profiling import RankingRequirements, get_best_model_for_category
        from promptroute.types import PromptType, SpeedTier

        best = get_best_model_for_category(
            profiles,
            PromptType.CONVERSATIONAL,
            RankingRequirements(min_speed=SpeedTier.ULTRA_FAST),
        )
        assert best.id == "anthropic/claude-3-haiku"

    def test_min_accuracy_compares_tier_weights(self, profiles):
        from promptroute.profiling import RankingRequirements, rank_models_for_category
        from promptroute.types import AccuracyTier, PromptType, SpeedTier

        assert SpeedTier.SLOW.weight == 0.0
        assert SpeedTier.ULTRA_FAST.weight == 1.0
        assert AccuracyTier.HIGH.weight == pytest.approx(2 / 3)

        ranking = rank_models_for_category(
            profiles, PromptType.ANALYTICAL, RankingRequirements(min_accuracy=AccuracyTier.HIGH))
        expected = {
            p.id for p in profiles
            if p.characteristics.accuracy.weight >= AccuracyTier.HIGH.weight
        }
        assert {r.profile.id for r in ranking.ranked} == expected
        assert "gryphe/mythomist-7b:free" not in expected

    def test_needs_reasoning_excludes_non_reasoning(self, profiles):
        from promptroute.profiling import RankingRequirements, rank_models_for_category
        from promptroute.types import PromptType

        ranking = rank_models_for_category(
            profiles, PromptType.CREATIVE, RankingRequirements(needs_reasoning=True))
        ids = {r.profile.id for r in ranking.ranked}
        assert "openai/gpt-3.5-turbo" not in ids
        assert "gryphe/mythomist-7b:free" not in ids

    def test_limit(self, profiles):
        from promptroute.profiling import rank_models_for_category
        from promptroute.types import PromptType

        assert len(rank_models_for_category(profiles, PromptType.GENERAL, limit=2).ranked) == 2
