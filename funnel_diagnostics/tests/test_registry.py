"""
Metric Registry Test Module

Tests for funnel_diagnostics/services/registry.py.

Test Coverage:
- Default configuration is internally consistent
- Startup validation errors for broken stage tables
- EngineConfig helpers: stage lookup, stage weights, immutable target swaps
- Read-only lookup tables on the cached config
- Display formatting by metric unit
"""

import pytest

from funnel_diagnostics.models.enums import Direction
from funnel_diagnostics.models.schemas import EligibilityThreshold, MetricTarget
from funnel_diagnostics.services.registry import (
    DEFAULT_TARGETS,
    MEDIA_THRESHOLDS,
    STAGES,
    EngineConfig,
    RegistryConfigurationError,
    format_metric_value,
    get_engine_config,
    merge_targets,
    validate_engine_config,
)


# =============================================================================
# Test Class: TestValidation
# =============================================================================

class TestValidation:

    def test_defaults_are_valid(self, engine_config):
        validate_engine_config(engine_config)

    def test_every_stage_target_is_a_floor(self, engine_config):
        for stage in engine_config.stages:
            assert engine_config.targets[stage.mainMetricKey].direction == Direction.MIN

    def test_stages_chain(self):
        """Each stage's numerator is the next stage's denominator."""
        for upstream, downstream in zip(STAGES, STAGES[1:]):
            assert upstream.numeratorKey == downstream.denominatorKey

    def test_missing_target(self, engine_config):
        targets = dict(engine_config.targets)
        del targets["opportunityToWon"]

        with pytest.raises(RegistryConfigurationError, match="opportunityToWon"):
            validate_engine_config(engine_config.with_targets(targets))

    def test_duplicate_stage_id(self, engine_config):
        broken = engine_config.model_copy(update={"stages": STAGES + [STAGES[0]]})

        with pytest.raises(RegistryConfigurationError, match="Duplicate"):
            validate_engine_config(broken)

    def test_missing_threshold(self, engine_config):
        thresholds = dict(engine_config.stage_thresholds)
        del thresholds["sql_to_opportunity"]
        broken = engine_config.model_copy(update={"stage_thresholds": thresholds})

        with pytest.raises(RegistryConfigurationError, match="no eligibility threshold"):
            validate_engine_config(broken)

    def test_threshold_on_wrong_denominator(self, engine_config):
        thresholds = dict(engine_config.stage_thresholds)
        thresholds["mql_to_sql"] = EligibilityThreshold(denominatorKey="leads", minSampleSize=20)
        broken = engine_config.model_copy(update={"stage_thresholds": thresholds})

        with pytest.raises(RegistryConfigurationError, match="denominator"):
            validate_engine_config(broken)

    def test_error_is_a_value_error(self):
        assert issubclass(RegistryConfigurationError, ValueError)


# =============================================================================
# Test Class: TestEngineConfig
# =============================================================================

class TestEngineConfig:

    def test_get_stage(self, engine_config):
        assert engine_config.get_stage("sql_to_opportunity").outputLabel == "opportunities"

    def test_get_unknown_stage(self, engine_config):
        with pytest.raises(RegistryConfigurationError):
            engine_config.get_stage("meeting_to_win")

    def test_stage_weights_decrease(self, engine_config):
        weights = [engine_config.stage_weight(i) for i in range(len(engine_config.stages))]
        assert weights == sorted(weights, reverse=True)
        assert weights[0] == pytest.approx(1.4)

    def test_with_targets_leaves_original(self, engine_config):
        strict = MetricTarget(value=50.0, direction=Direction.MIN, label="Lead → MQL (%)")

        updated = engine_config.with_targets(merge_targets(engine_config.targets, {"leadToMql": strict}))

        assert updated.targets["leadToMql"].value == 50.0
        assert engine_config.targets["leadToMql"].value == 15.0
        assert DEFAULT_TARGETS["leadToMql"].value == 15.0

    def test_instances_do_not_share_targets(self):
        first, second = EngineConfig(), EngineConfig()
        assert first.targets is not second.targets

    def test_singleton_is_cached(self, clear_caches):
        assert get_engine_config() is get_engine_config()

    def test_tables_are_read_only(self, clear_caches):
        config = get_engine_config()
        strict = MetricTarget(value=90.0, direction=Direction.MIN, label="Lead → MQL (%)")

        with pytest.raises(TypeError):
            config.targets["leadToMql"] = strict
        with pytest.raises(TypeError):
            config.stage_thresholds["lead_to_mql"] = EligibilityThreshold(denominatorKey="leads", minSampleSize=1)
        with pytest.raises(TypeError):
            del config.media_thresholds["cpl"]
        with pytest.raises(AttributeError):
            config.stages.append(STAGES[0])

        assert get_engine_config().targets["leadToMql"].value == 15.0

    def test_swapped_targets_are_read_only(self, engine_config):
        source = dict(engine_config.targets)
        updated = engine_config.with_targets(source)

        source.pop("leadToMql")

        assert "leadToMql" in updated.targets
        with pytest.raises(TypeError):
            updated.targets["leadToMql"] = engine_config.targets["cpl"]

    def test_explicit_tables_are_copied(self):
        thresholds = {"cpl": MEDIA_THRESHOLDS["cpl"]}
        config = EngineConfig(media_thresholds=thresholds)

        thresholds.clear()

        assert list(config.media_thresholds) == ["cpl"]
        with pytest.raises(TypeError):
            config.media_thresholds["ctr"] = MEDIA_THRESHOLDS["cpl"]

    def test_merge_targets_without_overrides(self):
        merged = merge_targets(DEFAULT_TARGETS)
        assert merged == DEFAULT_TARGETS
        assert merged is not DEFAULT_TARGETS


# =============================================================================
# Test Class: TestFormatting
# =============================================================================

class TestFormatting:

    @pytest.mark.parametrize("key,value,expected", [
        ("leadToMql", 27.345, "27.3%"),
        ("cpl", 1234.5, "1,234.50"),
        ("timeToFirstTouch", 4.4, "4 min"),
        ("salesCycleDays", 45.0, "45 days"),
        ("leads", 12000.0, "12,000"),
        ("leadToMql", None, "-"),
    ])
    def test_format_by_unit(self, engine_config, key, value, expected):
        assert format_metric_value(key, value, engine_config.targets) == expected
