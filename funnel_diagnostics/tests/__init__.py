'''
Funnel Diagnostics Test Suite

Test coverage for the diagnostic engine and its FastAPI host adapter.

Test Modules:
-------------
- test_rates.py: Rate calculator
  - Undefined ratios (missing operands, zero denominators) are None
  - Derived metrics never NaN or infinite
  - Half-up rounding

- test_eligibility.py: Sample-size gates
  - Stage gate: no_data / low_sample / eligible
  - Media metric gates, first failing field reported

- test_status.py: Status evaluator
  - pass/warn/fail with the 10% buffer, monotonic in value
  - Stage aggregation and gating, metric priorities

- test_confidence.py: Confidence scorer
  - Sample, completeness and consistency penalties
  - Score clamped to 0-100, tier cutoffs 50 / 80

- test_bottlenecks.py: Bottleneck ranker
  - Extra units and downstream propagation (trusted / estimated / unavailable)
  - Severity ranking, ties to the earlier stage, bestStage

- test_actions.py: Playbook, checklist, missing-data questions, matrix rules
- test_benchmarks.py: Benchmark profiles and capture-type adjustments
- test_registry.py: Registry validation and formatting
- test_diagnostic.py: Full pipeline and batch runs
- test_api.py: HTTP endpoints (marker: api)

Running Tests:
--------------
    pip install -e ".[test]"
    pytest funnel_diagnostics/tests -v
    pytest funnel_diagnostics/tests -m scenario

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
