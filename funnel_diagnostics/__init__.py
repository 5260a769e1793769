"""
Funnel Diagnostics Package.

Deterministic, side-effect-free diagnostic engine for sales funnels, with a
FastAPI service layer around it. Takes one snapshot of aggregate funnel
counters plus configurable targets and produces stage status, a confidence
score, ranked bottlenecks with downstream impact, and recommended actions.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: The diagnostic engine
"""

__version__ = "1.0.0"
