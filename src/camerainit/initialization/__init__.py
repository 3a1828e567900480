"""Intrinsic initialization pipeline modules.

Import from the submodules directly: ``initialization.pipeline`` for the
orchestration, ``initialization.view_resolution`` for the per-view step.
"""
