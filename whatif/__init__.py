"""What-If decision simulator.

Applies hypothetical changes to a schedule snapshot, derives the
simulated state (conflicts, risks, metrics), analyses the impact versus
the baseline, scores the scenario and ranks competing scenarios.

Deterministic except for Monte Carlo mode, whose randomness comes from
an injectable, seedable generator.
"""
