"""Decision-simulation engine.

Clone, apply, detect, assess, measure, analyse, score, compare. Every
stage is a deterministic function of its inputs; Monte Carlo draws its
randomness from an injected ``numpy.random.Generator``.
"""
