"""
Normalization helpers shared by all source adapters.
"""
