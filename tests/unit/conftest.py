"""
Unit test fixtures. Use fakes; no real HTTP or LLM.
"""
