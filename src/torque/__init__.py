"""Torque mechanic chat core: persona, history window and token budget."""
