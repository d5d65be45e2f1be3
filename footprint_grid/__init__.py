"""Footprint grid: which ~100 m cells you have visited, and in how many sessions."""
