"""
Reproducibility test module for snake Q-learning

Tests to verify reproducibility across:
- Same seed produces same random streams
- Same seed produces identical training runs on the same device
"""
