"""Batched Stochastic Oscillator screener for IDX equities with Telegram reports"""

__version__ = "1.0.0"
