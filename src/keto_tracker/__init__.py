"""
Keto Phase Tracker - Glucose/ketone logging with local and cloud storage.

Tracks daily glucose and ketone readings, the derived Dr. Boz ratio and
progression through the twelve fasting phases, persisting to a local
store with best-effort synchronization to a per-user cloud store.
"""

__version__ = "0.1.0"
