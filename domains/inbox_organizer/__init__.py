"""
Inbox Organizer Domain

Watches a single inbox directory and renames newly-settled files:
- monitor.py - Eligibility scan, timer and filesystem-event triggers
- extractor.py - Content context extraction per file type
- categorizer.py - Category inference from context signals
- synthesizer.py - Descriptive base-name synthesis
- organizer.py - Collision-safe rename orchestration
- ledger.py - Append-only rename history
"""

__all__ = [
    "capabilities",
    "categorizer",
    "context",
    "extractor",
    "ledger",
    "monitor",
    "naming",
    "organizer",
    "service",
    "synthesizer",
]
