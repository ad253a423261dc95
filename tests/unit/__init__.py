"""Unit tests for the KMPDU voting session core.

This package covers the in-process behaviour of the library:

- Eligibility and vote casting (confirmed and offline fallback)
- Level switching
- Superuseradmin overrides and election reset
- Results views, models, portal client, history stores and CLI

No external services are required; collaborators are faked in conftest.
"""
