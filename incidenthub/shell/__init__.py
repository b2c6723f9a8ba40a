"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- NASA EONET feed client (HTTP)
- Priority classifier client (HTTP)
- Firestore stores (database)
- In-memory stores (local development and tests)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from incidenthub.shell.eonet_client import EONETClient
