"""
Web presentation layer for Shipyard.

Architectural Intent:
- Exposes the fleet registry, deployment ledger and telemetry as a REST API
- Uses Python stdlib only (http.server + asyncio)
- Complements the CLI; the API client and synchronizer consume it
"""
