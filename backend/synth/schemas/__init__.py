# Schemas package init
"""
Synth Backend: Schemas
=======================

    - inserts.py: payloads accepted by EntityStore.create_*
    - health.py:  GET /health response body
"""
