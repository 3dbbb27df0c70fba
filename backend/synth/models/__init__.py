# Models package init
"""
Synth Backend: Data Models
===========================

    - entities.py: the stored record types, one per entity kind
    - views.py:    enriched read views and aggregate summaries
"""
