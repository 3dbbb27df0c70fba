# Services package init
"""
Synth Backend: Services Layer
==============================

What:  Work that spans several store operations or leaves the process.

Service Inventory:
    - PublishScheduler: publishes snippets and runs the downloadable sweep
    - SnapshotService:  saves/restores the whole store as a JSON file

Services receive the EntityStore they operate on; they never reach for a
global instance.
"""
