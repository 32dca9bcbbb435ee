"""
Task subsystem.

Components:
- task_models.py: data structures (TaskRecord, TaskSnapshot, TaskStatus, TaskKind)
- task_registry.py: session-owned map of task records with change subscriptions
- task_poller.py: per-task status polling until a terminal status
- stage_gate.py: whether scraping may start
- progress.py: 0..100 progress projection for display
- task_api.py: the discovery -> scraping workflow used by the rest of the app
"""
