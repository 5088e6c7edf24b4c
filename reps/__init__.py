"""
reps: interview prep tracker with spaced repetition.

Components:
- core: Task model, AI result schemas, collaborator ports, errors
- scheduling: SM-2 schedule updates and due-task selection
- views: list filtering, Kanban board moves, calendar projection
- sessions: review and practice interview state machines
- store / client: local JSON file and web API backends
- cli: Rich terminal interface
"""

__version__ = "1.0.0"
