"""Team Tasker: projects, tasks, comments and per-project chat on a live document store."""

__version__ = "0.1.0"
