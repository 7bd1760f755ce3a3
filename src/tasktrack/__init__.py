"""TaskTrack: task management API with user accounts.

Users register and log in to receive revocable JWT session tokens,
then manage their own task records: filtering, sorting, pagination
and per-status statistics. Every task query is scoped to its owner.
"""

__version__ = "0.1.0"
