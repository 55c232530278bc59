"""Shared constants."""

DELETED = "deleted"

TERMINAL_STATUSES = frozenset({"done"})

BOARD_TEMPLATES = {
    "kanban": ("todo", "inProgress", "done"),
    "scrum": ("productBacklog", "sprintBacklog", "inProgress", "testing", "done"),
}

TARGET_SEPARATOR = ":"

# Queue operation types
CREATE = "create"
UPDATE = "update"
DELETE = "delete"
REORDER = "reorder"
OPERATION_TYPES = (CREATE, UPDATE, DELETE, REORDER)
