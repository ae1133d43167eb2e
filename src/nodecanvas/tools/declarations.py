"""Tool declarations offered to the tool-calling service.

Declarations use the function-tool schema litellm forwards to every
provider. Argument names match the aliases in ``commands.py``.
"""

from __future__ import annotations

from typing import Any


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {"type": "object", "properties": properties, "required": required},
        },
    }


UPDATE_FILE = _tool(
    "updateFile",
    'Create or update a file. Supports paths (e.g. "components/Button.tsx"); '
    "a missing folder is created.",
    {
        "filename": {
            "type": "string",
            "description": 'The name or path of the file (e.g. "script.js" or "lib/utils.js").',
        },
        "code": {"type": "string", "description": "The new full content of the file."},
    },
    ["filename", "code"],
)

DELETE_FILE = _tool(
    "deleteFile",
    "Delete a file node from the project.",
    {"filename": {"type": "string", "description": "The name of the file to delete."}},
    ["filename"],
)

MOVE_FILE = _tool(
    "moveFile",
    "Move an existing file into a folder or to the root. This rewires its connections.",
    {
        "filename": {"type": "string", "description": "The exact name of the file node to move."},
        "targetFolderName": {
            "type": "string",
            "description": "The exact name of the destination folder. Leave empty to move to the root.",
        },
    },
    ["filename"],
)

RENAME_FILE = _tool(
    "renameFile",
    "Rename a file node. Do not use paths here.",
    {
        "oldName": {"type": "string", "description": "The current name of the file."},
        "newName": {"type": "string", "description": "The new name for the file (no paths)."},
    },
    ["oldName", "newName"],
)

CONNECT_FILES = _tool(
    "connectFiles",
    "Wire a file into a folder, or make a code file import another file or package.",
    {
        "sourceFilename": {"type": "string", "description": "The file or package that is used."},
        "targetFilename": {"type": "string", "description": "The folder or code file that uses it."},
    },
    ["sourceFilename", "targetFilename"],
)

TOOL_DECLARATIONS: list[dict[str, Any]] = [UPDATE_FILE, DELETE_FILE, MOVE_FILE, RENAME_FILE, CONNECT_FILES]
