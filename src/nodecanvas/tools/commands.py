"""The closed set of tool commands and their boundary validation.

The tool-calling service returns loosely typed ``{name, args}`` calls.
Each is validated into one of five command models before the engine sees
it; anything else is rejected with ``CommandValidationError``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError

from nodecanvas.errors import CommandValidationError
from nodecanvas.wire import WireModel


class UpdateFile(WireModel):
    """Create or overwrite a file; ``path`` may be folder-qualified."""

    name: Literal["updateFile"] = "updateFile"
    path: str = Field(alias="filename", min_length=1)
    content: str = Field(alias="code")


class DeleteFile(WireModel):
    name: Literal["deleteFile"] = "deleteFile"
    title: str = Field(alias="filename", min_length=1)


class MoveFile(WireModel):
    """Move a file into a folder, or out of every folder when none is given."""

    name: Literal["moveFile"] = "moveFile"
    title: str = Field(alias="filename", min_length=1)
    target_folder: str | None = Field(default=None, alias="targetFolderName")


class RenameFile(WireModel):
    name: Literal["renameFile"] = "renameFile"
    old_title: str = Field(alias="oldName", min_length=1)
    new_title: str = Field(alias="newName", min_length=1)


class ConnectFiles(WireModel):
    name: Literal["connectFiles"] = "connectFiles"
    source_title: str = Field(alias="sourceFilename", min_length=1)
    target_title: str = Field(alias="targetFilename", min_length=1)


Command = UpdateFile | DeleteFile | MoveFile | RenameFile | ConnectFiles

COMMAND_TYPES: dict[str, type[WireModel]] = {
    "updateFile": UpdateFile,
    "deleteFile": DeleteFile,
    "moveFile": MoveFile,
    "renameFile": RenameFile,
    "connectFiles": ConnectFiles,
}


def parse_tool_call(call: Any) -> Command:
    """Validate one ``{"name": ..., "args": {...}}`` tool call.

    Already-parsed commands pass through unchanged.

    Raises:
        CommandValidationError: Unknown name or arguments of the wrong shape.
    """
    if isinstance(call, (UpdateFile, DeleteFile, MoveFile, RenameFile, ConnectFiles)):
        return call
    if not isinstance(call, dict):
        raise CommandValidationError("<unknown>", "tool call must be an object")

    name = call.get("name")
    if not isinstance(name, str) or name not in COMMAND_TYPES:
        raise CommandValidationError(str(name), "unknown tool")

    args = call.get("args")
    if args is None:
        args = call.get("arguments", {})
    if not isinstance(args, dict):
        raise CommandValidationError(name, "arguments must be an object")

    # A blank folder name means "no folder"
    if name == "moveFile" and not args.get("targetFolderName"):
        args = {k: v for k, v in args.items() if k != "targetFolderName"}

    try:
        return COMMAND_TYPES[name].model_validate({**args, "name": name})  # type: ignore[return-value]
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise CommandValidationError(name, f"invalid arguments ({fields})") from e
