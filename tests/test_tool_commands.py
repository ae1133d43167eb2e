"""Tests for tool command validation and declarations."""

from __future__ import annotations

import pytest

from nodecanvas.errors import CommandValidationError
from nodecanvas.tools.commands import (
    COMMAND_TYPES,
    ConnectFiles,
    DeleteFile,
    MoveFile,
    RenameFile,
    UpdateFile,
    parse_tool_call,
)
from nodecanvas.tools.declarations import TOOL_DECLARATIONS
from tests.utils import create_tool_call


class TestParseToolCall:
    """Test validation of raw tool calls."""

    def test_update_file(self) -> None:
        command = parse_tool_call(create_tool_call("updateFile", filename="components/Button.tsx", code="x"))
        assert command == UpdateFile(path="components/Button.tsx", content="x")

    def test_each_command_shape(self) -> None:
        assert isinstance(parse_tool_call(create_tool_call("deleteFile", filename="a.js")), DeleteFile)
        assert isinstance(parse_tool_call(create_tool_call("renameFile", oldName="a.js", newName="b.js")), RenameFile)
        connect = parse_tool_call(create_tool_call("connectFiles", sourceFilename="a.js", targetFilename="b.js"))
        assert isinstance(connect, ConnectFiles)
        assert (connect.source_title, connect.target_title) == ("a.js", "b.js")

    def test_move_with_folder(self) -> None:
        command = parse_tool_call(create_tool_call("moveFile", filename="a.js", targetFolderName="lib"))
        assert command == MoveFile(title="a.js", target_folder="lib")

    @pytest.mark.parametrize("folder", ["", None])
    def test_blank_folder_means_root(self, folder: str | None) -> None:
        command = parse_tool_call(create_tool_call("moveFile", filename="a.js", targetFolderName=folder))
        assert isinstance(command, MoveFile)
        assert command.target_folder is None

    def test_arguments_key_is_accepted(self) -> None:
        command = parse_tool_call({"name": "deleteFile", "arguments": {"filename": "a.js"}})
        assert command == DeleteFile(title="a.js")

    def test_parsed_commands_pass_through(self) -> None:
        command = DeleteFile(title="a.js")
        assert parse_tool_call(command) is command

    def test_unknown_tool(self) -> None:
        with pytest.raises(CommandValidationError) as exc_info:
            parse_tool_call(create_tool_call("formatDisk", drive="C"))
        assert exc_info.value.name == "formatDisk"

    def test_missing_argument(self) -> None:
        with pytest.raises(CommandValidationError) as exc_info:
            parse_tool_call(create_tool_call("updateFile", filename="a.js"))
        assert "code" in exc_info.value.message

    def test_empty_filename(self) -> None:
        with pytest.raises(CommandValidationError):
            parse_tool_call(create_tool_call("deleteFile", filename=""))

    def test_non_object_call(self) -> None:
        with pytest.raises(CommandValidationError):
            parse_tool_call(["updateFile"])
        with pytest.raises(CommandValidationError):
            parse_tool_call({"name": "deleteFile", "args": "a.js"})


class TestDeclarations:
    def test_every_command_is_declared(self) -> None:
        names = [d["function"]["name"] for d in TOOL_DECLARATIONS]
        assert sorted(names) == sorted(COMMAND_TYPES)

    def test_required_arguments_match_aliases(self) -> None:
        declared = {d["function"]["name"]: d["function"]["parameters"] for d in TOOL_DECLARATIONS}
        assert declared["updateFile"]["required"] == ["filename", "code"]
        assert declared["moveFile"]["required"] == ["filename"]
        assert "targetFolderName" in declared["moveFile"]["properties"]
