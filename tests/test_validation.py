from pathlib import Path

import pytest

from mcp_mermaid_png.errors import InvalidArgumentsError
from mcp_mermaid_png.models.io_contracts import GenerateRequest, validate_generate_args

FLOW = "graph TD\n  A[Start] --> B[End]"


def test_minimal_request_is_accepted():
    req = validate_generate_args({"code": FLOW}, require_output=False)

    assert isinstance(req, GenerateRequest)
    assert req.code == FLOW
    assert req.theme is None
    assert req.background_color is None


def test_optional_style_fields_are_read_from_camel_case():
    req = validate_generate_args(
        {"code": FLOW, "theme": "dark", "backgroundColor": " #F0F0F0 "},
        require_output=False,
    )

    assert req.theme == "dark"
    assert req.background_color == "#F0F0F0"


def test_markdown_fence_is_stripped_from_code():
    req = validate_generate_args({"code": f"```mermaid\n{FLOW}\n```"}, require_output=False)

    assert req.code == FLOW


@pytest.mark.parametrize("payload", [
    None,
    "graph TD; A-->B",
    ["graph TD"],
    {},
    {"theme": "dark"},
    {"code": ""},
    {"code": "   \n  "},
    {"code": "```mermaid\n```"},
    {"code": 42},
])
def test_missing_or_malformed_code_is_rejected(payload):
    with pytest.raises(InvalidArgumentsError) as exc:
        validate_generate_args(payload, require_output=False)

    assert exc.value.kind == "invalid_arguments"
    assert exc.value.code == -32602


def test_theme_outside_enumeration_is_rejected():
    with pytest.raises(InvalidArgumentsError) as exc:
        validate_generate_args({"code": FLOW, "theme": "solarized"}, require_output=False)

    assert "theme" in exc.value.message


@pytest.mark.parametrize("color", ["red;} body{display:none", "<script>", "url(http://x)\"'"])
def test_background_color_that_could_break_the_page_is_rejected(color):
    with pytest.raises(InvalidArgumentsError):
        validate_generate_args({"code": FLOW, "backgroundColor": color}, require_output=False)


def test_inline_mode_ignores_output_fields():
    req = validate_generate_args(
        {"code": FLOW, "name": "../evil", "folder": "/definitely/missing"},
        require_output=False,
    )

    assert req.name == "../evil"


@pytest.mark.parametrize("extra, missing", [
    ({}, "name and folder"),
    ({"name": "diagram1"}, "folder"),
    ({"folder": "/tmp"}, "name"),
    ({"name": "  ", "folder": "/tmp"}, "name"),
])
def test_file_mode_requires_name_and_folder(extra, missing):
    with pytest.raises(InvalidArgumentsError) as exc:
        validate_generate_args({"code": FLOW, **extra}, require_output=True)

    assert exc.value.message.startswith(missing)


def test_file_mode_rejects_unsafe_name(tmp_path: Path):
    with pytest.raises(InvalidArgumentsError) as exc:
        validate_generate_args(
            {"code": FLOW, "name": "../escape", "folder": str(tmp_path)},
            require_output=True,
        )

    assert "Invalid name" in exc.value.message


def test_file_mode_rejects_missing_folder(tmp_path: Path):
    with pytest.raises(InvalidArgumentsError) as exc:
        validate_generate_args(
            {"code": FLOW, "name": "diagram1", "folder": str(tmp_path / "nope")},
            require_output=True,
        )

    assert "does not exist" in exc.value.message


def test_file_mode_accepts_usable_target(tmp_path: Path):
    req = validate_generate_args(
        {"code": FLOW, "name": "diagram1", "folder": str(tmp_path)},
        require_output=True,
    )

    assert req.name == "diagram1"
    assert req.folder == str(tmp_path)
