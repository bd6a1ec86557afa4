import json

from gemstonefs.workspace import JsonWorkspace, WorkspaceFolder


def test_missing_file(tmp_path):
    workspace = JsonWorkspace(str(tmp_path / "gs.code-workspace"))

    assert workspace.folders == []


def test_update_creates_file(tmp_path):
    path = tmp_path / "sub" / "gs.code-workspace"
    workspace = JsonWorkspace(str(path))

    assert workspace.update_folders(
        0, 0, WorkspaceFolder(uri="gs1:/UserGlobals", name="UserGlobals")
    )

    assert json.loads(path.read_text()) == {
        "folders": [{"uri": "gs1:/UserGlobals", "name": "UserGlobals"}]
    }


def test_update_preserves_other_content(tmp_path):
    path = tmp_path / "gs.code-workspace"
    path.write_text(
        json.dumps(
            {
                "folders": [
                    {"path": "/home/user/project"},
                    {"uri": "gs1:/UserGlobals", "name": "UserGlobals"},
                    {"uri": "gs1:/Globals", "name": "Globals"},
                ],
                "settings": {"editor.tabSize": 4},
            }
        )
    )

    workspace = JsonWorkspace(str(path))

    assert [f.uri for f in workspace.folders] == [
        "/home/user/project",
        "gs1:/UserGlobals",
        "gs1:/Globals",
    ]
    assert workspace.folders[0].name == "project"

    assert workspace.update_folders(1, 2)

    assert json.loads(path.read_text()) == {
        "folders": [{"path": "/home/user/project"}],
        "settings": {"editor.tabSize": 4},
    }


def test_update_insert_in_middle(tmp_path):
    workspace = JsonWorkspace(str(tmp_path / "gs.code-workspace"))

    workspace.update_folders(0, 0, WorkspaceFolder("a", "a"), WorkspaceFolder("c", "c"))
    workspace.update_folders(1, 0, WorkspaceFolder("b", "b"))

    assert [f.uri for f in workspace.folders] == ["a", "b", "c"]


def test_update_out_of_range(tmp_path, caplog):
    workspace = JsonWorkspace(str(tmp_path / "gs.code-workspace"))
    workspace.update_folders(0, 0, WorkspaceFolder("a", "a"))

    assert not workspace.update_folders(1, 1)
    assert not workspace.update_folders(-1, 0)
    assert not workspace.update_folders(2, 0, WorkspaceFolder("b", "b"))

    assert [f.uri for f in workspace.folders] == ["a"]
    assert "invalid workspace update" in caplog.text


def test_update_invalid_file(tmp_path, caplog):
    path = tmp_path / "gs.code-workspace"
    path.write_text("[1, 2, 3]")

    workspace = JsonWorkspace(str(path))

    assert not workspace.update_folders(0, 0, WorkspaceFolder("a", "a"))
    assert path.read_text() == "[1, 2, 3]"
    assert "failed to update workspace" in caplog.text
