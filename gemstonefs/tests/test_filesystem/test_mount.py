import pytest

from gemstonefs.filesystem import GemStoneFileSystem, MountSynchronizer
from gemstonefs.filesystem.errors import MountFailed, RemoteQueryFailed
from gemstonefs.filesystem.mount import contiguous_run
from gemstonefs.tests.conftest import FakeSession, MemoryWorkspace
from gemstonefs.tests.test_filesystem.fixtures import populate


def make_fs(session_id, limits, names=("UserGlobals", "Globals")):
    session = FakeSession(session_id)
    session.symbol_list = (
        '{"list":['
        + ",".join(f'{{"oop":{i},"name":"{n}"}}' for i, n in enumerate(names))
        + "]}"
    )

    return GemStoneFileSystem(session, limits)


def test_contiguous_run():
    ws = MemoryWorkspace("/a", "gs1:/X", "gs1:/Y", "/b", "gs1:/Z")

    def pred(uri):
        return uri.startswith("gs1:/")

    assert contiguous_run(ws.folders, pred) == (1, 2)
    assert contiguous_run(ws.folders[3:], pred) == (1, 1)
    assert contiguous_run(ws.folders[:1], pred) is None


def test_mount(workspace, session, limits):
    populate(session)

    folders = MountSynchronizer(workspace).mount(GemStoneFileSystem(session, limits))

    assert [f.uri for f in folders] == ["gs1:/UserGlobals", "gs1:/Globals"]
    assert [f.name for f in folders] == ["UserGlobals", "Globals"]
    assert workspace.uris == ["gs1:/UserGlobals", "gs1:/Globals"]


def test_mount_appends(limits):
    ws = MemoryWorkspace("/home/user/project")

    MountSynchronizer(ws).mount(make_fs(1, limits))

    assert ws.uris == ["/home/user/project", "gs1:/UserGlobals", "gs1:/Globals"]
    assert ws.updates[0][:2] == (1, 0)


def test_mount_no_dictionaries(workspace, session, limits):
    folders = MountSynchronizer(workspace).mount(GemStoneFileSystem(session, limits))

    assert folders == []
    assert workspace.updates == []


def test_mount_rejected(workspace, limits):
    workspace.reject_updates = True

    with pytest.raises(MountFailed):
        MountSynchronizer(workspace).mount(make_fs(1, limits))


def test_mount_query_failure(workspace, session, limits):
    session.query_error = IOError("rpc call timed out")

    with pytest.raises(RemoteQueryFailed):
        MountSynchronizer(workspace).mount(GemStoneFileSystem(session, limits))

    assert workspace.updates == []


def test_unmount_middle(limits):
    ws = MemoryWorkspace("/home/user/project")
    sync = MountSynchronizer(ws)

    sync.mount(make_fs(1, limits, ["A", "B"]))
    sync.mount(make_fs(2, limits, ["C"]))
    sync.mount(make_fs(11, limits, ["D"]))

    assert sync.unmount("gs1") == 2
    assert ws.uris == ["/home/user/project", "gs2:/C", "gs11:/D"]


def test_unmount_multiple_runs():
    ws = MemoryWorkspace("gs1:/A", "/a", "gs1:/B", "gs1:/C", "gs2:/D")

    assert MountSynchronizer(ws).unmount("gs1") == 3
    assert ws.uris == ["/a", "gs2:/D"]
    assert [u[:2] for u in ws.updates] == [(0, 1), (1, 2)]


def test_unmount_nothing():
    ws = MemoryWorkspace("/a", "gs2:/D")

    assert MountSynchronizer(ws).unmount("gs1") == 0
    assert ws.updates == []


def test_unmount_rejected(caplog):
    ws = MemoryWorkspace("gs1:/A")
    ws.reject_updates = True

    assert MountSynchronizer(ws).unmount("gs1") == 0
    assert "failed to remove 1 workspace folders" in caplog.text


def test_remove_stale():
    ws = MemoryWorkspace("gs3:/A", "gs3:/B", "/home/user", "gs17:/C", "gsx:/D")

    assert MountSynchronizer(ws).remove_stale() == 3
    assert ws.uris == ["/home/user", "gsx:/D"]
