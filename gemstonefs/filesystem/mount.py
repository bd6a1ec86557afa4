"""Module that keeps the workspace folders in line with the mounted sessions."""

from typing import Callable, List, Optional, Tuple

from gemstonefs.filesystem import addressing
from gemstonefs.filesystem.errors import MountFailed
from gemstonefs.filesystem.filesystem import GemStoneFileSystem
from gemstonefs.logger import log
from gemstonefs.workspace import Workspace, WorkspaceFolder


def contiguous_run(
    folders: List[WorkspaceFolder], predicate: Callable[[str], bool]
) -> Optional[Tuple[int, int]]:
    """Return the start and length of the first run of matching folders."""
    start = next((i for i, f in enumerate(folders) if predicate(f.uri)), None)

    if start is None:
        return None

    end = start
    while end < len(folders) and predicate(folders[end].uri):
        end += 1

    return start, end - start


class MountSynchronizer:
    """
    Adds the dictionaries of a session to the workspace and removes them again.

    The roots of a session are appended as one contiguous run. Other folders may end up
    on either side of it, so unmounting removes the runs that carry the session scheme.
    """

    def __init__(self, workspace: Workspace):
        """Instantiate a synchronizer for the workspace."""
        self._workspace = workspace

    def mount(self, fs: GemStoneFileSystem) -> List[WorkspaceFolder]:
        """Mount the file system and append its roots to the workspace."""
        roots = fs.mount()

        folders = [WorkspaceFolder(uri=root.path, name=root.name) for root in roots]

        if not folders:
            log.info(f"{fs.scheme} has no dictionaries to add to the workspace")
            return []

        start = len(self._workspace.folders)

        if not self._workspace.update_folders(start, 0, *folders):
            raise MountFailed(f"failed to add the dictionaries of {fs.scheme}")

        log.info(f"added {len(folders)} folders of {fs.scheme} to the workspace")

        return folders

    def unmount(self, scheme: str) -> int:
        """Remove the folders of the session with the scheme from the workspace."""
        prefix = addressing.scheme_prefix(scheme)
        return self._remove_runs(lambda uri: uri.startswith(prefix))

    def remove_stale(self) -> int:
        """Remove the folders of sessions of a previous bridge process."""
        return self._remove_runs(addressing.is_session_path)

    def _remove_runs(self, predicate: Callable[[str], bool]) -> int:
        removed = 0

        while True:
            run = contiguous_run(self._workspace.folders, predicate)

            if run is None:
                return removed

            start, count = run

            if not self._workspace.update_folders(start, count):
                log.error(f"failed to remove {count} workspace folders at {start}")
                return removed

            removed += count
