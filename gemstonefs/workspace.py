"""
Module with the editor workspace that mounted sessions are added to as folders.

The editor host shows one workspace folder per root of a virtual file system. The bridge
keeps those folders in a .code-workspace file:

    {
        "folders": [
            {"path": "/home/me/project"},
            {"uri": "gs1:/UserGlobals", "name": "UserGlobals"},
            {"uri": "gs1:/Globals", "name": "Globals"}
        ],
        "settings": {}
    }

Folders that the bridge didn't add (like the local path above) and any other keys are
preserved as they are.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
import json
import os
from typing import Any, Dict, List

import fasteners

from gemstonefs.logger import log


@dataclass
class WorkspaceFolder:
    """A folder of the workspace, identified by its URI."""

    uri: str
    name: str


class Workspace(ABC):
    """Ordered list of workspace folders that is changed by splicing."""

    @property
    @abstractmethod
    def folders(self) -> List[WorkspaceFolder]:
        """Return the current folders in order."""

    @abstractmethod
    def update_folders(
        self, start: int, delete_count: int, *folders: WorkspaceFolder
    ) -> bool:
        """
        Replace delete_count folders at index start with the given folders.

        Returns False if the update was rejected, in which case nothing changed.
        """


class JsonWorkspace(Workspace):
    """
    Workspace stored in a .code-workspace file.

    Every update rereads the file and rewrites it under an inter-process lock, since the
    editor host and other bridge processes may change the same file.
    """

    def __init__(self, path: str):
        """Instantiate for the workspace file at the path, which may not exist yet."""
        self.path = os.path.expanduser(path)
        self._lock = fasteners.InterProcessLock(self.path + ".lock")

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r") as f:
                document = json.load(f)
        except FileNotFoundError:
            document = {}

        if not isinstance(document, dict):
            raise ValueError(f"{self.path} is not a workspace file")

        document.setdefault("folders", [])

        return document

    def _write(self, document: Dict[str, Any]) -> None:
        tmp_path = self.path + ".tmp"

        with open(tmp_path, "w") as f:
            json.dump(document, f, indent=4)

        os.replace(tmp_path, self.path)

    @staticmethod
    def _folder(obj: Dict[str, Any]) -> WorkspaceFolder:
        uri = obj.get("uri") or obj.get("path") or ""
        return WorkspaceFolder(uri=uri, name=obj.get("name") or os.path.basename(uri))

    @property
    def folders(self) -> List[WorkspaceFolder]:
        with self._lock:
            document = self._read()

        return [self._folder(obj) for obj in document["folders"]]

    def update_folders(
        self, start: int, delete_count: int, *folders: WorkspaceFolder
    ) -> bool:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)

        try:
            with self._lock:
                document = self._read()
                current = document["folders"]

                if start < 0 or delete_count < 0 or start + delete_count > len(current):
                    log.error(
                        f"invalid workspace update at {start} (-{delete_count}) "
                        f"of {len(current)} folders"
                    )
                    return False

                current[start : start + delete_count] = [asdict(f) for f in folders]

                self._write(document)
        except (OSError, ValueError) as e:
            log.error(f"failed to update workspace {self.path}: {e}")
            return False

        log.debug(
            f"workspace folders at {start}: -{delete_count} +{len(folders)}"
        )

        return True
