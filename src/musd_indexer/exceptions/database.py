import pathlib

from musd_indexer.exceptions.base import MusdIndexerError


class BackupExists(MusdIndexerError):
    """
    Raised by `musd_indexer database backup` if a file exists at the target path.
    """

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path
        super().__init__(message=f"A backup at {path} already exists.")

    def __reduce__(self) -> tuple[type["BackupExists"], tuple[pathlib.Path]]:
        return self.__class__, (self.path,)
