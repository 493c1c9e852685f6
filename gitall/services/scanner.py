"""
Local repository discovery.
"""

import os
from pathlib import Path
from typing import List, Union
import logging

from ..exit_codes import DirectoryUnreadable

logger = logging.getLogger(__name__)


class LocalScanner:
    """
    Finds the git clones directly under a directory.

    Only immediate children are considered: a child is a repository when
    it is a directory and has a ``.git`` directory of its own. Nested
    repositories are not discovered. The result follows filesystem
    enumeration order, which is platform dependent; treat it as unordered.
    """

    def discover(self, target_dir: Union[str, Path]) -> List[Path]:
        """
        List the repositories under target_dir.

        Raises:
            DirectoryUnreadable: if target_dir is missing, not a directory,
                or cannot be listed
        """
        target = Path(target_dir)
        if not target.is_dir():
            raise DirectoryUnreadable(str(target))

        repos = []
        try:
            with os.scandir(target) as entries:
                for entry in entries:
                    if entry.is_dir() and (Path(entry.path) / ".git").is_dir():
                        repos.append(Path(entry.path))
        except OSError as e:
            raise DirectoryUnreadable(str(target), f"could not be read: {e.strerror or e}") from e

        logger.debug(f"Found {len(repos)} repositories in {target}")
        return repos
