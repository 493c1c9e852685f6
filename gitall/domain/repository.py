"""
Repository domain objects for gitall.

RepoDescriptor is what the hosting API reports for one repository;
SyncTarget is the validated configuration of one engine run.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

from ..exit_codes import ConfigurationError, UnsupportedProtocol

DEFAULT_HOST = "github.com"


class Protocol(Enum):
    """Transport protocol used to address a remote repository."""
    SSH = "ssh"
    HTTPS = "https"
    SVN = "svn"

    @classmethod
    def parse(cls, value: Union[str, 'Protocol']) -> 'Protocol':
        """Parse a protocol name, raising UnsupportedProtocol for anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedProtocol(str(value)) from None


@dataclass(frozen=True)
class RepoDescriptor:
    """
    One entry of the remote inventory.

    Only ``name`` is needed to clone; the flags feed the optional filters.
    """
    name: str
    full_name: str = ""
    fork: bool = False
    archived: bool = False
    private: bool = False

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'RepoDescriptor':
        """Create from one element of the /users/{user}/repos payload."""
        return cls(
            name=data['name'],
            full_name=data.get('full_name') or '',
            fork=bool(data.get('fork', False)),
            archived=bool(data.get('archived', False)),
            private=bool(data.get('private', False)),
        )


@dataclass(frozen=True)
class SyncTarget:
    """
    Invariant configuration for one engine run.

    Validated on construction: the target directory must exist and the
    protocol must be supported, so a bad run fails before any subprocess.
    """
    user: str
    target_dir: Path
    protocol: Protocol = Protocol.SSH
    host: str = field(default=DEFAULT_HOST)

    def __post_init__(self):
        if not self.user:
            raise ConfigurationError("A user name is required")

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'protocol', Protocol.parse(self.protocol))
        target = Path(os.path.expanduser(str(self.target_dir)))
        object.__setattr__(self, 'target_dir', target)

        if not target.is_dir():
            raise ConfigurationError(
                f"Target directory [{target}] does not exist for user [{self.user}]"
            )
