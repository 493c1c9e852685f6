"""
Clone URL resolution.

Pure functions: no I/O, no configuration lookup.
"""

from typing import Dict, Union

from .repository import DEFAULT_HOST, Protocol

_TEMPLATES = {
    Protocol.SSH: "git@{host}:{user}/{repo}.git",
    Protocol.HTTPS: "https://{host}/{user}/{repo}",
    Protocol.SVN: "https://{host}/{user}/{repo}",
}


def resolve(protocol: Union[str, Protocol], user: str, repo_name: str,
            host: str = DEFAULT_HOST) -> str:
    """
    Build the clone URL for one repository.

    Args:
        protocol: ssh, https or svn
        user: Account owning the repository
        repo_name: Repository name as reported by the inventory
        host: Hosting domain

    Returns:
        Clone URL string

    Raises:
        UnsupportedProtocol: for any other protocol value
    """
    proto = Protocol.parse(protocol)
    return _TEMPLATES[proto].format(host=host, user=user, repo=repo_name)


def base_urls(user: str, host: str = DEFAULT_HOST) -> Dict[Protocol, str]:
    """Account-level URL prefixes, without a trailing slash."""
    return {
        Protocol.SSH: f"git@{host}:{user}",
        Protocol.HTTPS: f"https://{host}/{user}",
    }
