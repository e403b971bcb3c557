"""
Release check against the project's latest GitHub release.

Any failure (offline, rate limited, odd tag) means "no update"; the check
never blocks opening a chat.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

import requests

__version__ = "2.1.0"

GITHUB_OWNER = "misterburton"
GITHUB_REPO = "mb-lightroom-coach"
RELEASES_URL = "https://api.github.com/repos/{owner}/{repo}/releases/latest"

_VERSION = re.compile(r"(\d+)\.(\d+)\.(\d+)")


@dataclass
class UpdateInfo:
    version: str        # tag as published, e.g. "v2.2.0"
    url: str            # release page

    @property
    def display_version(self) -> str:
        return self.version[1:] if self.version.startswith("v") else self.version


def parse_version(version: str) -> Optional[tuple]:
    """'v1.2.3' / '1.2.3' -> (1, 2, 3); None if there is no x.y.z."""
    if not version:
        return None
    clean = version[1:] if version.startswith("v") else version
    match = _VERSION.search(clean)
    if not match:
        return None
    return tuple(int(part) for part in match.groups())


def is_newer_version(local: Optional[tuple], remote: Optional[tuple]) -> bool:
    """True only if ``remote`` is strictly newer than ``local``."""
    if not local or not remote or len(local) < 3 or len(remote) < 3:
        return False
    return tuple(remote[:3]) > tuple(local[:3])


def check_for_updates(
    current_version: str = __version__,
    owner: str = GITHUB_OWNER,
    repo: str = GITHUB_REPO,
    timeout: float = 5.0,
    http=requests,
) -> Optional[UpdateInfo]:
    url = RELEASES_URL.format(owner=owner, repo=repo)
    try:
        response = http.get(
            url,
            headers={
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "LightroomCoach-Plugin",
            },
            timeout=timeout,
        )
        release = response.json()
    except (requests.RequestException, ValueError) as e:
        print(f"[Updates] Check failed: {e}")
        return None

    if not isinstance(release, dict):
        return None
    tag = release.get("tag_name") or ""
    page = release.get("html_url") or ""
    if not tag or not page.startswith("https://github.com/"):
        return None

    if is_newer_version(parse_version(current_version), parse_version(tag)):
        print(f"[Updates] {tag} available (running {current_version})")
        return UpdateInfo(version=tag, url=page)
    return None
