"""可用更新检查 - 锁定版本 vs 最新正式 release"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zdeps.core.exceptions import InvalidLocatorError, InvalidVersionError, RemoteNotFoundError
from zdeps.core.models import UpdateInfo
from zdeps.core.semver import parse_version
from zdeps.remote.github import parse_locator

if TYPE_CHECKING:
    from zdeps.core.manifest import LockFile
    from zdeps.remote.github import MetadataClient

logger = logging.getLogger(__name__)


def check_for_updates(client: MetadataClient, lock: LockFile) -> list[UpdateInfo]:
    updates: list[UpdateInfo] = []
    for pkg in lock.packages:
        try:
            owner, repo = parse_locator(pkg.source)
            current = parse_version(pkg.version)
            latest_tag = client.get_latest_release(owner, repo).tag_name
            latest = parse_version(latest_tag)
        except (InvalidLocatorError, InvalidVersionError, RemoteNotFoundError) as e:
            logger.debug("跳过 %s: %s", pkg.name, e)
            continue
        if latest > current:
            updates.append(UpdateInfo(
                name=pkg.name,
                current_version=pkg.version,
                latest_version=latest_tag,
                source=pkg.source,
            ))
    return updates
