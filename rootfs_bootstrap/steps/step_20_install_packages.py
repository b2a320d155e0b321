from __future__ import annotations

import logging

from ..lib.apk import apk_add
from ..lib.command import CommandError
from ..session import BootstrapError, Session

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    step_id = "20_install_packages"

    def run(self, session: Session) -> bool:
        if not session.packages:
            return False

        opts = session.opts
        repos_file = session.repositories_file()

        # Package scripts may need /dev, /proc and friends from here on.
        session.mount_pseudo()

        logger.info("Installing packages: %s", " ".join(session.packages))
        try:
            apk_add(
                session.packages,
                apk=opts.apk,
                root_dir=session.root_dir,
                keys_dir=opts.keys_dir,
                repos_file=repos_file,
                extra_args=session.apk_args,
            )
        except (CommandError, OSError) as e:
            raise BootstrapError("package installation failed") from e

        session.umount_pseudo()
        return True
