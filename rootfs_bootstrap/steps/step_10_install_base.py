from __future__ import annotations

import logging

from ..lib.apk import apk_initdb_add
from ..lib.assets import stream_copy_tree
from ..lib.command import CommandError
from ..session import MODE_LOCAL, MODE_OSTREE, BootstrapError, Session

logger = logging.getLogger(__name__)


class InstallBaseStep:
    step_id = "10_install_base"

    def run(self, session: Session) -> bool:
        opts = session.opts

        if session.mode == MODE_LOCAL:
            logger.info("Copying system to %s...", session.root_dir)
            try:
                stream_copy_tree(opts.local_source, session.root_dir)
            except (CommandError, OSError) as e:
                raise BootstrapError("failed to copy system") from e
            return True

        if session.mode == MODE_OSTREE:
            packages = opts.ostree_base_packages
        else:
            packages = opts.base_packages

        repos_file = session.repositories_file()

        logger.info("Installing base system to %s...", session.root_dir)
        try:
            apk_initdb_add(
                packages,
                apk=opts.apk,
                root_dir=session.root_dir,
                keys_dir=opts.keys_dir,
                repos_file=repos_file,
                extra_args=session.apk_args,
            )
        except (CommandError, OSError) as e:
            raise BootstrapError("initial installation failed") from e
        return True
