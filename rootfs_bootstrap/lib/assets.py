from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .command import CommandError, fmt_argv

logger = logging.getLogger(__name__)


def stream_copy_tree(src: str, dst: str) -> None:
    """Copy a whole tree through a tar pipe.

    tar keeps permissions, ownership, device nodes and hardlinks, which
    a file-by-file copy would not.
    """

    s = Path(src)
    if not s.is_dir():
        raise FileNotFoundError(src)

    pack = ["tar", "-cpf", "-", "-C", str(s), "."]
    unpack = ["tar", "-xpf", "-", "-C", dst]
    logger.info("CMD %s | %s", fmt_argv(pack), fmt_argv(unpack))

    producer = subprocess.Popen(pack, stdout=subprocess.PIPE)
    consumer = None
    try:
        consumer = subprocess.Popen(unpack, stdin=producer.stdout)
        # Let the producer see SIGPIPE if the consumer exits early.
        if producer.stdout is not None:
            producer.stdout.close()
        consumer_rc = consumer.wait()
        producer_rc = producer.wait()
    except BaseException:
        # Interrupted mid-copy: do not leave tar writing into the root.
        for proc in (consumer, producer):
            if proc is not None:
                proc.kill()
                proc.wait()
        raise

    if producer_rc != 0:
        raise CommandError(pack, producer_rc)
    if consumer_rc != 0:
        raise CommandError(unpack, consumer_rc)
