"""rootfs-bootstrap: provision a new root filesystem with apk.

Core design goals:
- Every precondition checked before anything is touched
- One session object owns all mounts and temporary files
- Teardown on every exit path, including SIGINT/SIGTERM
- Package resolution stays with the package manager
"""

__all__ = []
