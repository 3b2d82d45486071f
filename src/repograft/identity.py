"""Author identity handling for commit-preserving imports."""

from __future__ import annotations

import logging
from configparser import NoOptionError, NoSectionError

from git import Repo

from repograft.core import Identity
from repograft.source import PatchGenerator

logger = logging.getLogger(__name__)


class IdentityManager:
    """Reads and writes ``user.email`` / ``user.name`` in the host repository.

    Only the repository-level config file is touched, so global or system
    identities are never modified. An option missing at capture time is
    removed again on restore rather than written as an empty value.
    """

    def __init__(self, host_repo: Repo, generator: PatchGenerator):
        self.host_repo = host_repo
        self.generator = generator

    def _read(self, reader, option: str) -> str | None:
        try:
            value = reader.get_value("user", option)
        except (NoOptionError, NoSectionError):
            return None
        return str(value)

    def capture(self) -> Identity:
        """Return the identity currently configured in the host repository."""
        reader = self.host_repo.config_reader("repository")
        return Identity(email=self._read(reader, "email"), name=self._read(reader, "name"))

    def write(self, identity: Identity) -> None:
        with self.host_repo.config_writer() as writer:
            for option, value in (("email", identity.email), ("name", identity.name)):
                if value is not None:
                    writer.set_value("user", option, value)
                elif writer.has_option("user", option):
                    writer.remove_option("user", option)

    def impersonate(self, sha: str) -> Identity:
        """Configure the host repository as the original author of ``sha``."""
        email, name = self.generator.author_of(sha)
        identity = Identity(email=email, name=name)
        logger.debug("Impersonating %s for commit %s", identity, sha)
        self.write(identity)
        return identity

    def restore(self, identity: Identity) -> None:
        """Write a previously captured identity back."""
        logger.debug("Restoring identity %s", identity)
        self.write(identity)
