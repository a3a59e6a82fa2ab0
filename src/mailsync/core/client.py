import logging
from typing import Any

from imapclient import IMAPClient

from ..config import Config

logger = logging.getLogger(__name__)


class MailboxClient:
    """Read-only IMAP access used to observe the remote mailbox.

    Wraps ``imapclient.IMAPClient``.  Errors raised by the library
    (``IMAPClientError`` and socket errors) propagate to the caller; no
    retries are attempted here.
    """

    def __init__(self, config: Config):
        self.config = config
        self._imap: IMAPClient | None = None

    def __enter__(self) -> "MailboxClient":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def imap(self) -> IMAPClient:
        if self._imap is None:
            raise RuntimeError("MailboxClient is not connected")
        return self._imap

    def connect(self) -> None:
        """Open the connection and log in."""
        if self._imap is not None:
            return
        logger.info(
            "Connecting to %s:%s (ssl=%s)",
            self.config.host,
            self.config.port,
            self.config.ssl,
        )
        imap = IMAPClient(
            self.config.host,
            port=self.config.port,
            ssl=self.config.ssl,
            timeout=self.config.timeout,
        )
        try:
            imap.login(self.config.username, self.config.password)
        except Exception:
            imap.shutdown()
            raise
        self._imap = imap

    def close(self) -> None:
        """Log out and drop the connection.  Safe to call twice."""
        if self._imap is None:
            return
        imap, self._imap = self._imap, None
        try:
            imap.logout()
        except Exception as exc:
            logger.warning("Error during IMAP logout: %s", exc)

    def select_folder(self, folder: str) -> dict[bytes, Any]:
        """Select *folder* read-only and return the server's response.

        The response carries ``b"EXISTS"`` and ``b"UIDVALIDITY"``.
        """
        response = self.imap.select_folder(folder, readonly=True)
        logger.debug("Selected %s: %s", folder, response)
        return response

    def fetch_flags(self, folder: str) -> dict[int, dict[bytes, Any]]:
        """Fetch ``UID`` and ``FLAGS`` for every message in *folder*.

        Returns:
            The raw fetch response keyed by message sequence number, or
            an empty dict when the folder holds no messages.
        """
        response = self.select_folder(folder)
        if not response.get(b"EXISTS"):
            logger.info("Folder %s is empty", folder)
            return {}

        imap = self.imap
        previous, imap.use_uid = imap.use_uid, False
        try:
            fetches = imap.fetch("1:*", ["UID", "FLAGS"])
        finally:
            imap.use_uid = previous
        logger.info("Fetched flags for %d messages in %s", len(fetches), folder)
        return fetches
