"""
Artifact Store Module

Keeps generated spreadsheets on disk until they are downloaded once.
"""

import logging
import os
import tempfile
import uuid
from typing import Optional

from .config import ARTIFACT_ID_PATTERN
from .errors import ArtifactNotFoundError, InvalidArtifactIdError

logger = logging.getLogger(__name__)


class ArtifactStore:
    """
    Blob store backed by a directory.

    Artifacts are addressed by opaque ids matching ``[a-zA-Z0-9-]+`` so an id
    can never escape the store directory.
    """

    def __init__(self, directory: Optional[str] = None, prefix: str = 'excel-', suffix: str = '.xlsx'):
        self.directory = directory or tempfile.gettempdir()
        self.prefix = prefix
        self.suffix = suffix

    @staticmethod
    def is_valid_id(artifact_id: str) -> bool:
        return bool(artifact_id) and bool(ARTIFACT_ID_PATTERN.fullmatch(artifact_id))

    def path_for(self, artifact_id: str) -> str:
        if not self.is_valid_id(artifact_id):
            raise InvalidArtifactIdError()
        return os.path.join(self.directory, f'{self.prefix}{artifact_id}{self.suffix}')

    def create(self, data: bytes) -> str:
        """
        Store a blob.

        Args:
            data: Content to store

        Returns:
            The new artifact id
        """
        artifact_id = str(uuid.uuid4())
        os.makedirs(self.directory, exist_ok=True)
        with open(self.path_for(artifact_id), 'wb') as f:
            f.write(data)
        logger.debug(f"Stored artifact {artifact_id} ({len(data)} bytes)")
        return artifact_id

    def exists(self, artifact_id: str) -> bool:
        return os.path.isfile(self.path_for(artifact_id))

    def read(self, artifact_id: str) -> bytes:
        path = self.path_for(artifact_id)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            raise ArtifactNotFoundError() from None

    def delete(self, artifact_id: str) -> bool:
        """Remove an artifact; returns False if it was already gone."""
        try:
            os.remove(self.path_for(artifact_id))
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete artifact {artifact_id}: {e}")
            return False

    def pop(self, artifact_id: str) -> bytes:
        """Read an artifact and delete it (one-time retrieval)."""
        data = self.read(artifact_id)
        self.delete(artifact_id)
        return data
