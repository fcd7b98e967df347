"""The signed repository identity and its on-disk marker."""

import hmac
import logging
import uuid
from pathlib import Path

import blake3
from pydantic import BaseModel, ConfigDict, Field

from afilia.core.config import REPO_FORMAT_VERSION, SIGN_FILE_NAME
from afilia.core.exceptions import AppError, CustomErrorKind, RepositoryExistsError, error_context

logger = logging.getLogger(__name__)


class RepositoryIdentity(BaseModel):
    """
    The unique, tamper-evident identity of a repository.

    The signature binds the id, the name and a caller-supplied payload. The
    payload itself is never stored, so verifying an identity requires
    knowing it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: uuid.UUID = Field(alias="uuid")
    name: str = Field(min_length=1)
    signature: str = Field(alias="sign", pattern=r"^[0-9a-f]{64}$")
    format_version: str = Field(default=REPO_FORMAT_VERSION, alias="version")

    @classmethod
    def new(cls, name: str, payload: str) -> "RepositoryIdentity":
        """
        Mint a new identity with a fresh random id.

        Raises:
            AppError: custom `REPOSITORY_METADATA` if `name` is empty.

        """
        if not name:
            raise AppError.new_custom(CustomErrorKind.REPOSITORY_METADATA, "repository name must not be empty")
        repo_id = uuid.uuid4()
        return cls(id=repo_id, name=name, signature=cls.sign(repo_id, name, payload))

    @staticmethod
    def sign(repo_id: uuid.UUID, name: str, payload: str) -> str:
        """
        Return the hex BLAKE3 digest of `"<id>:<name>:<payload>"`.

        Raises:
            AppError: Utf8 error if `name` or `payload` cannot be encoded.

        """
        with error_context("cannot sign repository %s", name):
            data = f"{repo_id}:{name}:{payload}".encode()
        return blake3.blake3(data).hexdigest()

    def verify(self, payload: str) -> bool:
        """Check whether `payload` is the one this identity was signed with."""
        return hmac.compare_digest(self.signature, self.sign(self.id, self.name, payload))

    def to_json(self) -> str:
        """Render the marker document."""
        return self.model_dump_json(by_alias=True, indent=2)

    def serialize(self, directory: Path, overwrite: bool = False) -> Path:
        """
        Write the identity marker into `directory`.

        Args:
            directory: The repository root; it must already exist.
            overwrite: Replace an existing marker instead of failing.

        Returns:
            The path of the written marker.

        Raises:
            RepositoryExistsError: If a marker exists and `overwrite` is False.
            AppError: I/O error if the marker cannot be written.

        """
        marker_path = Path(directory) / SIGN_FILE_NAME
        message = f"cannot write repository identity to {marker_path}"
        try:
            f = marker_path.open("w" if overwrite else "x", encoding="utf-8")
        except FileExistsError as err:
            raise RepositoryExistsError(f"repository identity already exists at {marker_path}") from err
        except OSError as err:
            raise AppError.from_error(err, message) from err

        try:
            with f:
                f.write(self.to_json())
                f.write("\n")
        except OSError as err:
            marker_path.unlink(missing_ok=True)
            raise AppError.from_error(err, message) from err
        logger.info("Wrote identity of repository '%s' (%s) to %s", self.name, self.id, marker_path)
        return marker_path

    @classmethod
    def load(cls, directory: Path) -> "RepositoryIdentity":
        """
        Read the identity marker from `directory`.

        Raises:
            AppError: I/O if the marker cannot be read, Utf8 if it is not
                valid UTF-8, JSON if the document is malformed.

        """
        marker_path = Path(directory) / SIGN_FILE_NAME
        with error_context("cannot read repository identity from %s", marker_path):
            raw = marker_path.read_bytes()
        with error_context("repository identity in %s is not valid UTF-8", marker_path):
            content = raw.decode("utf-8")
        with error_context("repository identity in %s is malformed", marker_path):
            return cls.model_validate_json(content)
