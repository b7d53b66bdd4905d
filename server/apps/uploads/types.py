"""Value types passed between the uploads logic layer and its callers."""

import uuid
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Final

from server.apps.uploads.exceptions import UploadValidationError

ASSOCIATION_FIELDS: Final = (
    'community_id',
    'course_id',
    'module_id',
    'material_id',
)


@dataclass(frozen=True, slots=True)
class AssociationIds:
    """Optional references to the entities an upload belongs to.

    Fields are independent: any combination may be set, including
    several at once (e.g. a material upload that also tags its module).
    """

    community_id: uuid.UUID | None = None
    course_id: uuid.UUID | None = None
    module_id: uuid.UUID | None = None
    material_id: uuid.UUID | None = None

    def as_fields(self) -> dict[str, uuid.UUID | None]:
        """Return model field values."""
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> 'AssociationIds':
        """Parse association ids from untrusted input.

        Missing, None and empty values are treated as unset.

        Args:
            data: Mapping possibly containing the four ``*_id`` keys.

        Returns:
            AssociationIds instance.

        Raises:
            UploadValidationError: If a present value is not a UUID.
        """
        parsed: dict[str, uuid.UUID | None] = {}
        for field in ASSOCIATION_FIELDS:
            raw_value = data.get(field)
            if raw_value in (None, ''):
                parsed[field] = None
                continue
            try:
                parsed[field] = uuid.UUID(str(raw_value))
            except ValueError as error:
                raise UploadValidationError(
                    f'{field} must be a valid UUID',
                    field=field,
                ) from error
        return cls(**parsed)


@dataclass(frozen=True, slots=True)
class IssuedUpload:
    """Result of a successful presigned upload URL issuance."""

    upload_id: uuid.UUID
    presigned_url: str
    key: str
    public_url: str
    expires_at: datetime
