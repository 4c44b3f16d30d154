"""Pydantic models for data read from the Google Workspace directory.

- :class:`RemoteUserRecord` -- read-only projection of a Directory API
  ``users`` resource.  Never mutated locally.
- :class:`UserPage` -- one page of a paginated ``users.list`` response.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteUserRecord(BaseModel):
    """A directory user as seen by the sync engine.

    Missing values are normalised to empty strings (or ``None``) instead of
    being rejected: records without an email or external ID are still valid
    models and are classified as skipped by the differencer.

    Attributes:
        external_id: The directory's stable user ID (stored locally as
            ``employee_id``).
        primary_email: The user's primary email address.
        given_name: First name, possibly empty.
        family_name: Last name, possibly empty.
        org_unit_path: Organizational unit path (e.g. ``"/営業"``).
        suspended: Whether the account is suspended in the directory.
        last_modified: Timestamp associated with the record, or ``None``.
    """

    model_config = ConfigDict(frozen=True)

    external_id: str = ""
    primary_email: str = ""
    given_name: str = ""
    family_name: str = ""
    org_unit_path: str | None = None
    suspended: bool = False
    last_modified: datetime | None = None

    @field_validator("external_id", "primary_email", "given_name", "family_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def domain(self) -> str:
        """The domain part of :attr:`primary_email`, or ``""``."""
        return self.primary_email.partition("@")[2]


class UserPage(BaseModel):
    """One page of directory users plus the continuation token.

    Attributes:
        records: Users on this page, in API order.
        next_page_token: Token for the next page, or ``None`` on the last
            page.
    """

    model_config = ConfigDict(frozen=True)

    records: list[RemoteUserRecord] = Field(default_factory=list)
    next_page_token: str | None = None

    @field_validator("next_page_token", mode="before")
    @classmethod
    def _empty_token_is_none(cls, value: object) -> object:
        # The API occasionally returns "" on the final page.
        return value or None
