from __future__ import annotations

"""
Record types mirrored from the CRM server.

`Record` is a closed tagged union: every variant carries a literal `kind`
and dispatch elsewhere goes through per-kind tables keyed by `RecordType`.
Adding a record kind means adding a variant here and a row to each table.
"""

import datetime as _dt
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from crmlens.core.records.dates import date_from_string, datetime_from_string


class RecordType(str, Enum):
    ACCOUNT = "account"
    CONTACT = "contact"
    LEAD = "lead"
    CAMPAIGN = "campaign"
    OPPORTUNITY = "opportunity"


class LinkedItemType(str, Enum):
    NOTE = "note"
    EMAIL = "email"
    DOCUMENT = "document"


def _none_to_empty(v: Any) -> Any:
    return "" if v is None else v


class _RecordBase(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = ""

    @model_validator(mode="before")
    @classmethod
    def _strings_total(cls, data: Any) -> Any:
        # the server omits empty fields; missing strings are "" and never None
        if not isinstance(data, dict):
            return data
        out = dict(data)
        for k, v in data.items():
            field = cls.model_fields.get(k)
            if v is None and field is not None and field.annotation is str:
                out[k] = ""
        return out

    @property
    def record_type(self) -> RecordType:
        return RecordType(getattr(self, "kind"))


class Account(_RecordBase):
    kind: Literal["account"] = "account"

    name: str = ""
    account_type: str = ""
    billing_address_street: str = ""
    billing_address_city: str = ""
    billing_address_postalcode: str = ""
    billing_address_country: str = ""
    shipping_address_street: str = ""
    shipping_address_city: str = ""
    shipping_address_postalcode: str = ""
    shipping_address_country: str = ""
    email1: str = ""
    phone_office: str = ""
    date_entered: Optional[_dt.datetime] = None
    date_modified: Optional[_dt.datetime] = None

    @field_validator("date_entered", "date_modified", mode="before")
    @classmethod
    def _parse_dates(cls, v: Any) -> Optional[_dt.datetime]:
        return datetime_from_string(v)

    @property
    def country_for_gui(self) -> str:
        return self.billing_address_country or self.shipping_address_country

    @property
    def postal_code_for_gui(self) -> str:
        return self.billing_address_postalcode or self.shipping_address_postalcode

    @property
    def city_for_gui(self) -> str:
        return self.billing_address_city or self.shipping_address_city


class Contact(_RecordBase):
    kind: Literal["contact"] = "contact"

    given_name: str = ""
    family_name: str = ""
    full_name: str = ""
    organization: str = ""
    account_id: str = ""
    preferred_email: str = ""
    work_phone: str = ""
    mobile_phone: str = ""
    # country of the work/preferred postal address
    address_country: str = ""
    note: str = ""
    date_created: Optional[_dt.datetime] = None
    date_modified: Optional[_dt.datetime] = None

    @field_validator("date_created", "date_modified", mode="before")
    @classmethod
    def _parse_dates(cls, v: Any) -> Optional[_dt.datetime]:
        return datetime_from_string(v)

    @property
    def assembled_name(self) -> str:
        if self.full_name:
            return self.full_name
        return " ".join(p for p in (self.given_name, self.family_name) if p)


class Lead(_RecordBase):
    kind: Literal["lead"] = "lead"

    first_name: str = ""
    last_name: str = ""
    status: str = ""
    account_name: str = ""
    email1: str = ""
    assigned_user_name: str = ""


class Campaign(_RecordBase):
    kind: Literal["campaign"] = "campaign"

    name: str = ""
    status: str = ""
    campaign_type: str = ""
    # kept as the server's display string; matched textually
    end_date: str = ""
    assigned_user_name: str = ""


class Opportunity(_RecordBase):
    kind: Literal["opportunity"] = "opportunity"

    name: str = ""
    account_id: str = ""
    sales_stage: str = ""
    next_step: str = ""
    assigned_user_name: str = ""
    description: str = ""
    next_step_date: Optional[_dt.date] = None
    date_closed: Optional[_dt.date] = None
    date_entered: Optional[_dt.datetime] = None
    date_modified: Optional[_dt.datetime] = None

    @field_validator("date_entered", "date_modified", mode="before")
    @classmethod
    def _parse_dates(cls, v: Any) -> Optional[_dt.datetime]:
        return datetime_from_string(v)

    @field_validator("next_step_date", "date_closed", mode="before")
    @classmethod
    def _parse_days(cls, v: Any) -> Optional[_dt.date]:
        return date_from_string(v)


Record = Annotated[Union[Account, Contact, Lead, Campaign, Opportunity], Field(discriminator="kind")]

_RECORD_ADAPTER: TypeAdapter = TypeAdapter(Record)


def parse_record(obj: Any) -> Record:
    return _RECORD_ADAPTER.validate_python(obj)


class AccountSummary(BaseModel):
    """
    What the rest of the client needs to know about an account without
    holding the full record. The default instance stands for "unknown account".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = ""
    name: str = ""
    account_type: str = ""
    country: str = ""

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        return cls(id=account.id, name=account.name, account_type=account.account_type, country=account.country_for_gui)

    def is_empty(self) -> bool:
        return not self.id


class LinkedItem(BaseModel):
    """
    A note, email or document attached to an account and/or a contact.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    item_type: LinkedItemType
    account_id: str = ""
    contact_id: str = ""

    @field_validator("account_id", "contact_id", mode="before")
    @classmethod
    def _ids_total(cls, v: Any) -> Any:
        return _none_to_empty(v)
