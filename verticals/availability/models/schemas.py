"""Pydantic schemas for availability documents, catalog records and claims.

Python attribute names are snake_case; wire names that differ are declared
as aliases. Responses are serialised by alias.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class WireModel(BaseModel):
    """Base for models that accept either attribute names or wire aliases.

    Upstream services encode empty lists and strings as JSON null; a null
    for a field with a default reads as that default.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value, info: ValidationInfo):
        if value is None:
            fld = cls.model_fields[info.field_name]
            if not fld.is_required():
                return fld.get_default(call_default_factory=True)
        return value


# ---------------------------------------------------------------------------
# Enums / constants
# ---------------------------------------------------------------------------

class OptionType:
    HOLD = "hold"
    SCAN = "scan"
    DIRECT_LINK = "directLink"
    AEON = "aeon"
    VIDEO_RESERVE = "videoReserve"


SPECIAL_COLLECTIONS_ID = "SPEC-COLL"
NO_MAP = "N/A"


# ---------------------------------------------------------------------------
# Availability document
# ---------------------------------------------------------------------------

class MapRef(WireModel):
    name: str = ""
    url: Optional[str] = Field(None, alias="map")


class Item(WireModel):
    barcode: str = ""
    on_shelf: bool = False
    unavailable: bool = False
    notice: str = ""
    library: str = ""
    library_id: str = ""
    current_location: str = ""
    home_location_id: str = ""
    call_number: str = ""
    volume: str = ""
    special_collections_notes: str = Field("", alias="special_collections_location")
    map_ref: MapRef = Field(default_factory=MapRef, alias="map")


class ItemOption(WireModel):
    label: str = ""
    barcode: str = ""
    notes: str = ""
    library: str = ""
    location: str = ""
    location_id: str = ""
    notice: str = ""


class RequestOption(WireModel):
    type: str
    label: str = Field("", alias="button_label")
    description: str = ""
    create_url: str = ""
    sign_in_required: bool = False
    streaming_reserve: bool = False
    item_options: list[ItemOption] = Field(default_factory=list)


class BoundWithItem(WireModel):
    is_parent: bool = False
    title_id: str = ""
    call_number: str = ""
    title: str = ""
    author: str = ""


class Availability(WireModel):
    title_id: str = ""
    display: dict[str, str] = Field(default_factory=dict)
    items: list[Item] = Field(default_factory=list)
    request_options: list[RequestOption] = Field(default_factory=list)
    bound_with: list[BoundWithItem] = Field(default_factory=list)

    def find_option(self, option_type: str) -> int:
        """Index of the option with this type, or -1.

        Option type is the only key an option has; at most one option of a
        type is present, so the first match is the only match.
        """
        for idx, opt in enumerate(self.request_options):
            if opt.type == option_type:
                return idx
        return -1

    def remove_option(self, option_type: str) -> bool:
        idx = self.find_option(option_type)
        if idx == -1:
            return False
        del self.request_options[idx]
        return True

    def replace_or_append_option(self, option_type: str, option: RequestOption) -> bool:
        """Put *option* where the *option_type* option sits, else append it.

        Returns True when an existing option was replaced. Only valid while
        at most one option per type is present.
        """
        idx = self.find_option(option_type)
        if idx == -1:
            self.request_options.append(option)
            return False
        self.request_options[idx] = option
        return True


class AvailabilityDocument(WireModel):
    availability: Availability = Field(default_factory=Availability)


# ---------------------------------------------------------------------------
# Catalog record (Solr document)
# ---------------------------------------------------------------------------

class CatalogRecord(WireModel):
    """Read-only projection of one catalog search document.

    Fields with an alias are requested from the index; edition, issue,
    volume and copy are not indexed and stay empty.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field("", alias="id")
    anon_availability: list[str] = Field(default_factory=list, alias="anon_availability_a")
    author: list[str] = Field(default_factory=list, alias="author_a")
    barcode: list[str] = Field(default_factory=list, alias="barcode_a")
    call_number: list[str] = Field(default_factory=list, alias="call_number_a")
    description: list[str] = Field(default_factory=list, alias="description_a")
    hathi_etas: list[str] = Field(default_factory=list, alias="hathi_etas_f")
    format: list[str] = Field(default_factory=list, alias="format_a")
    isbn: list[str] = Field(default_factory=list, alias="isbn_a")
    issn: list[str] = Field(default_factory=list, alias="issn_a")
    library: list[str] = Field(default_factory=list, alias="library_a")
    location: list[str] = Field(default_factory=list, alias="location2_a")
    local_notes: list[str] = Field(default_factory=list, alias="local_notes_a")
    medium: list[str] = Field(default_factory=list, alias="medium_a")
    pool: list[str] = Field(default_factory=list, alias="pool_f")
    publication_date: str = Field("", alias="published_date")
    published_location: list[str] = Field(default_factory=list, alias="published_location_a")
    publisher_name: list[str] = Field(default_factory=list, alias="publisher_name_a")
    sc_availability: str = Field("", alias="sc_availability_large_single")
    source: list[str] = Field(default_factory=list, alias="source_a")
    title: list[str] = Field(default_factory=list, alias="title_a")
    url: list[str] = Field(default_factory=list, alias="url_a")
    work_types: list[str] = Field(default_factory=list, alias="workType_a")

    edition: str = ""
    issue: str = ""
    volume: str = ""
    copy_number: str = ""

    @classmethod
    def field_list(cls) -> list[str]:
        """Index field names to request, derived from the aliases."""
        return [f.alias for f in cls.model_fields.values() if f.alias]


class SolrResponseBody(WireModel):
    num_found: int = Field(0, alias="numFound")
    docs: list[dict] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Caller claims
# ---------------------------------------------------------------------------

class Claims(WireModel):
    user_id: str = Field("", alias="userId")
    home_library: str = Field("", alias="homeLibrary")
    can_place_reserve: bool = Field(False, alias="canPlaceReserve")
