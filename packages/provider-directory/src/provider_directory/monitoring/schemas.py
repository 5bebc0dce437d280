from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from provider_directory.core.models import ProviderId


class ProviderIdRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location_id: int = Field(alias="locationId")
    institution_id: int = Field(alias="institutionId")

    def to_provider_id(self) -> ProviderId:
        return ProviderId(location_id=self.location_id, institution_id=self.institution_id)


class ProviderIdListRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    providers_ids: list[ProviderIdRequest] = Field(default_factory=list, alias="providersIds")
