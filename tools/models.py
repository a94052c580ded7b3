from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from pydantic import BaseModel


def normalize_identifier(email: str) -> str:
    """Normalize an email into the correlation key shared by both stores."""
    return (email or "").strip().lower()


class LinkedInProfile(BaseModel):
    """Profile fields the provider may return. Every field is optional."""
    name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    linkedin_url: Optional[str] = None
    profile_picture: Optional[str] = None
    location: Optional[str] = None
    headline: Optional[str] = None

    def has_useful_data(self) -> bool:
        return any([self.name, self.title, self.company, self.linkedin_url, self.location])


class EnrichmentResult(BaseModel):
    """Provider-shaped result: profile data on success, an error marker otherwise."""
    success: bool
    data: Optional[LinkedInProfile] = None
    error: Optional[str] = None


@dataclass
class PendingEnrichment:
    identifier: str
    issued_at: float
    request_id: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PendingEnrichment":
        return cls(
            identifier=raw["identifier"],
            issued_at=float(raw["issued_at"]),
            request_id=raw["request_id"],
        )


@dataclass
class CompletedEnrichment:
    identifier: str
    result: EnrichmentResult
    resolved_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "result": self.result.model_dump(),
            "resolved_at": self.resolved_at,
        }
