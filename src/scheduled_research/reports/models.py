"""Structured report contract consumed by the renderers."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class Citation:
    """A cited source with the renderer-visible confidence in [0, 1]."""
    id: str
    text: str
    context: str
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "context": self.context,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Citation":
        return cls(
            id=str(data.get("id", "")),
            text=data.get("text", ""),
            context=data.get("context", ""),
            confidence=float(data.get("confidence", 0.0)),
        )


@dataclass
class ReportSection:
    heading: str
    content: str
    citations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "heading": self.heading,
            "content": self.content,
            "citations": list(self.citations),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReportSection":
        return cls(
            heading=data.get("heading", ""),
            content=data.get("content", ""),
            citations=[str(c) for c in data.get("citations", [])],
        )


@dataclass
class ReportMetadata:
    total_sources: int = 0
    verified_claims: int = 0
    confidence_score: float = 0.0
    generated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "totalSources": self.total_sources,
            "verifiedClaims": self.verified_claims,
            "confidenceScore": self.confidence_score,
            "generatedAt": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReportMetadata":
        generated_at = data.get("generatedAt")
        if isinstance(generated_at, str):
            # fromisoformat only accepts a trailing Z from 3.11 on
            generated_at = datetime.fromisoformat(generated_at.replace("Z", "+00:00"))
        return cls(
            total_sources=int(data.get("totalSources", 0)),
            verified_claims=int(data.get("verifiedClaims", 0)),
            confidence_score=float(data.get("confidenceScore", 0.0)),
            generated_at=generated_at or datetime.now(),
        )


@dataclass
class Report:
    """
    A finished research report.

    Sections reference citations by id. A reference with no matching
    citation is tolerated and rendered as the bare id.
    """
    title: str
    summary: str
    sections: list[ReportSection] = field(default_factory=list)
    citations: list[Citation] = field(default_factory=list)
    metadata: ReportMetadata = field(default_factory=ReportMetadata)

    def citation(self, citation_id: str) -> Optional[Citation]:
        """Look up a citation by id; None for dangling references."""
        for citation in self.citations:
            if citation.id == citation_id:
                return citation
        return None

    def dangling_citations(self) -> list[str]:
        """Citation ids referenced by sections but missing from the list."""
        known = {c.id for c in self.citations}
        return [
            ref
            for section in self.sections
            for ref in section.citations
            if ref not in known
        ]

    def to_dict(self) -> dict:
        """Convert to the JSON wire contract."""
        return {
            "title": self.title,
            "summary": self.summary,
            "sections": [s.to_dict() for s in self.sections],
            "citations": [c.to_dict() for c in self.citations],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Report":
        return cls(
            title=data.get("title", ""),
            summary=data.get("summary", ""),
            sections=[ReportSection.from_dict(s) for s in data.get("sections", [])],
            citations=[Citation.from_dict(c) for c in data.get("citations", [])],
            metadata=ReportMetadata.from_dict(data.get("metadata", {})),
        )
