"""Delegatable task kinds.

Each kind a chat turn can be delegated to is one model in a closed union.
A kind knows which remote handler serves it, how to build its typed
payload from classified entities, what to ask when entities are missing,
and how to summarise the handler's result as reply text.
"""

from typing import Any, ClassVar, Literal

from pydantic import BaseModel

CONNECTOR_HANDLER = "connector-agent-handler"
ANALYST_HANDLER = "analyst-agent-handler"
CURATOR_HANDLER = "curator-agent-handler"

_MAX_LISTED = 5


def _entity(entities: dict[str, Any], *keys: str) -> str | None:
    """First non-blank entity value among *keys*, as a string."""
    for key in keys:
        value = entities.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


class DelegatedTask(BaseModel):
    """Base class for a delegatable task kind."""

    handler: ClassVar[str]
    clarifying_question: ClassVar[str]

    @classmethod
    def from_entities(cls, entities: dict[str, Any]) -> "DelegatedTask | None":
        """Build the task from classified entities; ``None`` if insufficient."""
        raise NotImplementedError

    def to_payload(self) -> dict[str, Any]:
        """Payload sent to the handler."""
        raise NotImplementedError

    def summarize(self, data: Any) -> str:  # noqa: ANN401
        """Reply text summarising the handler's data."""
        raise NotImplementedError


class FindAndScoreBusinesses(DelegatedTask):
    """Match businesses by industry, location, or free-text description."""

    handler: ClassVar[str] = CONNECTOR_HANDLER
    clarifying_question: ClassVar[str] = (
        "I can help you find businesses! What type of business are you looking for, "
        "and in which Alabama city or region?"
    )

    kind: Literal["connector_find_and_score_businesses"] = "connector_find_and_score_businesses"
    industry: str | None = None
    location: str | None = None
    query_text: str | None = None
    limit: int = 5

    @classmethod
    def from_entities(cls, entities: dict[str, Any]) -> "FindAndScoreBusinesses | None":
        industry = _entity(entities, "industry", "business_type")
        location = _entity(entities, "location")
        query_text = _entity(entities, "query_text_for_semantic_search")
        if not (industry or location or query_text):
            return None
        return cls(industry=industry, location=location, query_text=query_text)

    def to_payload(self) -> dict[str, Any]:
        criteria = {
            "industry": self.industry,
            "location": self.location,
            "queryText": self.query_text,
        }
        return {
            "searchCriteria": {k: v for k, v in criteria.items() if v is not None},
            "limit": self.limit,
        }

    def summarize(self, data: Any) -> str:  # noqa: ANN401
        matches = data if isinstance(data, list) else []
        if not matches:
            return (
                "I couldn't find businesses matching those criteria yet. "
                "Try a broader industry or a nearby city."
            )

        lines = [f"I found {len(matches)} business(es) that could be a good fit:"]
        for match in matches[:_MAX_LISTED]:
            business = match.get("business") if isinstance(match, dict) else None
            if not isinstance(business, dict):
                business = {}
            name = business.get("name") or business.get("businessname") or "Unnamed business"
            details = ", ".join(
                str(part) for part in (business.get("category"), business.get("location")) if part
            )
            score = match.get("score") if isinstance(match, dict) else None
            line = f"- {name}"
            if details:
                line += f" ({details})"
            if score is not None:
                line += f" - match score {score}"
            lines.append(line)
        return "\n".join(lines)


class IndustryGrowth(DelegatedTask):
    """Industry growth figures for an industry in a location."""

    handler: ClassVar[str] = ANALYST_HANDLER
    clarifying_question: ClassVar[str] = (
        "Which industry and which Alabama location would you like growth insights for?"
    )

    kind: Literal["analyst_get_industry_growth"] = "analyst_get_industry_growth"
    naics_code: str
    location: str

    @classmethod
    def from_entities(cls, entities: dict[str, Any]) -> "IndustryGrowth | None":
        naics_code = _entity(entities, "naics_code", "industry")
        location = _entity(entities, "location")
        if not (naics_code and location):
            return None
        return cls(naics_code=naics_code, location=location)

    def to_payload(self) -> dict[str, Any]:
        return {"naicsCode": self.naics_code, "location": self.location}

    def summarize(self, data: Any) -> str:  # noqa: ANN401
        if not isinstance(data, dict) or not data:
            return f"I don't have growth data for {self.naics_code} in {self.location} right now."

        lines = [f"Industry growth for {self.naics_code} in {self.location}:"]
        for key in ("growthRate", "employment", "establishments", "trend"):
            if data.get(key) is not None:
                lines.append(f"- {key}: {data[key]}")
        if len(lines) == 1:
            lines.extend(f"- {k}: {v}" for k, v in list(data.items())[:_MAX_LISTED])
        return "\n".join(lines)


class EnrichBusinessProfile(DelegatedTask):
    """Enrich a known business profile."""

    handler: ClassVar[str] = CURATOR_HANDLER
    clarifying_question: ClassVar[str] = (
        "Which business would you like me to look into? Please share its name or listing ID."
    )

    kind: Literal["curator_enrich_business_profile"] = "curator_enrich_business_profile"
    business_id: str

    @classmethod
    def from_entities(cls, entities: dict[str, Any]) -> "EnrichBusinessProfile | None":
        business_id = _entity(entities, "company_id", "business_id")
        if not business_id:
            return None
        return cls(business_id=business_id)

    def to_payload(self) -> dict[str, Any]:
        return {"businessId": self.business_id}

    def summarize(self, data: Any) -> str:  # noqa: ANN401
        if not isinstance(data, dict) or not data:
            return "I wasn't able to find additional details for that business."

        name = data.get("name") or data.get("businessname") or "This business"
        lines = [f"Here's what I found about {name}:"]
        for label, key in (
            ("Industry", "category"),
            ("Location", "location"),
            ("Website", "website"),
            ("Description", "description"),
        ):
            if data.get(key):
                lines.append(f"- {label}: {data[key]}")
        tags = data.get("tags")
        if isinstance(tags, list) and tags:
            lines.append(f"- Tags: {', '.join(str(t) for t in tags)}")
        return "\n".join(lines)


class FetchCompanyNews(DelegatedTask):
    """Recent news for a company."""

    handler: ClassVar[str] = CURATOR_HANDLER
    clarifying_question: ClassVar[str] = "Which company would you like the latest news for?"

    kind: Literal["curator_fetch_company_news"] = "curator_fetch_company_news"
    company_name: str
    domain: str | None = None

    @classmethod
    def from_entities(cls, entities: dict[str, Any]) -> "FetchCompanyNews | None":
        company_name = _entity(entities, "company_name")
        if not company_name:
            return None
        return cls(company_name=company_name, domain=_entity(entities, "domain"))

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"companyName": self.company_name}
        if self.domain:
            payload["domain"] = self.domain
        return payload

    def summarize(self, data: Any) -> str:  # noqa: ANN401
        articles = data if isinstance(data, list) else []
        if not articles:
            return f"I couldn't find recent news about {self.company_name}."

        lines = [f"Latest news about {self.company_name}:"]
        for article in articles[:_MAX_LISTED]:
            if isinstance(article, dict):
                title = article.get("title") or "Untitled"
                source = article.get("source")
                if isinstance(source, dict):
                    source = source.get("name")
                lines.append(f"- {title}" + (f" ({source})" if source else ""))
            else:
                lines.append(f"- {article}")
        return "\n".join(lines)


DELEGATED_TASKS: dict[str, type[DelegatedTask]] = {
    "connector_find_and_score_businesses": FindAndScoreBusinesses,
    "analyst_get_industry_growth": IndustryGrowth,
    "curator_enrich_business_profile": EnrichBusinessProfile,
    "curator_fetch_company_news": FetchCompanyNews,
}
