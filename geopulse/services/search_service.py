"""
Search Service - natural-language environmental search through the AI gateway
"""
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
import json
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from geopulse.core.config import Settings
from geopulse.core.exceptions import InputValidationError
from geopulse.models.models import SearchQuery
from geopulse.models.schemas import SearchResponse
from geopulse.services.ai_gateway import AIGatewayClient

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 85

SEARCH_SYSTEM_PROMPT = """You are an AI assistant specialized in geospatial search and environmental data interpretation.
Your role is to:
1. Interpret natural language queries about environmental changes across Africa
2. Extract key information: location, event type, time period, specific concerns
3. Provide relevant satellite data insights with REAL coordinates
4. Suggest monitoring strategies and data sources
5. Assess confidence levels based on data availability

Format responses as structured JSON with:
- interpretation: Clear explanation of what the user is looking for
- findings: Array of relevant environmental insights
- locations: Array of location objects with {name: string, lat: number, lng: number, boundary?: [[lat,lng][]]}
- confidenceLevel: 1-100 scale
- recommendations: Actionable next steps

IMPORTANT: Always provide real geographic coordinates for locations mentioned in Africa."""


def validate_query(query: Any, max_length: int) -> str:
    """
    Trimmed query text.

    Raises:
        InputValidationError: If the query is missing, blank or too long
    """
    if not isinstance(query, str) or not query.strip():
        raise InputValidationError("Query must be a non-empty string")
    query = query.strip()
    if len(query) > max_length:
        raise InputValidationError(f"Query must be {max_length} characters or less")
    return query


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()


def parse_interpretation(text: str) -> Dict[str, Any]:
    """
    Structured fields from the model reply. JSON replies are used as-is;
    plain text gives its first paragraph and its "-" bullet lines.
    """
    try:
        parsed = json.loads(_strip_code_fence(text))
        if isinstance(parsed, dict):
            return parsed
    except ValueError:
        pass

    return {
        "interpretation": text.split("\n\n")[0],
        "findings": [line for line in text.split("\n") if line.strip().startswith("-")],
        "confidenceLevel": DEFAULT_CONFIDENCE,
    }


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


class SearchService:

    def __init__(self, db: Session, settings: Settings, ai_client: Optional[AIGatewayClient] = None):
        self.db = db
        self.settings = settings
        self.ai_client = ai_client or AIGatewayClient(settings)

    def search(self, query: Any, user_id: Optional[str] = None) -> SearchResponse:
        """
        Interpret a search query and store it.

        Raises:
            InputValidationError: Before any external call, for a bad query
            ConfigurationError: If the gateway key is missing
            UpstreamServiceError: If the gateway call fails
        """
        query = validate_query(query, self.settings.SEARCH_QUERY_MAX_LENGTH)
        logger.info(f"Processing search query: {query}")

        user_prompt = (
            f'Interpret this environmental search query: "{query}"\n\n'
            "Provide insights about environmental changes in African regions, including deforestation, "
            "flooding, drought, urbanization, or climate impacts.\n"
            "Consider satellite data availability and relevance."
        )
        reply = self.ai_client.chat_completion(
            [
                {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            model=self.settings.SEARCH_MODEL,
            temperature=0.6,
            max_tokens=1500,
        )

        structured = parse_interpretation(reply)
        confidence = structured.get("confidenceLevel")
        if not isinstance(confidence, (int, float)) or isinstance(confidence, bool) or not confidence:
            confidence = DEFAULT_CONFIDENCE

        result = SearchResponse(
            query=query,
            interpretation=str(structured.get("interpretation") or reply),
            findings=_as_list(structured.get("findings")),
            locations=_as_list(structured.get("locations")),
            confidenceLevel=confidence,
            recommendations=_as_list(structured.get("recommendations")),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        self._store(result, user_id)
        return result

    def _store(self, result: SearchResponse, user_id: Optional[str]) -> None:
        record = SearchQuery(
            user_id=user_id,
            query=result.query,
            ai_interpretation=result.interpretation,
            results={
                "findings": result.findings,
                "locations": result.locations,
                "recommendations": result.recommendations,
            },
            confidence_level=result.confidenceLevel,
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to store search query: {e}")
            raise
