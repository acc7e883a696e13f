"""Services for CryoNexus."""

from cryonexus.services.country_data import CountryDataStore
from cryonexus.services.llm import LLMClient
from cryonexus.services.news_context import NewsContextGateway
from cryonexus.services.replay import RecordingLibrary
from cryonexus.services.scoring import compute_compound_risk_score, score_breakdown

__all__ = [
    "CountryDataStore",
    "LLMClient",
    "NewsContextGateway",
    "RecordingLibrary",
    "compute_compound_risk_score",
    "score_breakdown",
]
